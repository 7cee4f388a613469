"""
Domain layer - the model identity contract and error taxonomy.
"""
