"""
Custom exceptions for the modelstore domain.

Absence of a model is never an error (lookups return None); these
exceptions cover unsupported operations, backend failures, malformed
stored values and bad configuration.
"""

from typing import Any, Optional


class ModelStoreException(Exception):
    """Base exception for all modelstore errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class UnsupportedOperationException(ModelStoreException):
    """Raised when a backend cannot satisfy a repository operation."""

    def __init__(self, backend: str, operation: str, reason: Optional[str] = None):
        message = f"Operation '{operation}' is not supported by {backend}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message,
            details={"backend": backend, "operation": operation, "reason": reason},
        )


class BackendException(ModelStoreException):
    """Raised when the underlying storage medium fails (I/O, connection)."""

    def __init__(self, backend: str, operation: str, reason: Optional[str] = None):
        message = f"{backend} {operation} failed"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message,
            details={"backend": backend, "operation": operation, "reason": reason},
        )


class CodecException(ModelStoreException):
    """Raised when a stored value cannot be read as the requested type."""

    def __init__(self, field: str, reason: str, value: Any = None):
        message = f"Cannot decode field '{field}': {reason}"
        super().__init__(
            message=message,
            details={"field": field, "reason": reason, "value": repr(value)},
        )


class ConfigurationException(ModelStoreException):
    """Raised when settings are missing or invalid for the requested backend."""

    def __init__(self, setting: str, reason: str):
        message = f"Invalid configuration for {setting}: {reason}"
        super().__init__(message=message, details={"setting": setting, "reason": reason})
