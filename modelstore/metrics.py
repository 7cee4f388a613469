"""
Prometheus metrics for modelstore.

Tracks fallback-tier effectiveness, promotions between tiers and dual-store
operations that left the tiers out of step.
"""

from prometheus_client import Counter

# Tier metrics
fallback_hits_total = Counter(
    "modelstore_fallback_hits_total",
    "Lookups served by the fallback tier",
    ["operation"],
)

fallback_misses_total = Counter(
    "modelstore_fallback_misses_total",
    "Lookups that fell through the fallback tier",
    ["operation"],
)

promotions_total = Counter(
    "modelstore_promotions_total",
    "Models copied between tiers",
    ["operation"],
)

# Dual-store metrics
dual_write_partial_total = Counter(
    "modelstore_dual_write_partial_total",
    "Dual-store operations that succeeded on only one tier",
    ["operation"],
)
