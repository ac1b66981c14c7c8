"""Prometheus metrics for the redirect service."""

from edgeredirect.observability.metrics import (
    ACTIVE_RULES,
    REDIRECTS,
    RESOLVE_DURATION,
    RULE_FETCHES,
    UNMATCHED_REQUESTS,
    generate_metrics,
    get_content_type,
)

__all__ = [
    "REDIRECTS",
    "UNMATCHED_REQUESTS",
    "RULE_FETCHES",
    "ACTIVE_RULES",
    "RESOLVE_DURATION",
    "generate_metrics",
    "get_content_type",
]
