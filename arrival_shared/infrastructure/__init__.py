"""
Infrastructure helpers shared across the gateway.
"""

from arrival_shared.infrastructure.correlation import (
    CorrelationIdFilter,
    CorrelationIdMiddleware,
    bind_correlation_id,
    get_request_id,
    request_id_var,
)

__all__ = [
    "CorrelationIdFilter",
    "CorrelationIdMiddleware",
    "bind_correlation_id",
    "get_request_id",
    "request_id_var",
]
