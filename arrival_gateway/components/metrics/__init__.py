"""
Observability components.
"""

from arrival_gateway.components.metrics.collector import MetricsCollector

__all__ = ["MetricsCollector"]
