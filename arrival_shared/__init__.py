"""
Shared module for common utilities used by the arrival gateway.

STRUCTURE:
- arrival_shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging

- arrival_shared.infrastructure: Cross-cutting runtime helpers
  - correlation.py: Request / connection correlation IDs for logs
"""
