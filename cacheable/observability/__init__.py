"""
Cacheable - Observability Module

Structured JSON logging for the runtime.

Usage:
    from cacheable.observability import configure_logging

    configure_logging("DEBUG")
"""

from .monitoring import JSONFormatter, configure_logging

__all__ = [
    "JSONFormatter",
    "configure_logging",
]
