# src/q8agent/api_server/middleware/__init__.py
"""HTTP middleware for the q8 agent API server."""

from .observability import REQUEST_ID_HEADER, ObservabilityMiddleware, configure_structlog

__all__ = ["REQUEST_ID_HEADER", "ObservabilityMiddleware", "configure_structlog"]
