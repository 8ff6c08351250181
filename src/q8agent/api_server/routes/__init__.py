# src/q8agent/api_server/routes/__init__.py
"""
API routes package initialization.

This module exports the API routers for registration with the main FastAPI
application.
"""

from .databases import router as databases_router
from .tenants import router as tenants_router

__all__ = [
    "databases_router",
    "tenants_router",
]
