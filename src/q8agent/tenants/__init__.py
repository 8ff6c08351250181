# src/q8agent/tenants/__init__.py
"""Tenant directory state and per-tenant locking."""

from .directory import COMPOSE_FILENAME, ENV_FILENAME, TenantDirectoryManager
from .locks import SubdomainLockRegistry

__all__ = ["COMPOSE_FILENAME", "ENV_FILENAME", "SubdomainLockRegistry", "TenantDirectoryManager"]
