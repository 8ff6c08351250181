# src/q8agent/orchestration/__init__.py
"""Tenant lifecycle orchestration."""

from .orchestrator import TenantOrchestrator

__all__ = ["TenantOrchestrator"]
