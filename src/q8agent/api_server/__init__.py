# src/q8agent/api_server/__init__.py
"""HTTP API for the q8 agent."""

from .main import create_app, main

__all__ = ["create_app", "main"]
