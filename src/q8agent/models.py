# src/q8agent/models.py
"""
Core data models for the q8 agent.

This module defines the Pydantic models used by the orchestration layer:
the identity of a tenant, the database user request used by the
administrative script, and the outcome reported back from that script.
Subdomain syntax is checked here because the subdomain is used both as a
directory name and as part of the container project name.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import InvalidSubdomainError

# A lowercase DNS label that is also a valid compose project name suffix.
SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9_-]{0,61}[a-z0-9])?$")


def validate_subdomain(subdomain: str) -> str:
    """
    Check that a subdomain can be used as a tenant key.

    Args:
        subdomain: The candidate subdomain.

    Returns:
        The subdomain, unchanged.

    Raises:
        InvalidSubdomainError: If the subdomain is empty or contains characters
            that could escape the tenants root or break the project name.
    """
    if not isinstance(subdomain, str) or not SUBDOMAIN_PATTERN.match(subdomain):
        raise InvalidSubdomainError(str(subdomain))
    return subdomain


class TenantIdentity(BaseModel):
    """
    Identifies a tenant.

    Attributes:
        id: Opaque identifier from the control plane, carried for logging and responses.
        subdomain: Stable key used for the tenant directory and project name.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Control plane identifier of the tenant.")
    subdomain: str = Field(description="Stable key used for directory naming and the project name.")

    @field_validator("subdomain")
    @classmethod
    def check_subdomain(cls, v: str) -> str:
        if not SUBDOMAIN_PATTERN.match(v):
            raise ValueError(f"Invalid subdomain: '{v}'")
        return v


class DatabaseUserRequest(BaseModel):
    """
    A request to create (or reset) a database user scoped to one database.

    Administrative credentials are never part of this request; they come
    from the agent configuration.
    """
    model_config = ConfigDict(frozen=True)

    database_name: str = Field(min_length=1, description="Database the user is granted readWrite on.")
    new_user: str = Field(min_length=1, description="Name of the user to create.")
    new_password: str = Field(min_length=1, description="Password for the user.")


class DatabaseUserOutcome(str, Enum):
    """What the administrative script did for a database user request."""
    CREATED = "created"
    PASSWORD_UPDATED = "password_updated"
