# src/q8agent/api_server/models.py
"""
Pydantic models for the q8 agent API server.

Request fields default to empty strings so that a missing field reaches the
route and is rejected there with the agent's own 400 message, before any
side effect.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ProvisionRequest(BaseModel):
    """Payload for POST /v1/tenants/provision."""
    id: str = Field(default="", description="Control plane identifier of the tenant")
    subdomain: str = Field(default="", description="Tenant key used for the directory and project name")
    compose_content: str = Field(default="", description="Contents of docker-compose.yml, written verbatim")
    env_content: str = Field(default="", description="Contents of .env, written verbatim")


class ProvisionResponse(BaseModel):
    status: str = "provisioned"
    id: str


class TenantActionResponse(BaseModel):
    """Response for teardown and restart."""
    status: str
    subdomain: str


class DatabaseUserCreateRequest(BaseModel):
    """
    Payload for POST /v1/databases/users.

    Older callers also send host, port, admin_user and admin_password; those
    are accepted and ignored because the administrative connection always
    comes from the agent configuration.
    """
    database_name: str = Field(default="", description="Database the user is scoped to")
    new_user: str = Field(default="", description="User to create")
    new_password: str = Field(default="", description="Password for the user")
    host: Optional[str] = Field(default=None, description="Ignored; the configured host is used")
    port: Optional[str] = Field(default=None, description="Ignored; the configured port is used")
    admin_user: Optional[str] = Field(default=None, description="Ignored; configured credentials are used")
    admin_password: Optional[str] = Field(default=None, description="Ignored; configured credentials are used")


class DatabaseUserCreateResponse(BaseModel):
    status: str = "database_configured"
    outcome: str
