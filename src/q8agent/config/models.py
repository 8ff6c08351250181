# src/q8agent/config/models.py
"""
Pydantic models for q8 agent configuration.

Configuration Structure (TOML):
    host = "0.0.0.0"
    port = 8080
    admin_token = "change-me"
    tenants_root = "/opt/tenants"
    project_prefix = "q8-"
    command_timeout_seconds = 300
    read_timeout_seconds = 30
    check_engine_on_startup = true

    [mongo]
    host = "localhost"
    port = 27017
    user = "admin"
    password = ""
    image = "mongo:latest"

    [logging]
    level = "INFO"
    file_directory = "/var/log/q8-agent"
    json = false

All models are frozen: the configuration is built once at startup and
passed by reference to every component.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MongoAdminConfig(BaseModel):
    """
    Administrative connection used by the database user script.

    Maps to: [mongo]
    """
    model_config = ConfigDict(frozen=True)

    host: str = Field(default="localhost", description="Host of the database engine, reachable from the host network")
    port: int = Field(default=27017, ge=1, le=65535, description="Port of the database engine")
    user: str = Field(default="admin", description="Administrative user")
    password: str = Field(default="", description="Administrative password")
    image: str = Field(default="mongo:latest", description="Image providing the mongosh client")

    @property
    def address(self) -> str:
        """host:port string passed to mongosh."""
        return f"{self.host}:{self.port}"


class LoggingSettings(BaseModel):
    """
    Logging options.

    Maps to: [logging]
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    level: str = Field(default="INFO", description="Root console log level")
    file_directory: Optional[str] = Field(default=None, description="Directory for a rotating log file; disabled if unset")
    json_format: bool = Field(default=False, alias="json", description="Render request logs as JSON")
    console: bool = Field(default=True, description="Log to stderr; when false only startup banner lines are shown")

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class AgentConfig(BaseModel):
    """
    Top-level agent configuration.

    Attributes:
        host: Interface the HTTP server binds to
        port: Listening port
        admin_token: Bearer token required on every /v1 route
        tenants_root: Directory holding one sub-directory per tenant
        project_prefix: Prefix joined with the subdomain to form the compose project name
        command_timeout_seconds: Deadline for mutating compose commands and the admin script
        read_timeout_seconds: Deadline for ps/logs/images and the availability check
        docker_host: Optional Docker daemon URL for the SDK client
        check_engine_on_startup: Refuse to start when docker compose is not reachable
    """
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    admin_token: str = Field(default="change-me", min_length=1)
    tenants_root: Path = Path("/opt/tenants")
    project_prefix: str = "q8-"
    command_timeout_seconds: float = Field(default=300, gt=0)
    read_timeout_seconds: float = Field(default=30, gt=0)
    docker_host: Optional[str] = None
    check_engine_on_startup: bool = True
    mongo: MongoAdminConfig = Field(default_factory=MongoAdminConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def project_name(self, subdomain: str) -> str:
        """Compose project name for a tenant subdomain."""
        return f"{self.project_prefix}{subdomain}"
