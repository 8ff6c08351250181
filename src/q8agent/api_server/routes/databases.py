# src/q8agent/api_server/routes/databases.py
"""Database user management routes for the q8 agent API server."""

import logging

from fastapi import APIRouter, Depends, status

from ...exceptions import ValidationError
from ...models import DatabaseUserRequest
from ...orchestration import TenantOrchestrator
from ..models import DatabaseUserCreateRequest, DatabaseUserCreateResponse
from .tenants import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/users", status_code=status.HTTP_201_CREATED, response_model=DatabaseUserCreateResponse)
async def create_database_user(
    payload: DatabaseUserCreateRequest,
    orchestrator: TenantOrchestrator = Depends(get_orchestrator),
) -> DatabaseUserCreateResponse:
    """
    Create a readWrite user on a tenant database, or reset its password.

    Connection fields in the payload are ignored; the configured
    administrative connection is always used.
    """
    missing = [
        name for name in ("database_name", "new_user", "new_password") if not getattr(payload, name)
    ]
    if missing:
        raise ValidationError(f"Missing required fields ({', '.join(missing)})")

    if payload.host or payload.admin_user:
        logger.debug("Ignoring connection fields supplied in the request body")

    outcome = await orchestrator.create_database_user(
        DatabaseUserRequest(
            database_name=payload.database_name,
            new_user=payload.new_user,
            new_password=payload.new_password,
        )
    )
    return DatabaseUserCreateResponse(outcome=outcome.value)
