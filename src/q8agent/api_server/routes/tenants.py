# src/q8agent/api_server/routes/tenants.py
"""
Tenant lifecycle routes for the q8 agent API server.

Mutating routes answer with small JSON bodies. Read-only routes pass the
engine's output through untouched: ``status`` and ``images`` as
application/json, ``logs`` as text/plain. Failures are mapped to HTTP
status codes by the application's exception handlers.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from ...engine.base import DEFAULT_LOG_TAIL
from ...exceptions import ValidationError
from ...models import TenantIdentity, validate_subdomain
from ...orchestration import TenantOrchestrator
from ..models import ProvisionRequest, ProvisionResponse, TenantActionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def get_orchestrator(request: Request) -> TenantOrchestrator:
    """Dependency returning the orchestrator attached to the application state."""
    return request.app.state.orchestrator


def parse_tail(raw: Optional[str]) -> int:
    """
    Interpret the ``tail`` query parameter.

    Absent, non-numeric or negative values fall back to the default.
    """
    if raw is None:
        return DEFAULT_LOG_TAIL
    try:
        tail = int(raw)
    except ValueError:
        logger.debug(f"Ignoring non-numeric tail value: {raw!r}")
        return DEFAULT_LOG_TAIL
    return tail if tail >= 0 else DEFAULT_LOG_TAIL


@router.post("/provision", status_code=status.HTTP_201_CREATED, response_model=ProvisionResponse)
async def provision_tenant(
    payload: ProvisionRequest,
    orchestrator: TenantOrchestrator = Depends(get_orchestrator),
) -> ProvisionResponse:
    """
    Provision (or re-provision) a tenant from its compose and env contents.

    Raises:
        ValidationError: 400 when id or subdomain is missing or malformed
        OrchestrationError: 500 when any provisioning stage fails
    """
    if not payload.id or not payload.subdomain:
        raise ValidationError("Missing required fields (id, subdomain)")
    validate_subdomain(payload.subdomain)

    identity = TenantIdentity(id=payload.id, subdomain=payload.subdomain)
    await orchestrator.provision(identity, payload.compose_content, payload.env_content)
    return ProvisionResponse(id=identity.id)


@router.post("/teardown/{subdomain}", response_model=TenantActionResponse)
async def teardown_tenant(
    subdomain: str,
    orchestrator: TenantOrchestrator = Depends(get_orchestrator),
) -> TenantActionResponse:
    await orchestrator.teardown(subdomain)
    return TenantActionResponse(status="torn_down", subdomain=subdomain)


@router.post("/restart/{subdomain}", response_model=TenantActionResponse)
async def restart_tenant(
    subdomain: str,
    orchestrator: TenantOrchestrator = Depends(get_orchestrator),
) -> TenantActionResponse:
    await orchestrator.restart(subdomain)
    return TenantActionResponse(status="restarted", subdomain=subdomain)


@router.get("/status/{subdomain}")
async def tenant_status(
    subdomain: str,
    orchestrator: TenantOrchestrator = Depends(get_orchestrator),
) -> Response:
    """Container status as reported by the engine, passed through verbatim."""
    output = await orchestrator.status(subdomain)
    return Response(content=output, media_type="application/json")


@router.get("/logs/{subdomain}")
async def tenant_logs(
    subdomain: str,
    tail: Optional[str] = Query(default=None, description="Number of trailing lines per service"),
    orchestrator: TenantOrchestrator = Depends(get_orchestrator),
) -> Response:
    output = await orchestrator.logs(subdomain, tail=parse_tail(tail))
    return Response(content=output, media_type="text/plain")


@router.get("/images/{subdomain}")
async def tenant_images(
    subdomain: str,
    orchestrator: TenantOrchestrator = Depends(get_orchestrator),
) -> Response:
    output = await orchestrator.images(subdomain)
    return Response(content=output, media_type="application/json")
