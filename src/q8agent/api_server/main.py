# src/q8agent/api_server/main.py
"""
Main FastAPI application for the q8 agent.

``create_app`` wires the configuration and orchestrator into application
state, registers the authenticated /v1 routers and maps agent errors to
plain-text HTTP responses. ``main`` is the console entry point; it loads
configuration, configures logging and serves the app with uvicorn.
"""

import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from .. import __version__
from ..config import AgentConfig, load_agent_config
from ..exceptions import ConfigError, EngineUnavailableError, Q8AgentError, ValidationError
from ..logging_config import configure_logging, log_display, logging_config_from_settings
from ..orchestration import TenantOrchestrator
from .auth import BearerAuthMiddleware
from .middleware.observability import ObservabilityMiddleware, configure_structlog
from .routes import databases_router, tenants_router

logger = logging.getLogger(__name__)

ROUTES_BANNER = (
    "POST /v1/tenants/provision",
    "POST /v1/tenants/teardown/{subdomain}",
    "POST /v1/tenants/restart/{subdomain}",
    "GET  /v1/tenants/status/{subdomain}",
    "GET  /v1/tenants/logs/{subdomain}",
    "GET  /v1/tenants/images/{subdomain}",
    "POST /v1/databases/users",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages the lifecycle of the FastAPI application.

    On startup, verifies that docker compose is reachable when the
    configuration asks for it; the server refuses to start otherwise.
    """
    config: AgentConfig = app.state.config
    orchestrator: TenantOrchestrator = app.state.orchestrator
    logger.info("Q8 Agent starting up...")

    if config.check_engine_on_startup:
        if not await orchestrator.executor.is_available():
            logger.critical("Fatal: docker compose is not installed or accessible")
            raise EngineUnavailableError()
        logger.info("docker compose is available")

    log_display(logger, logging.INFO, "Q8 Agent listening on %s:%d", config.host, config.port)
    log_display(logger, logging.INFO, "Tenants root: %s", config.tenants_root)
    for route in ROUTES_BANNER:
        log_display(logger, logging.INFO, "  %s", route)

    yield

    logger.info("Q8 Agent shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """Map agent errors onto plain-text HTTP responses."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        logger.warning(f"Rejected malformed request body on {request.url.path}: {exc.errors()}")
        return PlainTextResponse("Invalid request body", status_code=400)

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> PlainTextResponse:
        logger.warning(f"Rejected request on {request.url.path}: {exc}")
        return PlainTextResponse(str(exc), status_code=400)

    @app.exception_handler(Q8AgentError)
    async def agent_error_handler(request: Request, exc: Q8AgentError) -> PlainTextResponse:
        logger.error(f"Request to {request.url.path} failed: {exc}", extra={"error": exc.to_dict()})
        return PlainTextResponse(str(exc), status_code=500)


def create_app(
    config: Optional[AgentConfig] = None,
    orchestrator: Optional[TenantOrchestrator] = None,
) -> FastAPI:
    """
    Build the agent's FastAPI application.

    Args:
        config: Agent configuration; loaded from file and environment if omitted
        orchestrator: Orchestrator to serve; built from the configuration if omitted

    Returns:
        Configured FastAPI application
    """
    config = config or load_agent_config()
    orchestrator = orchestrator or TenantOrchestrator.from_config(config)

    app = FastAPI(
        title="q8 agent",
        description="Provisions and operates tenant container stacks on this host",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.orchestrator = orchestrator

    configure_structlog(json_format=config.logging.json_format)
    # Added last, so observability wraps auth and 401 responses carry X-Request-ID.
    app.add_middleware(BearerAuthMiddleware, token=config.admin_token)
    app.add_middleware(ObservabilityMiddleware, enable_request_logging=True)
    register_exception_handlers(app)

    # --- Include Routers ---
    app.include_router(tenants_router, prefix="/v1/tenants", tags=["tenants_v1"])
    app.include_router(databases_router, prefix="/v1/databases", tags=["databases_v1"])

    @app.get("/health", response_class=PlainTextResponse)
    async def health_check() -> str:
        """Unauthenticated liveness check."""
        return "OK"

    return app


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="q8-agent",
        description="Run the q8 host agent HTTP server.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to a TOML configuration file")
    parser.add_argument("--host", default=None, help="Interface to bind (overrides configuration)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (overrides configuration)")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Console entry point."""
    args = create_parser().parse_args(argv)

    overrides = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port

    try:
        config = load_agent_config(config_path=args.config, overrides=overrides)
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(str(e))
        return 2

    try:
        log_file = configure_logging(app_name="q8-agent", config=logging_config_from_settings(config.logging))
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(str(e))
        return 2
    if log_file is not None:
        log_display(logger, logging.INFO, "Logging to %s", log_file)

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
