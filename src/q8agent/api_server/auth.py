# src/q8agent/api_server/auth.py
"""
Bearer token authentication for the q8 agent API server.

Every request under /v1 requires ``Authorization: Bearer <token>`` where the
token equals the configured administrative token. The check runs as
middleware in front of routing, so a rejected request never has its body
parsed, never reaches the orchestrator, and gets 401 even for paths or
methods that do not exist.
"""

import logging
import secrets
from typing import Callable, Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

PROTECTED_PREFIX = "/v1"


def check_bearer(auth_header: Optional[str], configured_token: str) -> Optional[str]:
    """
    Validate an Authorization header value.

    Security Features:
    - The header must be exactly two space-separated parts, "Bearer <token>"
    - Constant-time comparison against the configured token

    Returns:
        None if the header is acceptable, otherwise the rejection message
    """
    if not auth_header:
        return "Unauthorized: Missing Authorization header"

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        return "Unauthorized: Invalid Authorization format"

    if not secrets.compare_digest(parts[1].encode("utf-8"), configured_token.encode("utf-8")):
        return "Unauthorized: Invalid token"

    return None


def _is_protected(path: str) -> bool:
    return path == PROTECTED_PREFIX or path.startswith(PROTECTED_PREFIX + "/")


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """
    Rejects unauthenticated requests under /v1 with 401 before routing.

    Paths outside /v1 (``/health``, the OpenAPI docs) pass through.
    """

    def __init__(self, app, token: str):
        super().__init__(app)
        self._token = token

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not _is_protected(request.url.path):
            return await call_next(request)

        rejection = check_bearer(request.headers.get("Authorization"), self._token)
        if rejection is not None:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"{rejection} ({request.method} {request.url.path} from {client})")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": rejection},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
