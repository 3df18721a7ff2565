"""
Authentication middleware - validates the API key before request processing.

Public endpoints (health checks, docs) are excluded; every other request
gets ``user_id``, ``clinic_id`` and ``role`` on ``request.state``.
"""

import logging

from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..api.utils.responses import fail
from ..core.auth import get_auth_service
from ..core.config import get_settings

logger = logging.getLogger(__name__)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce authentication on patient data endpoints."""

    PUBLIC_PATH_PREFIXES = ("/docs", "/redoc")

    def is_public_endpoint(self, path: str) -> bool:
        normalized_path = path.rstrip("/") or "/"
        if normalized_path in get_settings().security.public_paths:
            return True
        return any(path.startswith(prefix + "/") for prefix in self.PUBLIC_PATH_PREFIXES)

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or self.is_public_endpoint(request.url.path):
            return await call_next(request)

        api_key = request.headers.get("X-API-Key")
        auth_header = request.headers.get("Authorization")

        try:
            user = get_auth_service().get_user_from_request(api_key=api_key, auth_header=auth_header)
        except HTTPException as e:
            logger.warning(
                "Authentication failed for %s %s: %s (IP: %s)",
                request.method,
                request.url.path,
                e.detail,
                request.client.host if request.client else "unknown",
            )
            return fail(
                request,
                error="UNAUTHORIZED",
                message="Authentication required for this endpoint",
                details={
                    "path": request.url.path,
                    "method": request.method,
                    "hint": "Provide X-API-Key header or Authorization Bearer token",
                },
                status_code=401,
                headers={"WWW-Authenticate": "Bearer"},
            )

        request.state.user_id = user.user_id
        request.state.clinic_id = user.clinic_id
        request.state.role = user.role
        logger.debug("Authenticated user %s (clinic %s) accessing %s", user.user_id, user.clinic_id, request.url.path)
        return await call_next(request)
