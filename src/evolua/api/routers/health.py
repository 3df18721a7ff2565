"""
Health check endpoints.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ... import __version__
from ...core.config import get_settings
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str


@router.get("/", response_model=ApiResponse[HealthResponse])
async def health_check(request: Request):
    """Current status of the service."""
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        version=__version__,
        service="Evolua Patient Management",
    ), message="OK")


@router.get("/live", response_model=ApiResponse[Dict[str, str]])
async def liveness_check(request: Request):
    return ok(request, data={"status": "alive"})


@router.get("/ready", response_model=ApiResponse[Dict[str, Any]])
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Pings MongoDB when it is configured; in-memory mode is always ready.
    """
    checks: Dict[str, str] = {}
    all_ok = True

    if request.app.state.memory_store is not None:
        checks["database"] = "in-memory"
    else:
        try:
            client = request.app.state.mongo_client
            await client.admin.command("ping")
            checks["database"] = "ok"
        except Exception as e:
            checks["database"] = f"error: {str(e)[:50]}"
            all_ok = False

    checks["object_storage"] = "azure-blob" if get_settings().azure_blob.enabled else "in-memory"
    return ok(request, data={"ready": all_ok, "checks": checks}, message="OK" if all_ok else "DEGRADED")
