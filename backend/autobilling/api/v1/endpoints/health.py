"""
Health check endpoint.
Returns system status, uptime and the auto-billing backlog.
"""

from fastapi import APIRouter, Request

from autobilling.schemas.health import HealthResponse
from autobilling.deps.di_container import get_container

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def get_health(
    request: Request,
) -> HealthResponse:
    """Health check endpoint."""
    container = getattr(request.app.state, "container", None) or get_container()
    controller = container.health_controller()
    return await controller.get_health()
