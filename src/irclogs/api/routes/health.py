"""
Health check endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from irclogs.api.dependencies import AppSettings, Channels
from irclogs.models.schemas import AskHealth, HealthResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Service status with channel count and ask capacity.",
    responses={
        200: {
            "description": "System health status",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "version": "1.0.0",
                        "channels": 12,
                        "ask": {"enabled": True, "capacity": 4, "active_sessions": 1},
                    }
                }
            },
        }
    },
    tags=["Health"],
)
async def health_check(request: Request, channels: Channels, settings: AppSettings) -> HealthResponse:
    """Report service health.

    An empty channel tree means the log roots are missing or unreadable,
    which is reported as degraded.
    """
    manager = getattr(request.app.state, "ask_manager", None)
    if manager is not None:
        ask_health = AskHealth(
            enabled=True,
            capacity=manager.gate.capacity,
            active_sessions=manager.active_sessions,
        )
    else:
        ask_health = AskHealth(enabled=False)

    channel_count = len(channels)
    return HealthResponse(
        status="healthy" if channel_count else "degraded",
        version=settings.app_version,
        channels=channel_count,
        ask=ask_health,
    )
