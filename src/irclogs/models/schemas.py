"""
API response schemas.

Response models for health checks and the channel listing.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AskHealth(BaseModel):
    """Ask assistant availability."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "enabled": True,
                "capacity": 4,
                "active_sessions": 1,
            }
        }
    )

    enabled: bool = Field(..., description="Ask is configured")
    capacity: int = Field(default=0, ge=0, description="Concurrent session permits")
    active_sessions: int = Field(default=0, ge=0, description="Sessions currently running")


class HealthResponse(BaseModel):
    """Service health."""

    status: Literal["healthy", "degraded"] = Field(..., description="Overall status")
    version: str = Field(..., description="Application version")
    channels: int = Field(default=0, ge=0, description="Discovered channels")
    ask: AskHealth


class ChannelInfo(BaseModel):
    """One channel in the listing."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "path": "OFTC/#example",
                "public": True,
                "first_date": "2024-01-01",
                "last_date": "2024-06-30",
                "files": 182,
            }
        }
    )

    path: str = Field(..., description="Slash-separated channel path")
    public: bool = Field(..., description="Searchable by ask")
    first_date: str | None = Field(default=None, description="Oldest log date")
    last_date: str | None = Field(default=None, description="Newest log date")
    files: int = Field(default=0, ge=0, description="Number of dated logs")


class ChannelListResponse(BaseModel):
    channels: list[ChannelInfo]


__all__ = [
    "AskHealth",
    "ChannelInfo",
    "ChannelListResponse",
    "HealthResponse",
]
