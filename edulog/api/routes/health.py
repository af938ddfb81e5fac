"""
Health check and notice feed endpoints.
"""

import time
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from edulog.api.dependencies import get_service
from edulog.core.service import EduLogService

router = APIRouter(tags=["health"])

# Track startup time for uptime
_start_time: Optional[float] = None


def set_start_time(t: float):
    """Set application start time."""
    global _start_time
    _start_time = t


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    connected: bool
    url_configured: bool
    record_count: int
    class_count: int
    loading: bool
    syncing: bool
    normalizing: bool
    uptime_seconds: float


class NoticeModel(BaseModel):
    text: str
    kind: str


@router.get("/health", response_model=HealthResponse)
async def health_check(service: EduLogService = Depends(get_service)):
    """
    Service health check.
    Reports roster connection state, local record count and busy flags.
    """
    state = service.status()

    uptime_seconds = 0.0
    if _start_time:
        uptime_seconds = round(time.time() - _start_time, 2)

    return HealthResponse(
        status="healthy" if state["connected"] else "degraded",
        uptime_seconds=uptime_seconds,
        **state,
    )


@router.get("/notices", response_model=List[NoticeModel])
async def drain_notices(service: EduLogService = Depends(get_service)):
    """Pending notices, oldest first; the feed is cleared on read."""
    return [NoticeModel(**n.to_dict()) for n in service.notices.drain()]
