"""
Roster endpoint settings.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from edulog.api.dependencies import get_service
from edulog.api.routes.health import NoticeModel
from edulog.core.service import EduLogService

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsBody(BaseModel):
    url: str


class SettingsResponse(BaseModel):
    url: Optional[str]
    connected: bool
    refresh_status: Optional[str] = None
    notices: List[NoticeModel] = []


@router.get("", response_model=SettingsResponse)
async def read_settings(service: EduLogService = Depends(get_service)):
    return SettingsResponse(url=service.roster.configured_url, connected=service.roster.connected)


@router.put("", response_model=SettingsResponse)
async def save_settings(body: SettingsBody, service: EduLogService = Depends(get_service)):
    """Save the endpoint URL and refresh the roster from it."""
    result = await service.save_settings(body.url)
    return SettingsResponse(
        url=result.url,
        connected=service.roster.connected,
        refresh_status=result.refresh.status.value,
        notices=[NoticeModel(**n.to_dict()) for n in result.notices],
    )
