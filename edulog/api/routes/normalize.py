"""
AI rewrite endpoint.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from edulog.api.dependencies import get_service
from edulog.api.routes.health import NoticeModel
from edulog.core.service import EduLogService

router = APIRouter(tags=["normalize"])


class NormalizeBody(BaseModel):
    text: str


class NormalizeResponse(BaseModel):
    text: str
    ok: bool
    notice: NoticeModel


@router.post("/normalize", response_model=NormalizeResponse)
async def normalize_text(body: NormalizeBody, service: EduLogService = Depends(get_service)):
    """
    Rewrite text into the school-record register.

    Failures come back as an error notice with the input text unchanged.
    """
    if service.normalizer.busy:
        raise HTTPException(status_code=409, detail="Normalization already in progress")
    result = await service.polish(body.text)
    return NormalizeResponse(
        text=result.text,
        ok=result.ok,
        notice=NoticeModel(**result.notice.to_dict()),
    )
