"""
Roster endpoints: refresh and filtered listings.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from edulog.api.dependencies import get_service
from edulog.core.service import EduLogService

router = APIRouter(prefix="/roster", tags=["roster"])


class RefreshBody(BaseModel):
    url: Optional[str] = None


class RefreshResponse(BaseModel):
    status: str
    connected: bool
    class_count: int
    error: Optional[str] = None


class ClassSummary(BaseModel):
    id: str
    name: str
    student_count: int


class StudentModel(BaseModel):
    id: str
    name: str
    number: str


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_roster(
    body: Optional[RefreshBody] = None,
    service: EduLogService = Depends(get_service),
):
    result = await service.refresh_roster(body.url if body else None)
    return RefreshResponse(
        status=result.status.value,
        connected=service.roster.connected,
        class_count=len(service.roster.classes),
        error=result.error,
    )


@router.get("/classes", response_model=List[ClassSummary])
async def list_classes(q: str = "", service: EduLogService = Depends(get_service)):
    return [
        ClassSummary(id=c.id, name=c.name, student_count=len(c.students))
        for c in service.roster.filter_classes(q)
    ]


@router.get("/classes/{class_id}/students", response_model=List[StudentModel])
async def list_students(class_id: str, q: str = "", service: EduLogService = Depends(get_service)):
    if service.roster.get_class(class_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown class {class_id}")
    return [StudentModel(**s.model_dump()) for s in service.roster.filter_students(class_id, q)]
