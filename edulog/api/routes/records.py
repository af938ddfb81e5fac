"""
Activity record endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from edulog.api.dependencies import get_service
from edulog.api.routes.health import NoticeModel
from edulog.core.service import EduLogService, SaveResult
from edulog.records.models import ActivityRecord

router = APIRouter(prefix="/records", tags=["records"])


class CreateRecordBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    class_id: str
    student_id: str
    content: str


class EditRecordBody(BaseModel):
    content: str


class SaveResponse(BaseModel):
    record: ActivityRecord
    created: bool
    push_scheduled: bool
    notice: NoticeModel


class DateGroup(BaseModel):
    date: str
    records: List[ActivityRecord]


def _save_response(result: SaveResult) -> SaveResponse:
    return SaveResponse(
        record=result.record,
        created=result.created,
        push_scheduled=result.push_task is not None,
        notice=NoticeModel(**result.notice.to_dict()),
    )


@router.get("", response_model=List[ActivityRecord])
async def list_records(service: EduLogService = Depends(get_service)):
    """All records, most recent first."""
    return list(service.store.records)


@router.get("/recent", response_model=List[DateGroup])
async def recent_records(service: EduLogService = Depends(get_service)):
    """Records grouped by calendar date, newest date first."""
    return [DateGroup(date=day, records=group) for day, group in service.recent()]


@router.post("", response_model=SaveResponse, status_code=201)
async def create_record(body: CreateRecordBody, service: EduLogService = Depends(get_service)):
    student = service.roster.get_student(body.class_id, body.student_id)
    if student is None:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown student {body.student_id} in class {body.class_id}",
        )
    result = service.create_record(student, body.content, class_id=body.class_id)
    return _save_response(result)


@router.put("/{record_id}", response_model=SaveResponse)
async def edit_record(record_id: str, body: EditRecordBody, service: EduLogService = Depends(get_service)):
    result = service.edit_record(record_id, body.content)
    return _save_response(result)
