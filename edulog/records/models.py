"""
Pydantic models for roster and activity records.

Field names serialize in camelCase so the persisted blob and the
spreadsheet payload share the web client's wire format.
"""

import time
import uuid
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _numeric_to_str(value):
    # Spreadsheet exports often deliver text cells as numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Student(_CamelModel):
    """A roster entry; `number` is the roster position as a display string."""
    id: str
    name: str
    number: str

    @field_validator("id", "name", "number", mode="before")
    @classmethod
    def _coerce_to_str(cls, value):
        return _numeric_to_str(value)


class ClassGroup(_CamelModel):
    """A class with its ordered list of students."""
    id: str
    name: str
    students: List[Student] = Field(default_factory=list)

    @field_validator("id", "name", mode="before")
    @classmethod
    def _coerce_to_str(cls, value):
        return _numeric_to_str(value)

    @field_validator("students")
    @classmethod
    def _unique_student_ids(cls, students: List[Student]) -> List[Student]:
        seen = set()
        for student in students:
            if student.id in seen:
                raise ValueError(f"duplicate student id {student.id!r}")
            seen.add(student.id)
        return students


class ActivityRecord(_CamelModel):
    """One observation about one student, with a snapshot of who and where."""
    id: str
    student_id: str
    student_name: str
    student_number: str
    class_id: str
    class_name: str
    type: str
    content: str
    timestamp: int  # ms since epoch

    @classmethod
    def create(
        cls,
        student: Student,
        class_id: str,
        class_name: str,
        content: str,
        record_type: str
    ) -> "ActivityRecord":
        """Build a new record with a fresh id and the current time."""
        return cls(
            id=str(uuid.uuid4()),
            student_id=student.id,
            student_name=student.name,
            student_number=student.number,
            class_id=class_id,
            class_name=class_name,
            type=record_type,
            content=content,
            timestamp=int(time.time() * 1000),
        )

    def with_content(self, content: str) -> "ActivityRecord":
        """Copy of this record with only `content` replaced."""
        return self.model_copy(update={"content": content})

    def student(self) -> Student:
        return Student(id=self.student_id, name=self.student_name, number=self.student_number)

    def to_payload(self) -> "RecordPayload":
        return RecordPayload(
            class_name=self.class_name,
            student_number=self.student_number,
            student_name=self.student_name,
            type=self.type,
            content=self.content,
        )


class RecordPayload(_CamelModel):
    """Body pushed to the spreadsheet endpoint for a new record."""
    class_name: str
    student_number: str
    student_name: str
    type: str
    content: str
