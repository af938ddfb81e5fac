"""
Pytest fixtures for EduLog tests.
"""

from typing import Any, Callable, Dict, List

import httpx
import pytest
from unittest.mock import AsyncMock

from edulog.records.models import ActivityRecord, Student
from edulog.records.store import RecordStore
from edulog.storage.local import LocalStorage

ROSTER_URL = "https://script.google.com/macros/s/test-deployment/exec"


@pytest.fixture
def roster_url() -> str:
    return ROSTER_URL


@pytest.fixture
def roster_payload() -> List[Dict[str, Any]]:
    """Roster in the shape the spreadsheet web app returns."""
    return [
        {
            "id": "c1",
            "name": "2-1",
            "students": [
                {"id": "s3", "name": "김민수", "number": "3"},
                {"id": "s12", "name": "이서연", "number": "12"},
            ],
        },
        {
            "id": "c2",
            "name": "3-2 Science",
            "students": [
                {"id": "s1", "name": "Alex Kim", "number": 1},
            ],
        },
    ]


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    """LocalStorage on a throwaway SQLite file."""
    return LocalStorage(tmp_path / "edulog.sqlite")


@pytest.fixture
def store(storage) -> RecordStore:
    return RecordStore(storage)


@pytest.fixture
def student() -> Student:
    return Student(id="s3", name="김민수", number="3")


@pytest.fixture
def make_record(student) -> Callable[..., ActivityRecord]:
    """Factory for records with a controllable timestamp."""
    def _make(content: str = "수업에 적극적으로 참여함", timestamp: int = None) -> ActivityRecord:
        record = ActivityRecord.create(
            student=student,
            class_id="c1",
            class_name="2-1",
            content=content,
            record_type="관찰",
        )
        if timestamp is not None:
            record = record.model_copy(update={"timestamp": timestamp})
        return record
    return _make


@pytest.fixture
def http_log() -> List[httpx.Request]:
    """Requests seen by the mock transports."""
    return []


@pytest.fixture
def roster_client(roster_payload, http_log) -> httpx.AsyncClient:
    """AsyncClient whose GET returns the roster and whose POST answers 200."""
    def handler(request: httpx.Request) -> httpx.Response:
        http_log.append(request)
        if request.method == "GET":
            return httpx.Response(200, json=roster_payload)
        return httpx.Response(200, text="ok")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def client_for():
    """Build an AsyncClient served by a request handler."""
    def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _client


@pytest.fixture
def mock_llm():
    """Mock LLM client with a usable key that returns canned text."""
    mock = AsyncMock()
    mock.api_key = "test-key-123456"
    mock.get_completion.return_value = "수업 시간에 적극적으로 발표하며 탐구 태도가 향상됨."
    return mock
