"""
In-memory roster of classes and students, refreshed from the spreadsheet endpoint.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from edulog.records.models import ClassGroup, Student
from edulog.shared.config import settings
from edulog.shared.exceptions import RosterFetchError
from edulog.shared.logging import get_logger
from edulog.storage.local import LocalStorage, SHEET_URL_KEY

logger = get_logger(__name__)

_roster_adapter = TypeAdapter(List[ClassGroup])


class RefreshStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"  # no URL configured
    BUSY = "busy"  # a refresh is already in flight
    STALE = "stale"  # endpoint changed while the fetch was in flight; result dropped


@dataclass
class RefreshResult:
    """Outcome of a roster refresh."""
    status: RefreshStatus
    class_count: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == RefreshStatus.OK


class RosterCache:
    """Classes and students, replaced wholesale on every successful refresh."""

    def __init__(self, storage: LocalStorage, http_client: Optional[httpx.AsyncClient] = None):
        self.storage = storage
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.http.timeout,
            follow_redirects=settings.http.follow_redirects,
        )
        self._classes: List[ClassGroup] = []
        self._configured_url: Optional[str] = storage.get(SHEET_URL_KEY) or None
        # Optimistic until the first refresh says otherwise
        self.connected = self._configured_url is not None
        self.loading = False

    @property
    def configured_url(self) -> Optional[str]:
        return self._configured_url

    @property
    def classes(self) -> List[ClassGroup]:
        return list(self._classes)

    def save_url(self, url: str) -> Optional[str]:
        """Persist an explicitly entered endpoint URL."""
        url = url.strip()
        if url:
            self.storage.set(SHEET_URL_KEY, url)
            self._configured_url = url
        else:
            self.storage.remove(SHEET_URL_KEY)
            self._configured_url = None
        logger.info("Roster endpoint saved", extra={"action": "roster_url_saved"})
        return self._configured_url

    async def refresh(self, url: Optional[str] = None) -> RefreshResult:
        """
        Fetch the roster from url (or the configured endpoint).

        On success the roster is replaced and the URL persisted. On any
        failure the previous roster is kept and `connected` drops to False.
        If save_url() changes the endpoint while the fetch is in flight, the
        late result is dropped and STALE returned. Never raises.
        """
        target = (url or self._configured_url or "").strip()
        if not target:
            return RefreshResult(status=RefreshStatus.SKIPPED)
        if self.loading:
            return RefreshResult(status=RefreshStatus.BUSY)

        issued_for = self._configured_url
        self.loading = True
        try:
            classes = await self._fetch(target)
        except RosterFetchError as e:
            if self._configured_url != issued_for:
                return self._stale(target)
            self.connected = False
            logger.warning(f"Roster refresh failed: {e}", extra={"action": "roster_refresh"})
            return RefreshResult(status=RefreshStatus.FAILED, error=str(e))
        finally:
            self.loading = False

        if self._configured_url != issued_for:
            return self._stale(target)

        self._classes = classes
        self.connected = True
        self.storage.set(SHEET_URL_KEY, target)
        self._configured_url = target
        logger.info(f"Roster refreshed: {len(classes)} classes", extra={"action": "roster_refresh"})
        return RefreshResult(status=RefreshStatus.OK, class_count=len(classes))

    def _stale(self, target: str) -> RefreshResult:
        logger.info(
            f"Roster result for {target} dropped, endpoint changed",
            extra={"action": "roster_refresh"}
        )
        return RefreshResult(status=RefreshStatus.STALE)

    async def _fetch(self, url: str) -> List[ClassGroup]:
        """GET the endpoint and validate a JSON array of classes."""
        try:
            response = await self.http_client.get(url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RosterFetchError(f"request failed: {e}") from e
        except ValueError as e:
            raise RosterFetchError(f"malformed JSON: {e}") from e

        if not isinstance(data, list):
            raise RosterFetchError(f"expected a JSON array, got {type(data).__name__}")

        try:
            return _roster_adapter.validate_python(data)
        except ValidationError as e:
            raise RosterFetchError(f"invalid roster shape: {e.error_count()} errors") from e

    def get_class(self, class_id: str) -> Optional[ClassGroup]:
        for class_group in self._classes:
            if class_group.id == class_id:
                return class_group
        return None

    def get_student(self, class_id: str, student_id: str) -> Optional[Student]:
        class_group = self.get_class(class_id)
        if class_group is None:
            return None
        for student in class_group.students:
            if student.id == student_id:
                return student
        return None

    def filter_classes(self, query: str = "") -> List[ClassGroup]:
        """Classes whose name contains query, ignoring case."""
        needle = query.lower()
        return [c for c in self._classes if needle in c.name.lower()]

    def filter_students(self, class_id: str, query: str = "") -> List[Student]:
        """Students of a class matching query by name (ignoring case) or number."""
        class_group = self.get_class(class_id)
        if class_group is None:
            return []
        needle = query.lower()
        return [
            s for s in class_group.students
            if needle in s.name.lower() or query in s.number
        ]

    async def aclose(self):
        await self.http_client.aclose()
