"""
Main EduLog service: wires store, roster, synchronizer and normalizer.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from edulog.core.notices import (
    Notice,
    NoticeBoard,
    NoticeKind,
    POLISH_FAILED,
    POLISH_SUCCEEDED,
    PUSH_FAILED,
    PUSH_SENT,
    RECORD_SAVED_LOCALLY,
    RECORD_UPDATED,
    ROSTER_FETCH_FAILED,
    SETTINGS_SAVED,
)
from edulog.normalizer.client import TextNormalizer
from edulog.records.models import ActivityRecord, Student
from edulog.records.store import RecordStore
from edulog.roster.cache import RefreshResult, RefreshStatus, RosterCache
from edulog.storage.local import LocalStorage
from edulog.sync.synchronizer import PushResult, RecordSynchronizer
from edulog.shared.config import settings
from edulog.shared.exceptions import InvalidRecordError, NormalizationError, RecordNotFoundError
from edulog.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SaveResult:
    """Outcome of saving a record locally (and maybe scheduling its push)."""
    record: ActivityRecord
    created: bool
    notice: Notice
    push_task: Optional["asyncio.Task[PushResult]"] = None


@dataclass
class PolishResult:
    """Normalized text, or the untouched input plus an error notice."""
    text: str
    ok: bool
    notice: Notice


@dataclass
class SettingsResult:
    url: Optional[str]
    refresh: RefreshResult
    notices: List[Notice] = field(default_factory=list)


class EduLogService:
    """Constructed once at startup; every collaborator can be passed in."""

    def __init__(
        self,
        storage: Optional[LocalStorage] = None,
        store: Optional[RecordStore] = None,
        roster: Optional[RosterCache] = None,
        synchronizer: Optional[RecordSynchronizer] = None,
        normalizer: Optional[TextNormalizer] = None,
        notices: Optional[NoticeBoard] = None
    ):
        self.storage = storage or LocalStorage()
        self.store = store or RecordStore(self.storage)
        self.roster = roster or RosterCache(self.storage)
        self.synchronizer = synchronizer or RecordSynchronizer()
        self.normalizer = normalizer or TextNormalizer()
        self.notices = notices or NoticeBoard()

    async def startup(self):
        """Load records, then refresh the roster if an endpoint is saved."""
        self.store.load()
        if self.roster.configured_url:
            await self.refresh_roster()
        logger.info("EduLog service started", extra={"action": "startup"})

    async def refresh_roster(self, url: Optional[str] = None) -> RefreshResult:
        """
        Refresh the roster; a failure is posted to the notice board.

        When the endpoint was replaced mid-flight the dropped result is
        followed by a fetch from the newly saved endpoint.
        """
        result = await self._refresh_current(url)
        if result.status == RefreshStatus.FAILED:
            self.notices.post(Notice(ROSTER_FETCH_FAILED, NoticeKind.ERROR))
        return result

    async def _refresh_current(self, url: Optional[str] = None) -> RefreshResult:
        result = await self.roster.refresh(url)
        if result.status == RefreshStatus.STALE:
            result = await self.roster.refresh()
        return result

    async def save_settings(self, url: str) -> SettingsResult:
        """
        Persist the roster endpoint and fetch from it.

        Notices come back in the result only. If another refresh is in
        flight it adopts the new endpoint when it lands.
        """
        saved = self.roster.save_url(url)
        refresh = await self._refresh_current()
        notices = [Notice(SETTINGS_SAVED)]
        if refresh.status == RefreshStatus.FAILED:
            notices.insert(0, Notice(ROSTER_FETCH_FAILED, NoticeKind.ERROR))
        return SettingsResult(url=saved, refresh=refresh, notices=notices)

    def create_record(
        self,
        student: Student,
        content: str,
        class_id: Optional[str] = None
    ) -> SaveResult:
        """
        Insert a new record, then schedule its push when an endpoint is set.

        The local write has completed before the push is scheduled.
        Must be called from within a running event loop when pushing.
        """
        content = self._clean_content(content)
        active_class = self.roster.get_class(class_id) if class_id else None
        class_name = active_class.name if active_class else settings.default_class_name

        record = ActivityRecord.create(
            student=student,
            class_id=class_id or "",
            class_name=class_name,
            content=content,
            record_type=settings.record_type,
        )
        self.store.insert(record)
        notice = Notice(RECORD_SAVED_LOCALLY)

        push_task = None
        endpoint = self.roster.configured_url
        if endpoint:
            push_task = self.synchronizer.dispatch(endpoint, record)
            push_task.add_done_callback(self._on_push_done)

        return SaveResult(record=record, created=True, notice=notice, push_task=push_task)

    def edit_record(self, record_id: str, content: str) -> SaveResult:
        """Replace a record's content locally. Edits are never pushed."""
        content = self._clean_content(content)
        updated = self.store.update(record_id, content)
        if updated is None:
            raise RecordNotFoundError(f"No record with id {record_id}")
        notice = Notice(RECORD_UPDATED)
        return SaveResult(record=updated, created=False, notice=notice)

    def save_record(
        self,
        student: Student,
        content: str,
        class_id: Optional[str] = None,
        editing_id: Optional[str] = None
    ) -> SaveResult:
        """Create a record, or edit one when editing_id is given."""
        if editing_id:
            return self.edit_record(editing_id, content)
        return self.create_record(student, content, class_id=class_id)

    def _clean_content(self, content: str) -> str:
        content = (content or "").strip()
        if not content:
            raise InvalidRecordError("Record content is empty")
        return content

    def _on_push_done(self, task: "asyncio.Task[PushResult]"):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Record push task crashed: {error}", extra={"action": "record_push"})
            self.notices.post(Notice(PUSH_FAILED, NoticeKind.ERROR))
            return
        result = task.result()
        if result.dispatched:
            self.notices.post(Notice(PUSH_SENT))
        else:
            self.notices.post(Notice(PUSH_FAILED, NoticeKind.ERROR))

    async def polish(self, text: str) -> PolishResult:
        """Normalize text; on failure hand the input back untouched."""
        try:
            polished = await self.normalizer.normalize(text)
        except NormalizationError as e:
            notice = Notice(str(e) or POLISH_FAILED, NoticeKind.ERROR)
            return PolishResult(text=text, ok=False, notice=notice)
        notice = Notice(POLISH_SUCCEEDED)
        return PolishResult(text=polished, ok=True, notice=notice)

    def recent(self) -> List[Tuple[str, List[ActivityRecord]]]:
        return self.store.grouped_by_date()

    def status(self) -> Dict[str, Any]:
        return {
            "connected": self.roster.connected,
            "url_configured": self.roster.configured_url is not None,
            "record_count": len(self.store),
            "class_count": len(self.roster.classes),
            "loading": self.roster.loading,
            "syncing": self.synchronizer.syncing,
            "normalizing": self.normalizer.busy,
        }

    async def aclose(self):
        """Let pending pushes finish, then release HTTP clients."""
        await self.synchronizer.aclose()
        await self.roster.aclose()
        await self.normalizer.aclose()
