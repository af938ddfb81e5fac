"""
RecordStore: the full list of activity records as one durable blob.

Every mutation rewrites the whole blob. There is no incremental write path,
no size cap and no archival; records on one device stay few.
"""

import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from pydantic import TypeAdapter, ValidationError

from edulog.records.models import ActivityRecord
from edulog.shared.config import settings
from edulog.shared.exceptions import StorageError
from edulog.shared.logging import get_logger, log_with_context
from edulog.storage.local import LocalStorage, RECORDS_KEY

logger = get_logger(__name__)

_records_adapter = TypeAdapter(List[ActivityRecord])

_WEEKDAYS_KO = ("월", "화", "수", "목", "금", "토", "일")


def format_date_ko(day) -> str:
    """Korean long date label, e.g. 2024년 3월 5일 (화)."""
    return f"{day.year}년 {day.month}월 {day.day}일 ({_WEEKDAYS_KO[day.weekday()]})"


class RecordStore:
    """Most-recent-first list of records backed by a single storage slot."""

    def __init__(self, storage: LocalStorage, key: str = RECORDS_KEY):
        self.storage = storage
        self.key = key
        self._records: List[ActivityRecord] = []

    @property
    def records(self) -> Tuple[ActivityRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> Optional[ActivityRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def load(self) -> List[ActivityRecord]:
        """
        Read the blob into memory.

        A missing or unreadable blob yields an empty list; this never raises.
        """
        try:
            raw = self.storage.get(self.key)
        except StorageError as e:
            logger.warning(f"Record blob unreadable, starting empty: {e}", extra={"action": "store_load"})
            raw = None

        records: List[ActivityRecord] = []
        if raw:
            try:
                records = _records_adapter.validate_python(json.loads(raw))
            except (ValueError, ValidationError) as e:
                # json.JSONDecodeError is a ValueError
                logger.warning(
                    f"Record blob malformed, starting empty: {str(e)[:200]}",
                    extra={"action": "store_load"}
                )
                records = []

        self._records = records
        logger.info(f"Loaded {len(records)} records", extra={"action": "store_load"})
        return list(records)

    def replace_all(self, records: Sequence[ActivityRecord]):
        """Serialize and durably write the full sequence, overwriting the blob."""
        records = list(records)
        blob = _records_adapter.dump_json(records, by_alias=True).decode("utf-8")
        self.storage.set(self.key, blob)
        self._records = records

    def insert(self, record: ActivityRecord) -> ActivityRecord:
        """Prepend a new record and rewrite the blob."""
        self.replace_all([record, *self._records])
        log_with_context(
            logger, logging.INFO, "Record inserted",
            record_id=record.id, class_id=record.class_id, action="record_insert",
            record_count=len(self._records)
        )
        return record

    def update(self, record_id: str, new_content: str) -> Optional[ActivityRecord]:
        """
        Replace only the content of the matching record.

        Returns the updated record, or None (and writes nothing) when the
        id is unknown.
        """
        for index, record in enumerate(self._records):
            if record.id == record_id:
                updated = record.with_content(new_content)
                records = list(self._records)
                records[index] = updated
                self.replace_all(records)
                log_with_context(
                    logger, logging.INFO, "Record content updated",
                    record_id=record_id, class_id=record.class_id, action="record_update"
                )
                return updated

        logger.debug(f"Update ignored, no record {record_id}")
        return None

    def grouped_by_date(
        self,
        tz: Optional[str] = None
    ) -> List[Tuple[str, List[ActivityRecord]]]:
        """
        Group records by the calendar date of their timestamp.

        Groups are ordered newest date first; records keep store order
        within a group. This is a read-time projection only.
        """
        zone = ZoneInfo(tz or settings.timezone)
        groups: Dict[object, List[ActivityRecord]] = {}
        for record in self._records:
            day = datetime.fromtimestamp(record.timestamp / 1000, tz=zone).date()
            groups.setdefault(day, []).append(record)

        return [
            (format_date_ko(day), groups[day])
            for day in sorted(groups, reverse=True)
        ]
