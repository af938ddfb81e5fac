"""
Best-effort, one-shot push of new records to the spreadsheet endpoint.

The endpoint's answer is never inspected: a dispatched request has an
unknown outcome, which is distinct from a request that never left.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

import httpx

from edulog.records.models import ActivityRecord
from edulog.shared.config import settings
from edulog.shared.exceptions import SyncDispatchError
from edulog.shared.logging import get_logger, log_with_context

logger = get_logger(__name__)


class PushOutcome(str, Enum):
    UNVERIFIED = "unverified"  # sent; delivery not confirmed
    DISPATCH_FAILED = "dispatch_failed"


@dataclass
class PushResult:
    """Result of a single push."""
    record_id: str
    outcome: PushOutcome
    error: Optional[str] = None

    @property
    def dispatched(self) -> bool:
        return self.outcome == PushOutcome.UNVERIFIED


class RecordSynchronizer:
    """Sends newly created records to the remote endpoint, no retries."""

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.http.timeout,
            follow_redirects=settings.http.follow_redirects,
        )
        self._pending: Set[asyncio.Task] = set()

    @property
    def syncing(self) -> bool:
        """True while any push is in flight."""
        return bool(self._pending)

    async def push(self, endpoint_url: str, record: ActivityRecord) -> PushResult:
        """
        POST the record payload once.

        Only a transport-level failure is reported as DISPATCH_FAILED;
        any HTTP response, whatever its status, counts as UNVERIFIED.
        """
        body = record.to_payload().model_dump_json(by_alias=True)
        try:
            await self._send(endpoint_url, body)
        except SyncDispatchError as e:
            log_with_context(
                logger, logging.WARNING, f"Record push not dispatched: {e}",
                record_id=record.id, class_id=record.class_id, action="record_push",
                outcome=PushOutcome.DISPATCH_FAILED.value
            )
            return PushResult(record_id=record.id, outcome=PushOutcome.DISPATCH_FAILED, error=str(e))

        log_with_context(
            logger, logging.INFO, "Record push dispatched (unverified)",
            record_id=record.id, class_id=record.class_id, action="record_push",
            outcome=PushOutcome.UNVERIFIED.value
        )
        return PushResult(record_id=record.id, outcome=PushOutcome.UNVERIFIED)

    async def _send(self, endpoint_url: str, body: str):
        try:
            # text/plain is what a no-cors browser POST carries; Apps Script reads the raw body
            await self.http_client.post(
                endpoint_url,
                content=body.encode("utf-8"),
                headers={"Content-Type": "text/plain;charset=utf-8"},
            )
        except (httpx.TransportError, httpx.InvalidURL) as e:
            raise SyncDispatchError(str(e) or type(e).__name__) from e

    def dispatch(self, endpoint_url: str, record: ActivityRecord) -> "asyncio.Task[PushResult]":
        """
        Schedule push() on the running loop and return immediately.

        The task is held until it finishes so it is not collected mid-flight.
        """
        task = asyncio.get_running_loop().create_task(self.push(endpoint_url, record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self):
        """Wait for every in-flight push to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self):
        await self.drain()
        await self.http_client.aclose()
