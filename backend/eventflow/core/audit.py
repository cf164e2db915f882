# eventflow/core/audit.py
"""
Append-only writer for audit events.

Request handlers never wait on (or fail because of) the audit trail: entries
are pushed onto an asyncio queue and a background task inserts them. Write
failures are logged and counted so the failure rate can be monitored via
/health. When the worker is not running (tests, one-off scripts) or the queue
is full, entries are written inline with the same swallow-and-log policy.
"""
import asyncio
import logging
from typing import Any

from eventflow.config import settings
from eventflow.models.event import Event

logger = logging.getLogger("uvicorn.error")


class AuditWriter:
    """Queue-backed writer for Event rows."""

    def __init__(self, max_pending: int = 1000) -> None:
        self._max_pending = max_pending
        self._queue: asyncio.Queue[dict[str, Any]] | None = None
        self._task: asyncio.Task[None] | None = None
        self.written = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def start(self) -> None:
        """Start the background consumer (idempotent)."""
        if self.running:
            return
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._max_pending)
        self._queue = queue
        self._task = asyncio.create_task(self._consume(queue))
        logger.info("[audit] writer started (max_pending=%d)", self._max_pending)

    async def close(self) -> None:
        """Flush queued entries and stop the consumer."""
        if self._queue is not None and self.running:
            await self._queue.join()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._queue = None
        logger.info("[audit] writer closed. Written: %d, Failed: %d", self.written, self.failed)

    async def drain(self) -> None:
        """Wait until every queued entry has been written (or has failed)."""
        if self._queue is not None and self.running:
            await self._queue.join()

    async def submit(self, entry: dict[str, Any]) -> None:
        """
        Queue an event row for insertion.

        Args:
            entry: Keyword arguments for Event.create (type, message, user_id, ip, user_agent, metadata)
        """
        if self._queue is None or not self.running:
            await self._write(entry)
            return
        try:
            self._queue.put_nowait(entry)
        except asyncio.QueueFull:
            logger.warning("[audit] queue full (%d pending), writing inline", self._queue.qsize())
            await self._write(entry)

    def stats(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "pending": self.pending,
            "written": self.written,
            "failed": self.failed,
        }

    async def _consume(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        while True:
            entry = await queue.get()
            try:
                await self._write(entry)
            finally:
                queue.task_done()

    async def _write(self, entry: dict[str, Any]) -> None:
        try:
            await Event.create(**entry)
            self.written += 1
        except Exception:
            # The audit trail never fails the primary operation
            self.failed += 1
            logger.exception("[audit] failed to write %s event for user=%s",
                             entry.get("type"), entry.get("user_id"))


# Global writer instance, started/stopped by the application lifecycle
audit_writer = AuditWriter(max_pending=settings.audit_queue_size)
