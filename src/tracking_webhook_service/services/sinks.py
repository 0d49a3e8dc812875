"""Downstream consumers of decoded domain events.

Usage::

    from tracking_webhook_service.services.sinks import LoggingEventSink, QueueingEventSink

    sink = QueueingEventSink(LoggingEventSink(), maxsize=1000)

    # In create_app():
    app.on_startup.append(sink.start)
    app.on_cleanup.append(sink.stop)
"""
from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

import structlog
from aiohttp import web

from tracking_webhook_service.core.exceptions import SinkError
from tracking_webhook_service.domain.events import DomainEvent, TrackingStarted

logger = structlog.get_logger(__name__)


@runtime_checkable
class EventSink(Protocol):
    """Receives every successfully decoded webhook event.

    Called inline by the ingress route; slow sinks delay the HTTP response, so
    anything expensive should sit behind :class:`QueueingEventSink`.
    """

    async def handle(self, event: DomainEvent) -> None: ...


class LoggingEventSink:
    """Writes a one-line summary of each event to the log."""

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, TrackingStarted):
            logger.info(
                "tracking started",
                user_id=event.user_id,
                tracking_id=event.tracking.id,
                activity=event.tracking.activity.name,
                started_at=event.tracking.started_at.isoformat(),
            )
            return
        entry = event.time_entry
        if entry is None:
            logger.info("tracking stopped", user_id=event.user_id, time_entry=None)
            return
        logger.info(
            "tracking stopped",
            user_id=event.user_id,
            time_entry_id=entry.id,
            activity=entry.activity.name,
            started_at=entry.duration.started_at.isoformat(),
            stopped_at=entry.duration.stopped_at.isoformat(),
        )


_QUEUE_TASK_KEY = "__event_sink_drain_task__"


class QueueingEventSink:
    """Acknowledges events immediately and hands them to ``inner`` in the background.

    Lifecycle is managed through :meth:`start` / :meth:`stop`, which are
    compatible with ``app.on_startup`` / ``app.on_cleanup``. Events still
    queued at shutdown are drained before the task exits, for at most
    ``shutdown_timeout`` seconds; whatever is left after that is dropped.
    """

    def __init__(self, inner: EventSink, *, maxsize: int = 1000, shutdown_timeout: float = 5.0):
        self._inner = inner
        self._shutdown_timeout = shutdown_timeout
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=maxsize)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def handle(self, event: DomainEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as exc:
            raise SinkError(f"Event queue is full ({self._queue.maxsize} pending)") from exc

    async def start(self, app: web.Application) -> None:
        app[_QUEUE_TASK_KEY] = asyncio.create_task(self._drain())

    async def stop(self, app: web.Application) -> None:
        task = app.get(_QUEUE_TASK_KEY)
        if task is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=self._shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "event sink drain timed out",
                pending=self.pending,
                timeout_s=self._shutdown_timeout,
            )
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._inner.handle(event)
            except Exception:
                logger.exception("event sink failed", kind=event.kind, user_id=event.user_id)
            finally:
                self._queue.task_done()
