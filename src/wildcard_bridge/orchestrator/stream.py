"""Streaming emitter: progress events for one request over an async channel.

The producer (the orchestration loop's task) owns the channel. It publishes
exactly one START first and exactly one terminal event (COMPLETE or ERROR)
last, and closes the channel exactly once on every exit path. The consumer
observes closure as end-of-stream.
"""

import asyncio
from typing import Any, AsyncIterator

from wildcard_bridge.orchestrator.types import ProgressEvent, ProgressKind
from wildcard_bridge.telemetry import get_logger
from wildcard_bridge.telemetry.events import (
    STREAM_CLOSED,
    STREAM_EVENT_DROPPED,
    STREAM_OPENED,
)

log = get_logger(__name__)

_CLOSED = object()


class ProgressChannel:
    """Single-producer, single-consumer channel of progress events.

    Backed by an unbounded queue so a slow consumer never blocks the
    producer. Use as an async context manager on the producer side to
    guarantee closure.
    """

    def __init__(self, trace_id: str | None = None) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._trace_id = trace_id
        self._started = False
        self._terminal_sent = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def terminal_sent(self) -> bool:
        return self._terminal_sent

    def publish(self, kind: ProgressKind, data: dict[str, Any]) -> bool:
        """Queue an event; return False if it was dropped.

        Events after the terminal event, after closure, or PROGRESS/terminal
        events before START are dropped.
        """
        if self._closed or self._terminal_sent:
            reason = "closed" if self._closed else "after_terminal"
        elif kind == ProgressKind.START and self._started:
            reason = "duplicate_start"
        elif kind != ProgressKind.START and not self._started:
            reason = "before_start"
        else:
            reason = None

        if reason is not None:
            log.warning(
                STREAM_EVENT_DROPPED,
                kind=kind.value,
                reason=reason,
                trace_id=self._trace_id,
            )
            return False

        if kind == ProgressKind.START:
            self._started = True
        if kind.is_terminal:
            self._terminal_sent = True
        self._queue.put_nowait(ProgressEvent(kind=kind, data=data))
        return True

    def close(self) -> None:
        """Close the channel. Later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        log.debug(STREAM_CLOSED, trace_id=self._trace_id, terminal_sent=self._terminal_sent)

    async def __aenter__(self) -> "ProgressChannel":
        log.debug(STREAM_OPENED, trace_id=self._trace_id)
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
