"""Typed events published by the streaming core.

The transcriber and runner never draw to a terminal; they publish
immutable events on an EventChannel. Display code reads the channel with
``async for``; in-loop consumers that must react synchronously (the
first-word hook into MetricsEngine) register listeners instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from streaming_benchmark.metrics.models import ChunkTiming

logger = logging.getLogger(__name__)

DEFAULT_MAX_EVENTS = 256


@dataclass(frozen=True)
class TranscriptUpdated:
    """Confirmed and unconfirmed text after a chunk was transcribed."""

    chunk_index: int
    confirmed_text: str
    unconfirmed_text: str


@dataclass(frozen=True)
class FirstWord:
    """The first confirmed text of a run."""

    chunk_index: int
    text: str


@dataclass(frozen=True)
class ChunkTimed:
    """A chunk completed and its timing was recorded."""

    timing: ChunkTiming


@dataclass(frozen=True)
class ChunkFailed:
    """Inference failed for a chunk; it was dropped."""

    chunk_index: int
    error: str


StreamEvent = TranscriptUpdated | FirstWord | ChunkTimed | ChunkFailed
EventListener = Callable[[StreamEvent], None]

_CLOSED = object()


class EventChannel:
    """Bounded, drop-oldest event queue for one asyncio loop.

    publish() never blocks: when the queue is full the oldest queued event
    is discarded. Subscribers iterate with ``async for`` until close().
    publish() and close() must be called from the loop's thread.

    Args:
        maxsize: Queue capacity (default 256).
    """

    def __init__(self, maxsize: int = DEFAULT_MAX_EVENTS) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._listeners: list[EventListener] = []
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def add_listener(self, listener: EventListener) -> None:
        """Call ``listener`` synchronously for every published event."""
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: StreamEvent) -> None:
        if self._closed:
            logger.debug("Event published after close: %r", event)
            return
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.error("Event listener failed for %s", type(event).__name__, exc_info=True)
        self._put(event)

    def _put(self, item: object) -> None:
        if self._queue.full():
            dropped = self._queue.get_nowait()
            self.dropped += 1
            logger.debug("Event queue full, dropped %r", dropped)
        self._queue.put_nowait(item)

    def close(self) -> None:
        """End iteration once the already queued events are consumed."""
        if self._closed:
            return
        self._closed = True
        self._put(_CLOSED)

    def __aiter__(self) -> EventChannel:
        return self

    async def __anext__(self) -> StreamEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any other subscriber
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]
