"""Per-test timing, backpressure detection, and aggregation.

MetricsEngine observes the chunk lifecycle only (started, completed,
dropped) and knows nothing about transcript text. Chunks that are
submitted but not yet completed are "in flight"; when more than
``backpressure_threshold`` are in flight at once, audio is arriving
faster than it can be processed and a backpressure event is counted.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable

from streaming_benchmark.metrics.models import (
    ChunkTiming,
    ComputeUnit,
    ModelMetrics,
    QualityRating,
)

logger = logging.getLogger(__name__)

DEFAULT_BACKPRESSURE_THRESHOLD = 2


class MetricsEngine:
    """Collects chunk timings for one model test.

    Args:
        backpressure_threshold: Maximum chunks in flight before a
            backpressure event is recorded (default 2).
        clock: Monotonic clock used for first-word latency.
    """

    def __init__(
        self,
        backpressure_threshold: int = DEFAULT_BACKPRESSURE_THRESHOLD,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if backpressure_threshold < 1:
            raise ValueError("backpressure_threshold must be >= 1")
        self.backpressure_threshold = backpressure_threshold
        self._clock = clock
        self._lock = threading.Lock()
        self._timings: list[ChunkTiming] = []
        self._in_flight = 0
        self._backpressure_events = 0
        self._test_start: float | None = None
        self._first_word: float | None = None

    def start_test(self) -> None:
        """Discard previous state and mark the start of a test."""
        with self._lock:
            self._clear()
            self._test_start = self._clock()

    def reset(self) -> None:
        """Discard all per-test state, including the start time."""
        with self._lock:
            self._clear()
            self._test_start = None

    def _clear(self) -> None:
        self._timings = []
        self._in_flight = 0
        self._backpressure_events = 0
        self._first_word = None

    def chunk_started(self) -> None:
        """Record that a chunk was submitted for processing."""
        with self._lock:
            self._in_flight += 1
            if self._in_flight > self.backpressure_threshold:
                self._backpressure_events += 1
                logger.debug(
                    "Backpressure: %d chunks in flight",
                    self._in_flight,
                    extra={"stage": "backpressure"},
                )

    def chunk_completed(
        self,
        audio_duration: float,
        processing_duration: float,
        chunk_index: int | None = None,
    ) -> ChunkTiming:
        """Record a completed chunk and return its timing entry.

        Args:
            audio_duration: Seconds of audio in the chunk.
            processing_duration: Seconds spent on inference.
            chunk_index: Chunk index; defaults to the number of chunks
                recorded so far.

        Returns:
            The immutable ChunkTiming appended to the log.
        """
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)
            ratio = processing_duration / audio_duration if audio_duration > 0 else 0.0
            timing = ChunkTiming(
                chunk_index=len(self._timings) if chunk_index is None else chunk_index,
                audio_duration=audio_duration,
                processing_time=processing_duration,
                processing_ratio=ratio,
                had_backpressure=self._in_flight >= self.backpressure_threshold,
            )
            self._timings.append(timing)
            return timing

    def chunk_dropped(self) -> None:
        """Record that an in-flight chunk failed and produced no timing."""
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)

    def record_first_word(self) -> None:
        """Capture the time of the first confirmed word (first call wins)."""
        with self._lock:
            if self._first_word is None:
                self._first_word = self._clock()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def backpressure_events(self) -> int:
        with self._lock:
            return self._backpressure_events

    @property
    def chunk_timings(self) -> tuple[ChunkTiming, ...]:
        with self._lock:
            return tuple(self._timings)

    @property
    def latest_chunk_timing(self) -> ChunkTiming | None:
        with self._lock:
            return self._timings[-1] if self._timings else None

    @property
    def first_word_latency(self) -> float:
        """Seconds from test start to first confirmed word, or inf."""
        with self._lock:
            return self._latency()

    def _latency(self) -> float:
        if self._test_start is None or self._first_word is None:
            return math.inf
        return self._first_word - self._test_start

    def finalize(
        self,
        model_name: str,
        compute_unit: ComputeUnit,
        quality_rating: QualityRating,
    ) -> ModelMetrics:
        """Build the immutable aggregate for this test.

        The average processing ratio is the ratio of sums (total
        processing over total audio), so longer chunks weigh more.

        Args:
            model_name: Name of the tested model.
            compute_unit: Hardware the engine ran on.
            quality_rating: Human rating of the final transcript.

        Returns:
            ModelMetrics for the test.
        """
        with self._lock:
            timings = tuple(self._timings)
            total_audio = sum(t.audio_duration for t in timings)
            total_processing = sum(t.processing_time for t in timings)
            average_ratio = total_processing / total_audio if total_audio > 0 else 0.0
            return ModelMetrics(
                model_name=model_name,
                total_audio_duration=total_audio,
                total_processing_time=total_processing,
                average_processing_ratio=average_ratio,
                first_word_latency=self._latency(),
                backpressure_events=self._backpressure_events,
                compute_unit=compute_unit,
                chunk_timings=timings,
                user_quality_rating=quality_rating,
            )
