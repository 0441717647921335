"""Timing helpers and structured metric emission.

Provides StageTimer for measuring wall-clock durations of benchmark
stages (model load, warmup, each inference call) and log_model_metrics()
for emitting a finalized ModelMetrics as one structured JSON line.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TextIO

from streaming_benchmark.metrics.models import ModelMetrics
from streaming_benchmark.metrics.viability import DEFAULT_THRESHOLDS, ViabilityThresholds
from streaming_benchmark.reporting.report import result_entry


class StageTimer:
    """Context manager that records wall-clock duration of a stage.

    Captures stage_name, start_time, end_time (as UTC datetimes), and
    duration_seconds (from a monotonic clock). The duration is recorded
    even when the wrapped block raises.

    Usage:
        timer = StageTimer("inference")
        with timer:
            result = engine.transcribe(samples)
        print(timer.duration_seconds)
    """

    def __init__(
        self, stage_name: str, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.stage_name = stage_name
        self.start_time: datetime | None = None
        self.end_time: datetime | None = None
        self.duration_seconds: float = 0.0
        self.failed: bool = False
        self._clock = clock
        self._mono_start: float = 0.0

    def __enter__(self) -> StageTimer:
        self.start_time = datetime.now(UTC)
        self._mono_start = self._clock()
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.duration_seconds = self._clock() - self._mono_start
        self.end_time = datetime.now(UTC)
        self.failed = exc_type is not None


def log_model_metrics(
    metrics: ModelMetrics,
    stream: TextIO | None = None,
    thresholds: ViabilityThresholds = DEFAULT_THRESHOLDS,
) -> None:
    """Emit finalized model metrics as a single structured JSON line.

    The envelope carries timestamp, severity, and metric_type fields; the
    report entry for the model (non-finite values as -1, per-chunk log
    omitted) is spread into the top level.

    Args:
        metrics: Finalized ModelMetrics.
        stream: Output stream (defaults to stdout).
        thresholds: Thresholds for the viability_status field.
    """
    entry = result_entry(metrics, thresholds)
    entry["chunk_count"] = len(entry.pop("chunk_timings"))
    payload = {
        "timestamp": datetime.now(UTC).isoformat(),
        "severity": "INFO",
        "metric_type": "model_benchmark",
        **entry,
    }
    print(json.dumps(payload), file=stream)
