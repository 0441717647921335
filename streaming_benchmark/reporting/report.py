"""JSON results report.

The report is the durable output of a benchmark session: system info,
one entry per model, and each model's per-chunk timing log. JSON has no
representation for infinity, so non-finite numbers (a model that never
produced a word, a failed model's ratio) are written as -1.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from streaming_benchmark.metrics.models import ChunkTiming, ModelMetrics
from streaming_benchmark.metrics.viability import (
    DEFAULT_THRESHOLDS,
    ViabilityThresholds,
    classify_viability,
)
from streaming_benchmark.reporting.system_info import SystemInfo, collect_system_info
from streaming_benchmark.utils.errors import ReportError

logger = logging.getLogger(__name__)

NON_FINITE_SENTINEL = -1


def finite_or_sentinel(value: float) -> float | int:
    """Return ``value`` unchanged if finite, otherwise -1."""
    return value if math.isfinite(value) else NON_FINITE_SENTINEL


def _timing_entry(timing: ChunkTiming) -> dict[str, object]:
    return {
        "chunk_index": timing.chunk_index,
        "audio_duration": finite_or_sentinel(timing.audio_duration),
        "processing_time": finite_or_sentinel(timing.processing_time),
        "processing_ratio": finite_or_sentinel(timing.processing_ratio),
        "had_backpressure": timing.had_backpressure,
    }


def result_entry(
    metrics: ModelMetrics, thresholds: ViabilityThresholds = DEFAULT_THRESHOLDS
) -> dict[str, object]:
    """Serialize one model's metrics to a JSON-safe dict."""
    return {
        "model_name": metrics.model_name,
        "total_audio_duration": finite_or_sentinel(metrics.total_audio_duration),
        "total_processing_time": finite_or_sentinel(metrics.total_processing_time),
        "average_processing_ratio": finite_or_sentinel(metrics.average_processing_ratio),
        "first_word_latency": finite_or_sentinel(metrics.first_word_latency),
        "backpressure_events": metrics.backpressure_events,
        "compute_unit": metrics.compute_unit.value,
        "viability_status": classify_viability(metrics, thresholds).value,
        "user_quality_rating": int(metrics.user_quality_rating),
        "user_quality_rating_description": metrics.user_quality_rating.description,
        "chunk_timings": [_timing_entry(t) for t in metrics.chunk_timings],
    }


def build_report(
    results: Sequence[ModelMetrics],
    system_info: SystemInfo,
    timestamp: datetime | None = None,
    thresholds: ViabilityThresholds = DEFAULT_THRESHOLDS,
) -> dict[str, object]:
    """Assemble the full report document.

    Args:
        results: Metrics for each tested model, in test order.
        system_info: Host description.
        timestamp: Report time (defaults to now, UTC).
        thresholds: Thresholds used for each viability_status.

    Returns:
        JSON-safe dict with timestamp, system_info and results keys.
    """
    timestamp = timestamp or datetime.now(UTC)
    return {
        "timestamp": timestamp.isoformat(),
        "system_info": system_info.to_dict(),
        "results": [result_entry(m, thresholds) for m in results],
    }


def save_report(
    results: Sequence[ModelMetrics],
    path: str | Path,
    system_info: SystemInfo | None = None,
    thresholds: ViabilityThresholds = DEFAULT_THRESHOLDS,
) -> Path:
    """Write the report as pretty-printed JSON with sorted keys.

    Parent directories are created as needed.

    Args:
        results: Metrics for each tested model.
        path: Destination file.
        system_info: Host description (collected if omitted).
        thresholds: Thresholds used for each viability_status.

    Returns:
        The resolved path written.

    Raises:
        ReportError: If the file cannot be written.
    """
    output = Path(path).expanduser()
    report = build_report(
        results, system_info or collect_system_info(), thresholds=thresholds
    )
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(report, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ReportError(f"Failed to write report: {exc}", path=str(output)) from exc

    logger.info("Report written to %s", output)
    return output
