"""Timing and aggregate data models for a model test.

ChunkTiming records one completed chunk; ModelMetrics is the immutable
aggregate produced by MetricsEngine.finalize(). Both are frozen: once
created they are never mutated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from streaming_benchmark.metrics.viability import ViabilityThresholds


class QualityRating(IntEnum):
    """Human rating of a model's final transcript."""

    SKIPPED = 0
    UNUSABLE = 1
    POOR = 2
    FAIR = 3
    GOOD = 4
    EXCELLENT = 5

    @property
    def description(self) -> str:
        return self.name.capitalize()


class ViabilityStatus(str, Enum):
    """Overall streaming verdict for a model on this machine."""

    VIABLE = "viable"
    MARGINAL = "marginal"
    NOT_VIABLE = "not_viable"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class ComputeUnit(str, Enum):
    """Hardware the inference engine ran on, as far as it can tell."""

    NEURAL_ENGINE = "ANE"
    GPU = "GPU"
    CPU = "CPU"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ChunkTiming:
    """Timing information for a single processed chunk."""

    chunk_index: int
    audio_duration: float
    processing_time: float
    processing_ratio: float
    had_backpressure: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_realtime(self) -> bool:
        """True when this chunk was processed faster than it was spoken."""
        return self.processing_ratio < 1.0


@dataclass(frozen=True)
class ModelMetrics:
    """Aggregated metrics for one model test."""

    model_name: str
    total_audio_duration: float
    total_processing_time: float
    average_processing_ratio: float
    first_word_latency: float
    backpressure_events: int
    compute_unit: ComputeUnit
    chunk_timings: tuple[ChunkTiming, ...]
    user_quality_rating: QualityRating

    def viability_status(
        self, thresholds: ViabilityThresholds | None = None
    ) -> ViabilityStatus:
        """Classify this result; default thresholds when none are given."""
        # Imported here: viability depends on this module.
        from streaming_benchmark.metrics.viability import DEFAULT_THRESHOLDS, classify_viability

        return classify_viability(self, DEFAULT_THRESHOLDS if thresholds is None else thresholds)

    def is_streaming_viable(self, thresholds: ViabilityThresholds | None = None) -> bool:
        return self.viability_status(thresholds) is ViabilityStatus.VIABLE

    @property
    def chunk_count(self) -> int:
        return len(self.chunk_timings)

    @classmethod
    def failed(cls, model_name: str) -> ModelMetrics:
        """Sentinel entry for a model whose test could not run."""
        return cls(
            model_name=model_name,
            total_audio_duration=0.0,
            total_processing_time=0.0,
            average_processing_ratio=math.inf,
            first_word_latency=math.inf,
            backpressure_events=0,
            compute_unit=ComputeUnit.UNKNOWN,
            chunk_timings=(),
            user_quality_rating=QualityRating.SKIPPED,
        )
