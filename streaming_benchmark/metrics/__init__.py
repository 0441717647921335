"""Chunk timing, backpressure detection, and viability classification.

Public API:
    MetricsEngine        — Per-test lifecycle observer and aggregator.
    ChunkTiming          — Immutable timing record for one chunk.
    ModelMetrics         — Immutable aggregate for one model test.
    QualityRating        — Human transcript rating.
    ViabilityStatus      — viable / marginal / not_viable.
    ComputeUnit          — Hardware label reported by the engine.
    ViabilityThresholds  — Configurable classification thresholds.
    classify_viability   — Pure classification function.
"""

from streaming_benchmark.metrics.engine import MetricsEngine
from streaming_benchmark.metrics.models import (
    ChunkTiming,
    ComputeUnit,
    ModelMetrics,
    QualityRating,
    ViabilityStatus,
)
from streaming_benchmark.metrics.viability import ViabilityThresholds, classify_viability

__all__ = [
    "MetricsEngine",
    "ChunkTiming",
    "ModelMetrics",
    "QualityRating",
    "ViabilityStatus",
    "ComputeUnit",
    "ViabilityThresholds",
    "classify_viability",
]
