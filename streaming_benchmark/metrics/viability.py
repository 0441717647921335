"""Streaming viability classification.

A pure function of a ModelMetrics aggregate and a threshold set. A miss
on any hard criterion (latency, backpressure, quality) rules out
"viable", but only the processing ratio decides between "marginal" and
"not viable".
"""

from __future__ import annotations

from dataclasses import dataclass

from streaming_benchmark.metrics.models import ModelMetrics, QualityRating, ViabilityStatus


@dataclass(frozen=True)
class ViabilityThresholds:
    """Hand-tuned defaults; calibrate per hardware class."""

    viable_ratio: float = 1.0
    marginal_ratio: float = 1.5
    max_first_word_latency: float = 3.0
    max_backpressure_events: int = 0
    min_quality: QualityRating = QualityRating.FAIR


DEFAULT_THRESHOLDS = ViabilityThresholds()


def classify_viability(
    metrics: ModelMetrics, thresholds: ViabilityThresholds = DEFAULT_THRESHOLDS
) -> ViabilityStatus:
    """Classify a model's streaming viability.

    Args:
        metrics: Finalized model metrics.
        thresholds: Threshold set to apply.

    Returns:
        VIABLE if the ratio, latency, backpressure, and quality criteria
        all pass; otherwise MARGINAL if the ratio is under the marginal
        threshold; otherwise NOT_VIABLE.
    """
    ratio = metrics.average_processing_ratio
    viable = (
        ratio < thresholds.viable_ratio
        and metrics.first_word_latency < thresholds.max_first_word_latency
        and metrics.backpressure_events <= thresholds.max_backpressure_events
        and metrics.user_quality_rating >= thresholds.min_quality
    )
    if viable:
        return ViabilityStatus.VIABLE
    if ratio < thresholds.marginal_ratio:
        return ViabilityStatus.MARGINAL
    return ViabilityStatus.NOT_VIABLE
