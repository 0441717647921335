"""Benchmark configuration.

Defaults live on BenchmarkConfig. Environment variables prefixed with
``STREAMING_BENCHMARK_`` override them, and command-line flags override
both (applied through with_overrides()).
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields, replace

from streaming_benchmark.metrics.viability import ViabilityThresholds
from streaming_benchmark.streaming.transcriber import STREAMING_STRATEGIES
from streaming_benchmark.utils.errors import ConfigError

ENV_PREFIX = "STREAMING_BENCHMARK_"

AUDIO_SOURCES = ("microphone", "wav")

# Field name -> environment variable suffix
ENV_NAMES: dict[str, str] = {
    "sample_rate": "SAMPLE_RATE",
    "chunk_duration": "CHUNK_DURATION",
    "chunk_overlap": "CHUNK_OVERLAP",
    "confirmation_window": "CONFIRMATION_WINDOW",
    "unconfirmed_word_count": "UNCONFIRMED_WORDS",
    "streaming_strategy": "STRATEGY",
    "max_transcription_duration": "MAX_WINDOW",
    "min_transcription_duration": "MIN_WINDOW",
    "backpressure_threshold": "BACKPRESSURE_THRESHOLD",
    "viable_ratio": "VIABLE_RATIO",
    "marginal_ratio": "MARGINAL_RATIO",
    "max_first_word_latency": "MAX_LATENCY",
    "recording_duration": "RECORDING_DURATION",
    "asr_provider": "ASR_PROVIDER",
    "asr_base_url": "ASR_BASE_URL",
    "asr_api_key": "ASR_API_KEY",
    "asr_device": "ASR_DEVICE",
    "audio_source": "AUDIO_SOURCE",
    "audio_file": "AUDIO_FILE",
}


@dataclass(frozen=True)
class BenchmarkConfig:
    """All tunables of a benchmark session."""

    sample_rate: int = 16000
    chunk_duration: float = 1.5
    chunk_overlap: float = 0.25
    confirmation_window: int = 3
    unconfirmed_word_count: int = 2
    streaming_strategy: str = "local_agreement"
    max_transcription_duration: float = 30.0
    min_transcription_duration: float = 1.0
    backpressure_threshold: int = 2
    viable_ratio: float = 1.0
    marginal_ratio: float = 1.5
    max_first_word_latency: float = 3.0
    recording_duration: float = 35.0
    asr_provider: str = "faster-whisper"
    asr_base_url: str = "http://localhost:8000"
    asr_api_key: str = ""
    asr_device: str = "auto"
    audio_source: str = "microphone"
    audio_file: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BenchmarkConfig:
        """Build a config from defaults overridden by environment variables.

        Args:
            environ: Mapping to read (defaults to os.environ).

        Raises:
            ConfigError: If a variable cannot be parsed as its field's type.
        """
        environ = os.environ if environ is None else environ
        defaults = cls()
        values: dict[str, object] = {}
        for field in fields(cls):
            raw = environ.get(ENV_PREFIX + ENV_NAMES[field.name])
            if raw is None or raw == "":
                continue
            parser = _parser_for(getattr(defaults, field.name))
            try:
                values[field.name] = parser(raw)
            except ValueError as exc:
                raise ConfigError(
                    f"Invalid value for {ENV_PREFIX}{ENV_NAMES[field.name]}: {raw!r}",
                    field=field.name,
                ) from exc
        return replace(defaults, **values)

    def with_overrides(self, **overrides: object) -> BenchmarkConfig:
        """Return a copy with non-None overrides applied.

        Raises:
            ConfigError: If an override names an unknown field.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> BenchmarkConfig:
        """Check cross-field constraints; return self for chaining.

        Raises:
            ConfigError: On the first invalid field.
        """
        if self.sample_rate <= 0:
            raise ConfigError("sample_rate must be positive", field="sample_rate")
        if self.chunk_duration <= 0:
            raise ConfigError("chunk_duration must be positive", field="chunk_duration")
        if not 0 <= self.chunk_overlap < self.chunk_duration:
            raise ConfigError(
                "chunk_overlap must be >= 0 and shorter than chunk_duration",
                field="chunk_overlap",
            )
        if self.confirmation_window < 2:
            raise ConfigError("confirmation_window must be >= 2", field="confirmation_window")
        if self.unconfirmed_word_count < 0:
            raise ConfigError(
                "unconfirmed_word_count must be >= 0", field="unconfirmed_word_count"
            )
        if self.streaming_strategy not in STREAMING_STRATEGIES:
            raise ConfigError(
                f"streaming_strategy must be one of {', '.join(STREAMING_STRATEGIES)}",
                field="streaming_strategy",
            )
        if self.min_transcription_duration < 0:
            raise ConfigError(
                "min_transcription_duration must be >= 0", field="min_transcription_duration"
            )
        if self.max_transcription_duration < self.min_transcription_duration:
            raise ConfigError(
                "max_transcription_duration must be >= min_transcription_duration",
                field="max_transcription_duration",
            )
        if self.backpressure_threshold < 1:
            raise ConfigError(
                "backpressure_threshold must be >= 1", field="backpressure_threshold"
            )
        if not 0 < self.viable_ratio <= self.marginal_ratio:
            raise ConfigError(
                "viable_ratio must be positive and <= marginal_ratio", field="viable_ratio"
            )
        if self.max_first_word_latency <= 0:
            raise ConfigError(
                "max_first_word_latency must be positive", field="max_first_word_latency"
            )
        if self.recording_duration <= 0:
            raise ConfigError("recording_duration must be positive", field="recording_duration")
        if self.audio_source not in AUDIO_SOURCES:
            raise ConfigError(
                f"audio_source must be one of {', '.join(AUDIO_SOURCES)}", field="audio_source"
            )
        if self.audio_source == "wav" and not self.audio_file:
            raise ConfigError("audio_file is required for the wav source", field="audio_file")
        return self

    def viability_thresholds(self) -> ViabilityThresholds:
        return ViabilityThresholds(
            viable_ratio=self.viable_ratio,
            marginal_ratio=self.marginal_ratio,
            max_first_word_latency=self.max_first_word_latency,
        )


def _parser_for(default: object) -> Callable[[str], object]:
    if isinstance(default, int):
        return int
    if isinstance(default, float):
        return float
    return str
