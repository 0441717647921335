"""Audio windows: what each inference call actually sees.

A window collects the de-duplicated audio of a run (chunk overlap is
delivered only once) and hands the engine the most recent span to
transcribe. SlidingWindow caps that span so inference cost stays
bounded on long recordings; CumulativeWindow never drops audio.
"""

from __future__ import annotations

import numpy as np

from streaming_benchmark.audio.chunker import AudioChunk
from streaming_benchmark.audio.wav_utils import SAMPLE_RATE

DEFAULT_MAX_DURATION = 30.0
DEFAULT_MIN_DURATION = 1.0


class AudioWindow:
    """Run-scoped audio buffer with single-step rollback.

    Args:
        sample_rate: Sample rate of incoming chunks.
        min_duration: Seconds required before a window is worth
            transcribing.
        max_duration: Seconds kept and returned; None keeps everything.
    """

    name: str = ""

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        min_duration: float = DEFAULT_MIN_DURATION,
        max_duration: float | None = None,
    ) -> None:
        if min_duration < 0:
            raise ValueError("min_duration must be >= 0")
        if max_duration is not None and max_duration < min_duration:
            raise ValueError("max_duration must be >= min_duration")
        self.sample_rate = sample_rate
        self.min_duration = min_duration
        self.max_duration = max_duration
        self._max_samples = None if max_duration is None else round(max_duration * sample_rate)
        self._samples = np.zeros(0, dtype=np.float32)
        self._previous: np.ndarray | None = None
        self._received = 0
        self._previous_received = 0

    @property
    def duration(self) -> float:
        """Seconds currently held."""
        return len(self._samples) / self.sample_rate

    @property
    def total_duration(self) -> float:
        """Seconds of distinct audio received since the last reset."""
        return self._received / self.sample_rate

    def append(self, chunk: AudioChunk) -> np.ndarray | None:
        """Add a chunk and return the samples to transcribe.

        The chunk's leading overlap is skipped, except for the first chunk
        after a reset.

        Returns:
            The window's samples, or None while shorter than min_duration.
        """
        new = chunk.samples if self._received == 0 else chunk.new_samples
        self._previous = self._samples
        self._previous_received = self._received
        combined = np.concatenate([self._samples, np.asarray(new, dtype=np.float32)])
        if self._max_samples is not None and len(combined) > self._max_samples:
            combined = combined[-self._max_samples :]
        self._samples = combined
        self._received += len(new)

        if self.duration < self.min_duration:
            return None
        return self._samples

    def rollback(self) -> None:
        """Undo the most recent append (no-op if already undone)."""
        if self._previous is None:
            return
        self._samples = self._previous
        self._received = self._previous_received
        self._previous = None

    def reset(self) -> None:
        self._samples = np.zeros(0, dtype=np.float32)
        self._previous = None
        self._received = 0
        self._previous_received = 0


class SlidingWindow(AudioWindow):
    """Window over the most recent ``max_duration`` seconds (default 30)."""

    name = "sliding"

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        min_duration: float = DEFAULT_MIN_DURATION,
        max_duration: float = DEFAULT_MAX_DURATION,
    ) -> None:
        super().__init__(sample_rate, min_duration, max_duration)


class CumulativeWindow(AudioWindow):
    """Window over all audio of the run; inference cost grows with it."""

    name = "cumulative"

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        min_duration: float = DEFAULT_MIN_DURATION,
    ) -> None:
        super().__init__(sample_rate, min_duration, None)


AUDIO_WINDOWS: dict[str, type[AudioWindow]] = {
    SlidingWindow.name: SlidingWindow,
    CumulativeWindow.name: CumulativeWindow,
}


def get_audio_window(name: str, **kwargs: object) -> AudioWindow:
    """Create an audio window by name.

    Raises:
        ValueError: If the name is not registered.
    """
    window_cls = AUDIO_WINDOWS.get(name)
    if not window_cls:
        available = ", ".join(sorted(AUDIO_WINDOWS))
        raise ValueError(f"Unknown audio window: '{name}'. Available: {available}")
    return window_cls(**kwargs)
