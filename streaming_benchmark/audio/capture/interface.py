"""Abstract audio source interface.

Concrete sources (microphone, WAV replay) subclass AudioSource. Every
source delivers mono float32 bursts at ``sample_rate`` to the callback
given to start(), from its own thread and at its own cadence; resampling
and channel mixing are the source's job.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import numpy as np

SamplesCallback = Callable[[np.ndarray], None]


class AudioSource(ABC):
    """Abstract base class for capture sources.

    Subclasses implement start() and stop() and call _mark_started() /
    _mark_stopped() so elapsed-time bookkeeping stays uniform.
    """

    sample_rate: int = 16000

    _started_at: float | None = None

    def permission_granted(self) -> bool:
        """Return True if the source can be opened (device present, file readable)."""
        return True

    @abstractmethod
    def start(self, on_samples: SamplesCallback) -> None:
        """Begin delivering sample bursts to ``on_samples``."""

    @abstractmethod
    def stop(self) -> float:
        """Stop capture and return the seconds captured (0.0 if not running)."""

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    @property
    def elapsed(self) -> float:
        """Seconds since start(), or 0.0 when not running."""
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def _mark_started(self) -> None:
        self._started_at = time.monotonic()

    def _mark_stopped(self) -> float:
        duration = self.elapsed
        self._started_at = None
        return duration
