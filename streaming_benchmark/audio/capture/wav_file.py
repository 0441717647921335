"""WAV file replay source.

Replays a recorded WAV file as if it were a live microphone: a reader
thread delivers fixed-size bursts paced to the audio clock. Useful for
repeatable benchmarks and for running without an input device.
"""

from __future__ import annotations

import logging
import os
import threading

import numpy as np

from streaming_benchmark.audio.capture.interface import AudioSource, SamplesCallback
from streaming_benchmark.audio.wav_utils import SAMPLE_RATE, read_wav_samples
from streaming_benchmark.utils.errors import CaptureError

logger = logging.getLogger(__name__)

DEFAULT_BURST_SAMPLES = 1024


class WavFileSource(AudioSource):
    """Replays a 16-bit PCM WAV file in real-time-paced bursts.

    Args:
        path: WAV file to replay (any rate and channel count).
        sample_rate: Rate delivered to the callback (default 16000).
        burst_samples: Samples per callback.
        realtime: Pace bursts to the audio clock; False delivers as fast
            as possible.
        loop: Restart from the beginning when the file ends.
    """

    def __init__(
        self,
        path: str,
        sample_rate: int = SAMPLE_RATE,
        burst_samples: int = DEFAULT_BURST_SAMPLES,
        realtime: bool = True,
        loop: bool = False,
    ) -> None:
        if burst_samples <= 0:
            raise ValueError("burst_samples must be positive")
        self.path = path
        self.sample_rate = sample_rate
        self.burst_samples = burst_samples
        self.realtime = realtime
        self.loop = loop
        self.samples_delivered = 0
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def permission_granted(self) -> bool:
        return os.path.isfile(self.path) and os.access(self.path, os.R_OK)

    def start(self, on_samples: SamplesCallback) -> None:
        if self._thread is not None:
            return
        try:
            samples = read_wav_samples(self.path, self.sample_rate)
        except ValueError as exc:
            raise CaptureError(f"Cannot replay {self.path}", detail=str(exc)) from exc

        self.samples_delivered = 0
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._replay, args=(samples, on_samples), daemon=True
        )
        self._mark_started()
        self._thread.start()

    def _replay(self, samples: np.ndarray, on_samples: SamplesCallback) -> None:
        interval = self.burst_samples / self.sample_rate
        position = 0
        while not self._stop_event.is_set():
            if position >= len(samples):
                if not self.loop or len(samples) == 0:
                    break
                position = 0
            burst = samples[position : position + self.burst_samples]
            position += len(burst)
            try:
                on_samples(burst.copy())
            except Exception:
                logger.error("Sample callback failed", exc_info=True)
            self.samples_delivered += len(burst)
            if self.realtime:
                self._stop_event.wait(interval)
        logger.debug("WAV replay finished after %d samples", self.samples_delivered)

    def wait_finished(self, timeout: float | None = None) -> bool:
        """Block until a non-looping replay has delivered the whole file."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def stop(self) -> float:
        if self._thread is None:
            return 0.0
        self._stop_event.set()
        self._thread.join(timeout=1.0)
        self._thread = None
        return self._mark_stopped()
