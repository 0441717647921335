"""Microphone capture via sounddevice (PortAudio).

Opens an input stream at the device's capture rate, mixes all channels
to mono, resamples to the benchmark rate if needed, and forwards float32
bursts to the registered callback from the PortAudio thread.

sounddevice loads the PortAudio shared library on import, so it is
imported when the microphone is first used; a missing library surfaces
as a CaptureError rather than breaking every import of this package.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Any

import numpy as np

from streaming_benchmark.audio.capture.interface import AudioSource, SamplesCallback
from streaming_benchmark.audio.wav_utils import SAMPLE_RATE, resample_linear
from streaming_benchmark.utils.errors import CaptureError

logger = logging.getLogger(__name__)

DEFAULT_BLOCKSIZE = 4096


def _sounddevice() -> ModuleType:
    try:
        import sounddevice
    except OSError as exc:
        raise CaptureError("PortAudio library not available", detail=str(exc)) from exc
    return sounddevice


class MicrophoneSource(AudioSource):
    """Live microphone source.

    Args:
        sample_rate: Rate delivered to the callback (default 16000).
        device: PortAudio device index or name (default input device).
        channels: Channels to open; mixed down to mono.
        capture_rate: Rate to open the device at (defaults to sample_rate).
        blocksize: Frames per PortAudio callback.
    """

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        device: int | str | None = None,
        channels: int = 1,
        capture_rate: int | None = None,
        blocksize: int = DEFAULT_BLOCKSIZE,
    ) -> None:
        self.sample_rate = sample_rate
        self.device = device
        self.channels = channels
        self.capture_rate = capture_rate or sample_rate
        self.blocksize = blocksize
        self.status_errors = 0
        self._stream: Any = None

    def permission_granted(self) -> bool:
        """Check that an input device accepts the requested settings.

        PortAudio reports a denied microphone permission as an error when
        validating or opening the device.
        """
        try:
            sd = _sounddevice()
        except CaptureError as exc:
            logger.warning("Input device unavailable: %s", exc.detail, extra={"error": exc.detail})
            return False
        try:
            sd.check_input_settings(
                device=self.device,
                channels=self.channels,
                samplerate=self.capture_rate,
                dtype="float32",
            )
        except (sd.PortAudioError, ValueError) as exc:
            logger.warning("Input device unavailable: %s", exc, extra={"error": str(exc)})
            return False
        return True

    def _on_block(
        self, on_samples: SamplesCallback, indata: np.ndarray, status: object
    ) -> None:
        if status:
            self.status_errors += 1
            logger.warning("Audio stream status: %s", status)
        mono = indata.mean(axis=1) if indata.shape[1] > 1 else indata[:, 0]
        samples = resample_linear(mono, self.capture_rate, self.sample_rate)
        try:
            on_samples(np.array(samples, dtype=np.float32))
        except Exception:
            logger.error("Sample callback failed", exc_info=True)

    def start(self, on_samples: SamplesCallback) -> None:
        if self._stream is not None:
            return
        sd = _sounddevice()

        def _callback(indata: np.ndarray, frames: int, time_info: object, status: object) -> None:
            self._on_block(on_samples, indata, status)

        try:
            stream = sd.InputStream(
                samplerate=self.capture_rate,
                channels=self.channels,
                dtype="float32",
                blocksize=self.blocksize,
                device=self.device,
                callback=_callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as exc:
            raise CaptureError("Failed to open microphone", detail=str(exc)) from exc

        self._stream = stream
        self._mark_started()
        logger.info(
            "Microphone capture started at %d Hz (delivering %d Hz)",
            self.capture_rate,
            self.sample_rate,
        )

    def stop(self) -> float:
        if self._stream is None:
            return 0.0
        sd = _sounddevice()
        stream, self._stream = self._stream, None
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as exc:
            logger.warning("Error closing input stream: %s", exc)
        return self._mark_stopped()
