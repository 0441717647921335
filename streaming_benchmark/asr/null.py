"""Null ASR engine.

Returns empty text instantly. Benchmarking it measures the overhead of
the streaming pipeline itself (chunking, windowing, event delivery)
with inference cost removed.
"""

import numpy as np

from streaming_benchmark.asr.interface import ASREngine, TranscriptionResult
from streaming_benchmark.audio.wav_utils import SAMPLE_RATE
from streaming_benchmark.utils.errors import ModelNotReadyError


class NullEngine(ASREngine):
    """Engine that loads instantly and never recognizes anything."""

    provider = "null"

    def __init__(self, model_name: str = "null", device: str = "cpu", **_: object) -> None:
        self.model_name = model_name
        self.device = device
        self._loaded = False
        self.calls = 0

    async def load(self) -> None:
        self._loaded = True

    async def unload(self) -> None:
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def transcribe(
        self, samples: np.ndarray, sample_rate: int = SAMPLE_RATE
    ) -> TranscriptionResult:
        if not self._loaded:
            raise ModelNotReadyError("Null engine not loaded", self.model_name)
        self.calls += 1
        return TranscriptionResult(text="")
