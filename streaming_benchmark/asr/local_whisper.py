"""Local Whisper inference through faster-whisper (CTranslate2).

faster-whisper is an optional extra (``pip install
streaming-benchmark[local]``); it is imported when a model is loaded so
the rest of the package works without it. Model files are downloaded to
the Hugging Face cache on first load.
"""

import asyncio
import logging

import numpy as np

from streaming_benchmark.asr.interface import (
    ASREngine,
    TranscriptionResult,
    TranscriptSegment,
)
from streaming_benchmark.audio.wav_utils import SAMPLE_RATE, resample_linear
from streaming_benchmark.utils.errors import (
    ModelLoadError,
    ModelNotReadyError,
    TranscriptionError,
)

logger = logging.getLogger(__name__)


class FasterWhisperEngine(ASREngine):
    """Whisper model run in-process with faster-whisper.

    Inference is blocking, so load() and transcribe() run on a worker
    thread via asyncio.to_thread.

    Args:
        model_name: Whisper size or repo id ("tiny", "base", "large-v3", ...).
        device: "auto", "cpu" or "cuda".
        compute_type: CTranslate2 compute type ("default", "int8", "float16").
        language: Language hint; None lets Whisper detect it.
        beam_size: Beam width (1 is greedy, fastest).
        download_root: Override for the model cache directory.
    """

    provider = "faster-whisper"

    def __init__(
        self,
        model_name: str,
        device: str = "auto",
        compute_type: str = "default",
        language: str | None = "en",
        beam_size: int = 1,
        download_root: str | None = None,
    ) -> None:
        self.model_name = model_name
        self.device = device
        self._compute_type = compute_type
        self._language = language
        self._beam_size = beam_size
        self._download_root = download_root
        self._model = None

    async def load(self) -> None:
        if self._model is not None:
            return
        try:
            from faster_whisper import WhisperModel
        except ImportError as exc:
            raise ModelLoadError(
                "faster-whisper is not installed (pip install 'streaming-benchmark[local]')",
                self.model_name,
                provider=self.provider,
            ) from exc

        try:
            self._model = await asyncio.to_thread(
                WhisperModel,
                self.model_name,
                device=self.device,
                compute_type=self._compute_type,
                download_root=self._download_root,
            )
        except Exception as exc:
            raise ModelLoadError(
                f"Failed to load model: {exc}", self.model_name, provider=self.provider
            ) from exc

        # Resolve "auto" to the device CTranslate2 actually picked
        resolved = getattr(getattr(self._model, "model", None), "device", None)
        if isinstance(resolved, str) and resolved:
            self.device = resolved
        logger.info("Loaded %s on %s", self.model_name, self.device, extra={"model": self.model_name})

    async def unload(self) -> None:
        self._model = None

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    async def transcribe(
        self, samples: np.ndarray, sample_rate: int = SAMPLE_RATE
    ) -> TranscriptionResult:
        if self._model is None:
            raise ModelNotReadyError("Model not loaded", self.model_name)
        audio = resample_linear(np.asarray(samples, dtype=np.float32), sample_rate, SAMPLE_RATE)
        try:
            return await asyncio.to_thread(self._run, audio)
        except Exception as exc:
            raise TranscriptionError(
                f"Inference failed: {exc}", self.model_name, provider=self.provider
            ) from exc

    def _run(self, audio: np.ndarray) -> TranscriptionResult:
        segments, info = self._model.transcribe(
            audio,
            language=self._language,
            beam_size=self._beam_size,
            condition_on_previous_text=False,
            vad_filter=False,
        )
        # segments is a lazy generator; decoding happens while iterating
        decoded = [
            TranscriptSegment(start=seg.start, end=seg.end, text=seg.text.strip())
            for seg in segments
        ]
        return TranscriptionResult(
            text=" ".join(seg.text for seg in decoded if seg.text),
            segments=decoded,
            raw_response={
                "language": getattr(info, "language", None),
                "duration": getattr(info, "duration", None),
            },
        )
