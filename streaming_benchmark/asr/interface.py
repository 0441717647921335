"""Abstract ASR engine interface.

Defines the ASR engine ABC and transcription result models. Concrete
implementations (null baseline, OpenAI-compatible HTTP server, local
faster-whisper) subclass ASREngine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

from streaming_benchmark.audio.wav_utils import SAMPLE_RATE
from streaming_benchmark.metrics.models import ComputeUnit
from streaming_benchmark.reporting.system_info import detect_compute_unit


@dataclass
class TranscriptSegment:
    """A decoded span of speech with timing relative to the window start."""

    start: float
    end: float
    text: str


@dataclass
class TranscriptionResult:
    """Result of one inference call over an audio window."""

    text: str
    segments: list[TranscriptSegment] = field(default_factory=list)
    raw_response: dict = field(default_factory=dict)


class ASREngine(ABC):
    """Abstract base class for ASR engine implementations.

    An engine is bound to one model. load() must complete before
    transcribe() is called; unload() releases the model so the next one
    can be tested without sharing memory.
    """

    provider: str = ""
    model_name: str = ""
    device: str = "auto"

    @abstractmethod
    async def load(self) -> None:
        """Load (and download, if needed) the model.

        Raises:
            ModelLoadError: If the model cannot be loaded.
        """

    @abstractmethod
    async def unload(self) -> None:
        """Release the model. Safe to call when not loaded."""

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """True once load() has succeeded and until unload()."""

    @property
    def compute_unit(self) -> ComputeUnit:
        """Hardware the model runs on, as reported in results."""
        return detect_compute_unit(self.model_name, self.device)

    @abstractmethod
    async def transcribe(
        self, samples: np.ndarray, sample_rate: int = SAMPLE_RATE
    ) -> TranscriptionResult:
        """Transcribe mono float32 samples.

        Args:
            samples: Audio window to transcribe, values in [-1, 1].
            sample_rate: Sample rate of ``samples``.

        Returns:
            TranscriptionResult with the decoded text.

        Raises:
            ModelNotReadyError: If the model is not loaded.
            TranscriptionError: If inference fails.
        """
