"""Streaming transcription over overlapping audio chunks.

StreamingTranscriber owns the per-run transcript state. For each chunk
it grows the audio window, runs one inference call over the window,
cleans the hypothesis, and lets a ConfirmationPolicy decide how much of
it is stable. Confirmed text only ever grows; the rest of the latest
hypothesis is reported as unconfirmed.

The transcriber is driven by a single worker task, so calls to
transcribe_chunk() never overlap.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum

import numpy as np

from streaming_benchmark.asr.interface import ASREngine
from streaming_benchmark.asr.postprocess import split_words
from streaming_benchmark.audio.chunker import AudioChunk
from streaming_benchmark.audio.wav_utils import SAMPLE_RATE
from streaming_benchmark.observability.metrics import StageTimer
from streaming_benchmark.streaming.events import EventChannel, FirstWord, TranscriptUpdated
from streaming_benchmark.streaming.policy import (
    ConfirmationPolicy,
    LocalAgreementPolicy,
    PreviousTranscriptPolicy,
)
from streaming_benchmark.streaming.window import AudioWindow, CumulativeWindow, SlidingWindow
from streaming_benchmark.utils.errors import ModelNotReadyError, TranscriptionError

logger = logging.getLogger(__name__)

WARMUP_SECONDS = 1.0
STREAMING_STRATEGIES = ("local_agreement", "cumulative")


class TranscriberState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    TRANSCRIBING = "transcribing"
    UPDATED = "updated"


def create_strategy(
    name: str,
    sample_rate: int = SAMPLE_RATE,
    confirmation_window: int = 3,
    unconfirmed_word_count: int = 2,
    max_duration: float = 30.0,
    min_duration: float = 1.0,
) -> tuple[ConfirmationPolicy, AudioWindow]:
    """Build the policy and window pair for a streaming strategy.

    Args:
        name: "local_agreement" (sliding window with LocalAgreement-n) or
            "cumulative" (unbounded window with previous-hypothesis diff).
        sample_rate: Sample rate of the chunks.
        confirmation_window: Hypotheses that must agree (local_agreement).
        unconfirmed_word_count: Trailing words never confirmed.
        max_duration: Sliding window cap in seconds (local_agreement).
        min_duration: Seconds buffered before the first inference.

    Raises:
        ValueError: If the strategy name is unknown.
    """
    if name == "local_agreement":
        return (
            LocalAgreementPolicy(confirmation_window, unconfirmed_word_count),
            SlidingWindow(sample_rate, min_duration, max_duration),
        )
    if name == "cumulative":
        return (
            PreviousTranscriptPolicy(unconfirmed_word_count),
            CumulativeWindow(sample_rate, min_duration),
        )
    raise ValueError(
        f"Unknown streaming strategy: '{name}'. Available: {', '.join(STREAMING_STRATEGIES)}"
    )


class StreamingTranscriber:
    """Turns a stream of chunks into confirmed and unconfirmed text.

    Args:
        engine: Loaded ASR engine.
        policy: Confirmation policy (default LocalAgreement-3).
        window: Audio window (default 30 s sliding window).
        events: Channel for TranscriptUpdated and FirstWord events.
        sample_rate: Sample rate of the chunks.
    """

    def __init__(
        self,
        engine: ASREngine,
        policy: ConfirmationPolicy | None = None,
        window: AudioWindow | None = None,
        events: EventChannel | None = None,
        sample_rate: int = SAMPLE_RATE,
    ) -> None:
        self.engine = engine
        self.policy = policy or LocalAgreementPolicy()
        self.window = window or SlidingWindow(sample_rate)
        self.events = events
        self.sample_rate = sample_rate
        self.state = TranscriberState.IDLE
        self._history: deque[list[str]] = deque(maxlen=self.policy.history_size)
        self._confirmed_words: list[str] = []
        self._unconfirmed_words: list[str] = []
        self._first_word_published = False

    @property
    def confirmed_text(self) -> str:
        return " ".join(self._confirmed_words)

    @property
    def unconfirmed_text(self) -> str:
        return " ".join(self._unconfirmed_words)

    @property
    def confirmed_word_count(self) -> int:
        return len(self._confirmed_words)

    @property
    def full_transcript(self) -> str:
        return f"{self.confirmed_text} {self.unconfirmed_text}".strip()

    @property
    def history(self) -> tuple[list[str], ...]:
        return tuple(list(words) for words in self._history)

    def reset(self) -> None:
        """Clear all run state so the next run starts fresh."""
        self._history.clear()
        self._confirmed_words = []
        self._unconfirmed_words = []
        self._first_word_published = False
        self.window.reset()
        self.state = TranscriberState.IDLE

    async def warmup(self, duration: float = WARMUP_SECONDS) -> float:
        """Run one inference over silence so first-chunk timing is not skewed.

        Returns:
            Seconds the warmup inference took.

        Raises:
            ModelNotReadyError: If the engine has no loaded model.
            TranscriptionError: If the warmup inference failed.
        """
        if not self.engine.is_loaded:
            raise ModelNotReadyError("Warmup before model load", self.engine.model_name)
        silence = np.zeros(round(self.sample_rate * duration), dtype=np.float32)
        with StageTimer("warmup") as timer:
            try:
                await self.engine.transcribe(silence, self.sample_rate)
            except (TranscriptionError, ModelNotReadyError):
                raise
            except Exception as exc:
                raise TranscriptionError(
                    f"Warmup inference failed: {exc}",
                    self.engine.model_name,
                    provider=self.engine.provider,
                ) from exc
        logger.info(
            "Warmup completed in %.2fs",
            timer.duration_seconds,
            extra={"model": self.engine.model_name, "stage": "warmup",
                   "duration_seconds": timer.duration_seconds},
        )
        return timer.duration_seconds

    async def transcribe_chunk(self, chunk: AudioChunk) -> float:
        """Transcribe the window after adding ``chunk``.

        Args:
            chunk: Next chunk of the run, in index order.

        Returns:
            Seconds spent in the inference call, or 0.0 if the window was
            still too short to transcribe.

        Raises:
            ModelNotReadyError: If the engine has no loaded model.
            TranscriptionError: If inference failed. The chunk leaves no
                trace in the window, history, or transcript.
        """
        if not self.engine.is_loaded:
            raise ModelNotReadyError("Transcription before model load", self.engine.model_name)

        self.state = TranscriberState.ACCUMULATING
        samples = self.window.append(chunk)
        if samples is None:
            return 0.0

        self.state = TranscriberState.TRANSCRIBING
        timer = StageTimer("inference")
        try:
            with timer:
                result = await self.engine.transcribe(samples, self.sample_rate)
        except TranscriptionError as exc:
            self._abort_chunk()
            if exc.chunk_index is None:
                exc.chunk_index = chunk.index
            raise
        except ModelNotReadyError:
            self._abort_chunk()
            raise
        except Exception as exc:
            self._abort_chunk()
            raise TranscriptionError(
                f"Inference failed: {exc}",
                self.engine.model_name,
                provider=self.engine.provider,
                chunk_index=chunk.index,
            ) from exc

        self._apply_hypothesis(split_words(result.text), chunk.index)
        self.state = TranscriberState.UPDATED
        logger.debug(
            "Chunk %d transcribed over %.2fs of audio",
            chunk.index,
            len(samples) / self.sample_rate,
            extra={"model": self.engine.model_name, "chunk_index": chunk.index,
                   "stage": "inference", "duration_seconds": timer.duration_seconds},
        )
        return timer.duration_seconds

    def _abort_chunk(self) -> None:
        self.window.rollback()
        self.state = TranscriberState.ACCUMULATING

    def _apply_hypothesis(self, words: list[str], chunk_index: int) -> None:
        self._history.append(words)
        stable = self.policy.stable_word_count(list(self._history))

        confirmed_count = len(self._confirmed_words)
        if stable > confirmed_count:
            self._confirmed_words.extend(words[confirmed_count:stable])
        self._unconfirmed_words = words[len(self._confirmed_words) :]

        first_word = bool(self._confirmed_words) and not self._first_word_published
        if first_word:
            self._first_word_published = True

        if self.events is None:
            return
        if first_word:
            self.events.publish(FirstWord(chunk_index=chunk_index, text=self.confirmed_text))
        self.events.publish(
            TranscriptUpdated(
                chunk_index=chunk_index,
                confirmed_text=self.confirmed_text,
                unconfirmed_text=self.unconfirmed_text,
            )
        )
