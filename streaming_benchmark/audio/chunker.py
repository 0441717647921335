"""Fixed-size, overlapping audio chunking.

ChunkAccumulator turns a push-style stream of small sample bursts (as
delivered by a capture callback) into fixed-duration chunks that overlap
by ``chunk_overlap`` seconds, so words at a chunk boundary keep their
context in the next chunk.

The internal buffer is the only state shared between the capture thread
and the processing side. It is guarded by a single lock held only while
the buffer is mutated; the ``on_chunk`` consumer is invoked after the
lock is released.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np

from streaming_benchmark.audio.wav_utils import SAMPLE_RATE

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_DURATION = 1.5
DEFAULT_CHUNK_OVERLAP = 0.25


@dataclass(frozen=True, eq=False)
class AudioChunk:
    """One unit of transcription work.

    ``overlap_samples`` counts the leading samples that repeat the end of
    the previous chunk (0 for the first chunk of a run).
    """

    index: int
    samples: np.ndarray = field(repr=False)
    sample_rate: int = SAMPLE_RATE
    overlap_samples: int = 0

    @property
    def duration_seconds(self) -> float:
        return len(self.samples) / self.sample_rate

    @property
    def new_samples(self) -> np.ndarray:
        """Samples not already delivered by the previous chunk."""
        return self.samples[self.overlap_samples :]


class ChunkAccumulator:
    """Accumulates sample bursts and cuts overlapping fixed-size chunks.

    Args:
        sample_rate: Samples per second of the incoming stream.
        chunk_duration: Seconds of audio per chunk (default 1.5).
        chunk_overlap: Seconds shared by consecutive chunks (default 0.25).
        on_chunk: Optional consumer called once per chunk, in order.
    """

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        chunk_duration: float = DEFAULT_CHUNK_DURATION,
        chunk_overlap: float = DEFAULT_CHUNK_OVERLAP,
        on_chunk: Callable[[AudioChunk], None] | None = None,
    ) -> None:
        if chunk_duration <= 0:
            raise ValueError("chunk_duration must be positive")
        if not 0.0 <= chunk_overlap < chunk_duration:
            raise ValueError("chunk_overlap must be in [0, chunk_duration)")

        self.sample_rate = sample_rate
        self.chunk_duration = chunk_duration
        self.chunk_overlap = chunk_overlap
        self.on_chunk = on_chunk

        self._samples_per_chunk = round(sample_rate * chunk_duration)
        self._overlap_samples = round(sample_rate * chunk_overlap)
        if self._samples_per_chunk <= self._overlap_samples:
            raise ValueError("chunk_duration too short for the configured overlap")

        self._lock = threading.Lock()
        self._buffer = np.zeros(0, dtype=np.float32)
        self._next_index = 0

    @property
    def samples_per_chunk(self) -> int:
        return self._samples_per_chunk

    @property
    def overlap_samples(self) -> int:
        return self._overlap_samples

    @property
    def hop_samples(self) -> int:
        """Samples removed from the buffer after each chunk."""
        return self._samples_per_chunk - self._overlap_samples

    @property
    def buffered_samples(self) -> int:
        with self._lock:
            return len(self._buffer)

    def push(self, samples: np.ndarray) -> list[AudioChunk]:
        """Append a burst of samples and emit every chunk now complete.

        A burst larger than one chunk yields several chunks, in order.

        Args:
            samples: 1-D float samples at ``sample_rate``.

        Returns:
            The chunks emitted by this push (possibly empty).
        """
        burst = np.asarray(samples, dtype=np.float32)
        if burst.ndim != 1:
            raise ValueError("ChunkAccumulator expects mono 1-D samples")

        chunks: list[AudioChunk] = []
        with self._lock:
            self._buffer = np.concatenate((self._buffer, burst))
            while len(self._buffer) >= self._samples_per_chunk:
                chunk = AudioChunk(
                    index=self._next_index,
                    samples=self._buffer[: self._samples_per_chunk].copy(),
                    sample_rate=self.sample_rate,
                    overlap_samples=self._overlap_samples if self._next_index else 0,
                )
                self._next_index += 1
                self._buffer = self._buffer[self.hop_samples :]
                chunks.append(chunk)

        if self.on_chunk is not None:
            for chunk in chunks:
                self.on_chunk(chunk)
        return chunks

    def flush(self) -> np.ndarray | None:
        """Return and clear samples that never filled a whole chunk.

        Returns:
            The remaining samples (may be shorter than a chunk), or None
            if the buffer is empty.
        """
        chunk = self.flush_chunk()
        return None if chunk is None else chunk.samples

    def flush_chunk(self) -> AudioChunk | None:
        """Like flush(), but wrapped as the next-indexed AudioChunk."""
        with self._lock:
            if len(self._buffer) == 0:
                return None
            remainder = self._buffer
            self._buffer = np.zeros(0, dtype=np.float32)
            overlap = min(self._overlap_samples, len(remainder)) if self._next_index else 0
            chunk = AudioChunk(
                index=self._next_index,
                samples=remainder,
                sample_rate=self.sample_rate,
                overlap_samples=overlap,
            )
            self._next_index += 1
        logger.debug(
            "Flushed %d remaining samples", len(remainder), extra={"chunk_index": chunk.index}
        )
        return chunk

    def reset(self) -> None:
        """Clear the buffer and restart chunk numbering."""
        with self._lock:
            self._buffer = np.zeros(0, dtype=np.float32)
            self._next_index = 0
