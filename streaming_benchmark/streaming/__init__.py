"""Streaming transcription core.

Public API:
    StreamingTranscriber      — Per-run transcript state machine.
    create_strategy           — Policy and window pair for a strategy name.
    get_confirmation_policy   — Confirmation policy by name.
    get_audio_window          — Audio window by name.
    EventChannel              — Bounded event queue for display consumers.
"""

from streaming_benchmark.streaming.events import (
    ChunkFailed,
    ChunkTimed,
    EventChannel,
    FirstWord,
    TranscriptUpdated,
)
from streaming_benchmark.streaming.policy import (
    ConfirmationPolicy,
    LocalAgreementPolicy,
    PreviousTranscriptPolicy,
    get_confirmation_policy,
)
from streaming_benchmark.streaming.transcriber import (
    StreamingTranscriber,
    TranscriberState,
    create_strategy,
)
from streaming_benchmark.streaming.window import (
    CumulativeWindow,
    SlidingWindow,
    get_audio_window,
)

__all__ = [
    "ChunkFailed",
    "ChunkTimed",
    "ConfirmationPolicy",
    "CumulativeWindow",
    "EventChannel",
    "FirstWord",
    "LocalAgreementPolicy",
    "PreviousTranscriptPolicy",
    "SlidingWindow",
    "StreamingTranscriber",
    "TranscriberState",
    "TranscriptUpdated",
    "create_strategy",
    "get_audio_window",
    "get_confirmation_policy",
]
