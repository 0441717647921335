"""Automatic speech recognition engines."""

from streaming_benchmark.asr.interface import ASREngine, TranscriptionResult
from streaming_benchmark.asr.registry import get_asr_engine

__all__ = ["ASREngine", "TranscriptionResult", "get_asr_engine"]
