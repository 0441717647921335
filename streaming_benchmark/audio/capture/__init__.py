"""Pluggable audio capture sources.

Public API:
    AudioSource       — Abstract base class for capture sources.
    MicrophoneSource  — Live input through sounddevice.
    WavFileSource     — Real-time replay of a WAV file.
    get_audio_source  — Factory to create sources by provider name.
"""

from streaming_benchmark.audio.capture.interface import AudioSource
from streaming_benchmark.audio.capture.microphone import MicrophoneSource
from streaming_benchmark.audio.capture.registry import get_audio_source
from streaming_benchmark.audio.capture.wav_file import WavFileSource

__all__ = [
    "AudioSource",
    "MicrophoneSource",
    "WavFileSource",
    "get_audio_source",
]
