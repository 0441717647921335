"""Audio source registry with configuration-driven provider selection.

Maps provider name strings to source classes. Use get_audio_source() to
instantiate a source by name with source-specific configuration.
"""

from streaming_benchmark.audio.capture.interface import AudioSource
from streaming_benchmark.audio.capture.microphone import MicrophoneSource
from streaming_benchmark.audio.capture.wav_file import WavFileSource
from streaming_benchmark.utils.errors import CaptureError

AUDIO_SOURCES: dict[str, type[AudioSource]] = {
    "microphone": MicrophoneSource,
    "wav": WavFileSource,
}


def get_audio_source(provider: str, **kwargs: object) -> AudioSource:
    """Create an audio source by provider name.

    Args:
        provider: Provider name (e.g., "microphone", "wav").
        **kwargs: Source-specific configuration passed to the constructor.

    Returns:
        An initialized AudioSource.

    Raises:
        CaptureError: If the provider name is not registered.
    """
    source_cls = AUDIO_SOURCES.get(provider)
    if not source_cls:
        available = ", ".join(sorted(AUDIO_SOURCES.keys()))
        raise CaptureError(f"Unknown audio source: '{provider}'. Available: {available}")
    return source_cls(**kwargs)
