"""ASR engine registry with configuration-driven provider selection.

Maps provider name strings to engine classes. Use get_asr_engine() to
instantiate an engine by name with engine-specific configuration.
"""

from streaming_benchmark.asr.http import HttpEngine
from streaming_benchmark.asr.interface import ASREngine
from streaming_benchmark.asr.local_whisper import FasterWhisperEngine
from streaming_benchmark.asr.null import NullEngine
from streaming_benchmark.utils.errors import ConfigError

ASR_ENGINES: dict[str, type[ASREngine]] = {
    "faster-whisper": FasterWhisperEngine,
    "http": HttpEngine,
    "null": NullEngine,
}


def get_asr_engine(provider: str, **kwargs: object) -> ASREngine:
    """Create an ASR engine instance by provider name.

    Args:
        provider: Provider name (e.g., "faster-whisper", "http", "null").
        **kwargs: Engine-specific configuration passed to the constructor.

    Returns:
        An unloaded ASREngine instance.

    Raises:
        ConfigError: If the provider name is not registered.
    """
    engine_cls = ASR_ENGINES.get(provider)
    if not engine_cls:
        available = ", ".join(sorted(ASR_ENGINES.keys()))
        raise ConfigError(
            f"Unknown ASR provider: '{provider}'. Available: {available}",
            field="asr_provider",
        )
    return engine_cls(**kwargs)
