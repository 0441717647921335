"""Custom exception hierarchy for the streaming benchmark.

All exceptions inherit from BenchmarkError, enabling targeted handling
at run boundaries while preserving specific failure context.
"""


class BenchmarkError(Exception):
    """Base exception for all benchmark errors."""

    def __init__(self, message: str, model_name: str | None = None) -> None:
        self.model_name = model_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.model_name:
            return f"[model={self.model_name}] {super().__str__()}"
        return super().__str__()


class ConfigError(BenchmarkError):
    """Raised when environment or command-line configuration is invalid."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class CaptureError(BenchmarkError):
    """Raised when audio capture cannot start or fails mid-stream."""

    def __init__(
        self,
        message: str,
        model_name: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.detail = detail
        super().__init__(message, model_name)


class ModelLoadError(BenchmarkError):
    """Raised when an ASR engine fails to load (or download) a model."""

    def __init__(
        self,
        message: str,
        model_name: str | None = None,
        provider: str | None = None,
    ) -> None:
        self.provider = provider
        super().__init__(message, model_name)


class ModelNotReadyError(BenchmarkError):
    """Raised when transcription is requested before a model is loaded."""


class TranscriptionError(BenchmarkError):
    """Raised when a single inference call fails."""

    def __init__(
        self,
        message: str,
        model_name: str | None = None,
        provider: str | None = None,
        chunk_index: int | None = None,
    ) -> None:
        self.provider = provider
        self.chunk_index = chunk_index
        super().__init__(message, model_name)


class ModelNotFoundError(BenchmarkError):
    """Raised when a requested model matches no entry in the model menu."""

    def __init__(self, query: str, available: list[str] | None = None) -> None:
        self.query = query
        self.available = available or []
        super().__init__(f"Model '{query}' not found")


class NoModelsAvailableError(BenchmarkError):
    """Raised when every model failed preparation."""


class ReportError(BenchmarkError):
    """Raised when the results report cannot be written."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)
