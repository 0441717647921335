"""OpenAI-compatible HTTP ASR client.

Talks to any server exposing ``POST /v1/audio/transcriptions`` (for
example faster-whisper-server / speaches, or whisper.cpp's server in
OpenAI mode). Each audio window is posted as a 16 kHz mono 16-bit WAV.
The server, not this process, does the inference, so the measured
processing time includes the HTTP round trip.
"""

import logging

import httpx
import numpy as np

from streaming_benchmark.asr.interface import (
    ASREngine,
    TranscriptionResult,
    TranscriptSegment,
)
from streaming_benchmark.audio.wav_utils import SAMPLE_RATE, encode_wav
from streaming_benchmark.utils.errors import (
    ModelLoadError,
    ModelNotReadyError,
    TranscriptionError,
)
from streaming_benchmark.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_SECONDS = 60.0
PROBE_RETRIES = 3


class HttpEngine(ASREngine):
    """ASR engine backed by an OpenAI-compatible transcription server.

    Args:
        model_name: Model identifier sent with every request.
        base_url: Server root (default http://localhost:8000).
        api_key: Bearer token, if the server requires one.
        device: Device the server runs on, for reporting only.
        language: Language hint sent with every request.
        timeout: Timeout in seconds for connecting and for the readiness
            probe. Transcription requests wait indefinitely, so a stalled
            server shows up as backpressure instead of dropped chunks.
        transport: Optional httpx transport (tests inject MockTransport).
    """

    provider = "http"

    def __init__(
        self,
        model_name: str,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "",
        device: str = "auto",
        language: str = "en",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not model_name:
            raise ValueError("model_name is required")
        self.model_name = model_name
        self.device = device
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._language = language
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    async def load(self) -> None:
        """Open a client and confirm the server is reachable.

        Raises:
            ModelLoadError: If the server cannot be reached after retries, or
                its model listing is not a JSON object.
        """
        if self._client is not None:
            return
        client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            available = await self._probe(client)
        except (httpx.HTTPError, ValueError) as exc:
            await client.aclose()
            raise ModelLoadError(
                f"Server at {self._base_url} not ready: {exc}",
                self.model_name,
                provider=self.provider,
            ) from exc

        if available and self.model_name not in available:
            logger.warning(
                "Model %s not listed by server; it may be loaded on first request",
                self.model_name,
                extra={"model": self.model_name},
            )
        self._client = client
        logger.info("Connected to %s", self._base_url, extra={"model": self.model_name})

    @retry_with_backoff(
        max_retries=PROBE_RETRIES,
        retryable_exceptions=(httpx.RequestError, httpx.HTTPStatusError),
        stage="server_probe",
    )
    async def _probe(self, client: httpx.AsyncClient) -> list[str]:
        """Return the model ids the server advertises.

        Raises:
            ValueError: If the listing is not JSON or not an object with a
                ``data`` list. Not retried.
        """
        response = await client.get("/v1/models")
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict) or not isinstance(body.get("data", []), list):
            raise ValueError(f"Unexpected /v1/models response: {response.text[:200]}")
        return [
            str(entry.get("id", "")) for entry in body.get("data", []) if isinstance(entry, dict)
        ]

    async def unload(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()

    @property
    def is_loaded(self) -> bool:
        return self._client is not None

    async def transcribe(
        self, samples: np.ndarray, sample_rate: int = SAMPLE_RATE
    ) -> TranscriptionResult:
        """Post one audio window and parse the transcription response.

        Raises:
            ModelNotReadyError: If load() has not succeeded.
            TranscriptionError: On transport failure, a non-200 response, or
                a body that is not a JSON object.
        """
        if self._client is None:
            raise ModelNotReadyError("HTTP engine not loaded", self.model_name)

        files = {"file": ("window.wav", encode_wav(samples, sample_rate), "audio/wav")}
        data = {
            "model": self.model_name,
            "language": self._language,
            "response_format": "verbose_json",
        }
        try:
            response = await self._client.post(
                "/v1/audio/transcriptions",
                files=files,
                data=data,
                timeout=httpx.Timeout(None, connect=self._timeout),
            )
        except httpx.HTTPError as exc:
            raise TranscriptionError(
                f"Request failed: {exc}", self.model_name, provider=self.provider
            ) from exc

        if response.status_code != 200:
            raise TranscriptionError(
                f"Transcription failed with status {response.status_code}: {response.text}",
                self.model_name,
                provider=self.provider,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise TranscriptionError(
                "Response is not JSON", self.model_name, provider=self.provider
            ) from exc
        if not isinstance(body, dict):
            raise TranscriptionError(
                f"Expected a JSON object, got {type(body).__name__}",
                self.model_name,
                provider=self.provider,
            )
        return self._convert_response(body)

    @staticmethod
    def _convert_response(body: dict) -> TranscriptionResult:
        segments = [
            TranscriptSegment(
                start=float(seg.get("start", 0.0)),
                end=float(seg.get("end", 0.0)),
                text=str(seg.get("text", "")).strip(),
            )
            for seg in body.get("segments") or []
        ]
        text = body.get("text")
        if text is None:
            text = " ".join(seg.text for seg in segments)
        return TranscriptionResult(text=str(text).strip(), segments=segments, raw_response=body)
