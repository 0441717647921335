"""Benchmark session orchestrator.

Runs each selected model through the same live test:
load -> warmup -> read a passage aloud -> stream chunks through the
transcriber -> review -> rate -> finalize metrics -> unload.

Threading: the capture source calls ChunkAccumulator.push on its own
thread. Completed chunks hop onto the event loop with
call_soon_threadsafe, are counted as in flight, and are queued for a
single worker task, so inference never overlaps within a run. A model
whose test raises a BenchmarkError is recorded with failed metrics and
the session moves on.
"""

from __future__ import annotations

import asyncio
import logging
import random
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TextIO

from streaming_benchmark.asr.interface import ASREngine
from streaming_benchmark.audio.capture.interface import AudioSource
from streaming_benchmark.audio.chunker import AudioChunk, ChunkAccumulator
from streaming_benchmark.config import BenchmarkConfig
from streaming_benchmark.metrics.engine import MetricsEngine
from streaming_benchmark.metrics.models import ModelMetrics, QualityRating
from streaming_benchmark.observability.metrics import StageTimer, log_model_metrics
from streaming_benchmark.passages import random_passage
from streaming_benchmark.reporting.console import Console
from streaming_benchmark.streaming.events import (
    ChunkFailed,
    ChunkTimed,
    EventChannel,
    FirstWord,
    StreamEvent,
    TranscriptUpdated,
)
from streaming_benchmark.streaming.transcriber import StreamingTranscriber, create_strategy
from streaming_benchmark.utils.errors import (
    BenchmarkError,
    ModelNotFoundError,
    NoModelsAvailableError,
    TranscriptionError,
)

logger = logging.getLogger(__name__)

STATUS_INTERVAL_SECONDS = 5.0
POLL_INTERVAL_SECONDS = 0.1


@dataclass(frozen=True)
class ModelSpec:
    """A model on the test menu with its approximate download size."""

    name: str
    size: str


DEFAULT_MODELS: tuple[ModelSpec, ...] = (
    ModelSpec("tiny", "39 MB"),
    ModelSpec("base", "74 MB"),
    ModelSpec("small", "244 MB"),
    ModelSpec("medium", "769 MB"),
    ModelSpec("large-v3", "1.5 GB"),
)

EngineFactory = Callable[[str], ASREngine]


class BenchmarkRunner:
    """Drives a benchmark session over one or more models.

    Args:
        config: Validated benchmark configuration.
        console: Terminal display and prompts.
        audio_source: Capture source shared by every model test.
        engine_factory: Builds an unloaded engine for a model name.
        skip_warmup: Skip the warmup inference before each test.
        single_model: Test only the model matching this name.
        models: Model menu (defaults to DEFAULT_MODELS).
        rng: Random source for passage selection.
        metrics_stream: Stream for the per-model structured metrics line.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        console: Console,
        audio_source: AudioSource,
        engine_factory: EngineFactory,
        skip_warmup: bool = False,
        single_model: str | None = None,
        models: Sequence[ModelSpec] = DEFAULT_MODELS,
        rng: random.Random | None = None,
        metrics_stream: TextIO | None = None,
    ) -> None:
        self.config = config
        self.console = console
        self.audio_source = audio_source
        self.engine_factory = engine_factory
        self.skip_warmup = skip_warmup
        self.single_model = single_model
        self.models = tuple(models)
        self.thresholds = config.viability_thresholds()
        self.metrics = MetricsEngine(config.backpressure_threshold)
        self.results: list[ModelMetrics] = []
        self._rng = rng or random.Random()
        self._metrics_stream = metrics_stream if metrics_stream is not None else sys.stderr
        self._used_passages: set[int] = set()
        self._stop_requested = False

    def stop(self) -> None:
        """End the current recording early and skip remaining models."""
        logger.info("Stop requested")
        self._stop_requested = True

    def select_models(self) -> list[ModelSpec]:
        """Return the models to test.

        Raises:
            ModelNotFoundError: If ``single_model`` matches no model.
        """
        if self.single_model is None:
            return list(self.models)
        query = self.single_model.lower()
        for spec in self.models:
            if spec.name.lower() == query:
                return [spec]
        for spec in self.models:
            if query in spec.name.lower():
                return [spec]
        raise ModelNotFoundError(self.single_model, [spec.name for spec in self.models])

    async def prepare_models(self, models: Sequence[ModelSpec]) -> dict[str, bool]:
        """Load and unload each model once so files are cached before testing.

        Returns:
            Mapping of model name to readiness.

        Raises:
            NoModelsAvailableError: If no model could be prepared.
        """
        self.console.show_download_phase([spec.name for spec in models])
        status: dict[str, bool] = {}
        for position, spec in enumerate(models, start=1):
            engine = self.engine_factory(spec.name)
            try:
                with StageTimer("prepare") as timer:
                    await engine.load()
            except BenchmarkError as exc:
                status[spec.name] = False
                logger.warning(
                    "Model preparation failed: %s",
                    exc,
                    extra={"model": spec.name, "stage": "prepare", "error": str(exc)},
                )
                self.console.show_model_status(position, len(models), spec.name, error=str(exc))
            else:
                status[spec.name] = True
                logger.info(
                    "Model %s ready",
                    spec.name,
                    extra={"model": spec.name, "stage": "prepare",
                           "duration_seconds": timer.duration_seconds},
                )
                self.console.show_model_status(position, len(models), spec.name)
            finally:
                await engine.unload()

        ready = sum(status.values())
        self.console.show_download_complete(ready, len(models) - ready)
        if ready == 0:
            raise NoModelsAvailableError("No models available to test")
        return status

    async def run(self) -> list[ModelMetrics]:
        """Prepare and test every selected model.

        Returns:
            Metrics for each tested model, in test order.

        Raises:
            ModelNotFoundError: If the requested model does not exist.
            NoModelsAvailableError: If every model failed preparation.
        """
        models = self.select_models()
        status = await self.prepare_models(models)
        ready = [spec for spec in models if status.get(spec.name)]

        for position, spec in enumerate(ready):
            if self._stop_requested:
                break
            try:
                result = await self.test_model(spec)
            except BenchmarkError as exc:
                logger.error(
                    "Model test failed: %s",
                    exc,
                    extra={"model": spec.name, "error": str(exc)},
                )
                self.console.error(str(exc))
                result = ModelMetrics.failed(spec.name)
            self.results.append(result)
            self.console.show_model_results(result)

            is_last = position == len(ready) - 1
            if not is_last and not self._stop_requested:
                if not self.console.prompt_yes_no("Continue to next model?", default=True):
                    break
        return self.results

    async def test_model(self, spec: ModelSpec) -> ModelMetrics:
        """Run the live test for one model and return its metrics.

        The engine is always unloaded afterwards, even on failure.
        """
        self.console.show_model_header(spec.name, spec.size)
        engine = self.engine_factory(spec.name)
        try:
            return await self._run_test(spec, engine)
        finally:
            await engine.unload()

    async def _run_test(self, spec: ModelSpec, engine: ASREngine) -> ModelMetrics:
        self.console.show_loading("Loading model")
        with StageTimer("model_load") as timer:
            await engine.load()
        self.console.show_loading_done(timer.duration_seconds)
        logger.info(
            "Model loaded",
            extra={"model": spec.name, "stage": "model_load",
                   "duration_seconds": timer.duration_seconds},
        )

        events = EventChannel()
        events.add_listener(self._on_event)
        policy, window = create_strategy(
            self.config.streaming_strategy,
            sample_rate=self.config.sample_rate,
            confirmation_window=self.config.confirmation_window,
            unconfirmed_word_count=self.config.unconfirmed_word_count,
            max_duration=self.config.max_transcription_duration,
            min_duration=self.config.min_transcription_duration,
        )
        transcriber = StreamingTranscriber(
            engine, policy, window, events, sample_rate=self.config.sample_rate
        )

        if not self.skip_warmup:
            self.console.show_loading("Warming up")
            try:
                self.console.show_loading_done(await transcriber.warmup())
            except TranscriptionError as exc:
                self.console.show_loading_done()
                self.console.warning(f"Warmup failed: {exc}")

        index, passage = random_passage(self._used_passages, self._rng)
        self._used_passages.add(index)
        self.console.show_test_instructions(passage, self.config.recording_duration)
        self.console.wait_for_enter("Press ENTER to start recording")

        transcriber.reset()
        self.metrics.reset()
        display = asyncio.create_task(self._display(events))
        try:
            await self._record(transcriber, events)
        finally:
            events.close()
            await display

        self.console.show_review(passage, transcriber.full_transcript)
        rating = QualityRating.SKIPPED
        if not self._stop_requested:
            self.console.wait_for_enter("Press ENTER when ready to rate")
            rating = self.console.prompt_quality()

        result = self.metrics.finalize(spec.name, engine.compute_unit, rating)
        self.console.show_timing_summary(result.chunk_count, result.average_processing_ratio)
        log_model_metrics(result, stream=self._metrics_stream, thresholds=self.thresholds)
        return result

    async def _record(self, transcriber: StreamingTranscriber, events: EventChannel) -> float:
        """Capture for the configured duration while the worker transcribes.

        Returns:
            Seconds of audio captured.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[AudioChunk | None] = asyncio.Queue()

        def _enqueue(chunk: AudioChunk) -> None:
            self.metrics.chunk_started()
            queue.put_nowait(chunk)

        accumulator = ChunkAccumulator(
            self.config.sample_rate,
            self.config.chunk_duration,
            self.config.chunk_overlap,
            on_chunk=lambda chunk: loop.call_soon_threadsafe(_enqueue, chunk),
        )
        worker = asyncio.create_task(self._process_chunks(queue, transcriber, events))
        target = self.config.recording_duration
        try:
            self.metrics.start_test()
            self.audio_source.start(accumulator.push)
            try:
                next_status = 0.0
                while not self._stop_requested:
                    elapsed = self.audio_source.elapsed
                    if elapsed >= target:
                        break
                    if elapsed >= next_status:
                        self.console.show_recording_status(elapsed, target)
                        next_status += STATUS_INTERVAL_SECONDS
                    await asyncio.sleep(min(POLL_INTERVAL_SECONDS, target - elapsed))
            finally:
                captured = self.audio_source.stop()
            self.console.show_recording_stopped(captured)

            # Let chunk hand-offs scheduled before stop() reach the queue
            await asyncio.sleep(0)
            remainder = accumulator.flush_chunk()
            queue.put_nowait(None)
            await worker
        finally:
            if not worker.done():
                worker.cancel()

        # A remainder holding only the overlap tail carries no new audio
        if remainder is not None and len(remainder.new_samples) > 0:
            try:
                await transcriber.transcribe_chunk(remainder)
            except TranscriptionError as exc:
                logger.warning(
                    "Final partial chunk failed: %s",
                    exc,
                    extra={"chunk_index": remainder.index, "error": str(exc)},
                )
        return captured

    async def _process_chunks(
        self,
        queue: asyncio.Queue[AudioChunk | None],
        transcriber: StreamingTranscriber,
        events: EventChannel,
    ) -> None:
        while True:
            chunk = await queue.get()
            if chunk is None:
                return
            try:
                processing_time = await transcriber.transcribe_chunk(chunk)
            except TranscriptionError as exc:
                self.metrics.chunk_dropped()
                logger.warning(
                    "Chunk %d dropped: %s",
                    chunk.index,
                    exc,
                    extra={"chunk_index": chunk.index, "error": str(exc)},
                )
                events.publish(ChunkFailed(chunk_index=chunk.index, error=str(exc)))
                continue
            timing = self.metrics.chunk_completed(
                chunk.duration_seconds, processing_time, chunk.index
            )
            events.publish(ChunkTimed(timing=timing))

    def _on_event(self, event: StreamEvent) -> None:
        if isinstance(event, FirstWord):
            self.metrics.record_first_word()

    async def _display(self, events: EventChannel) -> None:
        async for event in events:
            if isinstance(event, TranscriptUpdated):
                self.console.update_transcription(event.confirmed_text, event.unconfirmed_text)
            elif isinstance(event, ChunkTimed):
                self.console.update_timing(event.timing)
            elif isinstance(event, ChunkFailed):
                self.console.warning(f"Chunk {event.chunk_index} failed: {event.error}")
