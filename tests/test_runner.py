"""Tests for BenchmarkRunner session orchestration."""

import io
import json
import math
import random
from pathlib import Path

import numpy as np
import pytest
from rich.console import Console as RichConsole

from streaming_benchmark.asr.interface import ASREngine, TranscriptionResult
from streaming_benchmark.asr.null import NullEngine
from streaming_benchmark.audio.capture.interface import AudioSource, SamplesCallback
from streaming_benchmark.audio.capture.wav_file import WavFileSource
from streaming_benchmark.audio.wav_utils import write_wav_samples
from streaming_benchmark.config import BenchmarkConfig
from streaming_benchmark.metrics import ComputeUnit, ModelMetrics, QualityRating
from streaming_benchmark.reporting.console import Console
from streaming_benchmark.runner import BenchmarkRunner, ModelSpec
from streaming_benchmark.utils.errors import (
    ModelLoadError,
    ModelNotFoundError,
    NoModelsAvailableError,
)

RATE = 16000

MODELS = (
    ModelSpec("tiny", "39 MB"),
    ModelSpec("base", "74 MB"),
    ModelSpec("large-v3", "1.5 GB"),
)


class BurstSource(AudioSource):
    """Delivers a fixed amount of audio synchronously when started.

    Reports the whole recording as already elapsed, so the runner stops
    capture on its first poll.
    """

    def __init__(self, seconds: float, burst: int = 1600) -> None:
        self.seconds = seconds
        self.burst = burst
        self.starts = 0

    def start(self, on_samples: SamplesCallback) -> None:
        self.starts += 1
        self._mark_started()
        samples = np.zeros(round(self.seconds * RATE), dtype=np.float32)
        for offset in range(0, len(samples), self.burst):
            on_samples(samples[offset : offset + self.burst])

    @property
    def elapsed(self) -> float:
        return self.seconds if self.is_running else 0.0

    def stop(self) -> float:
        if not self.is_running:
            return 0.0
        self._started_at = None
        return self.seconds


class FakeEngine(ASREngine):
    """Engine that always hears the same words."""

    provider = "fake"

    def __init__(
        self,
        model_name: str,
        text: str = "hello world",
        fail_load: bool = False,
        fail_transcribe: bool = False,
    ) -> None:
        self.model_name = model_name
        self.device = "cpu"
        self.text = text
        self.fail_load = fail_load
        self.fail_transcribe = fail_transcribe
        self.loaded = False
        self.unloads = 0
        self.calls = 0

    async def load(self) -> None:
        if self.fail_load:
            raise ModelLoadError("weights missing", self.model_name, provider=self.provider)
        self.loaded = True

    async def unload(self) -> None:
        self.loaded = False
        self.unloads += 1

    @property
    def is_loaded(self) -> bool:
        return self.loaded

    async def transcribe(
        self, samples: np.ndarray, sample_rate: int = RATE
    ) -> TranscriptionResult:
        self.calls += 1
        if self.fail_transcribe:
            raise RuntimeError("decoder crashed")
        return TranscriptionResult(text=self.text)


class RecordingFactory:
    """Records every engine built; per-model options by call order."""

    def __init__(self, **options_by_call: dict) -> None:
        self.engines: list[FakeEngine] = []
        self._options = options_by_call

    def __call__(self, model_name: str) -> FakeEngine:
        key = f"call{len(self.engines)}"
        engine = FakeEngine(model_name, **self._options.get(key, {}))
        self.engines.append(engine)
        return engine


def _config(**overrides: object) -> BenchmarkConfig:
    values = {"recording_duration": 3.0, "confirmation_window": 2, "unconfirmed_word_count": 0}
    values.update(overrides)
    return BenchmarkConfig(**values).validate()


def _console(input_fn=None) -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    rich = RichConsole(file=buffer, width=120)
    if input_fn is None:
        return Console(console=rich, interactive=False), buffer
    return Console(console=rich, input_fn=input_fn), buffer


def _runner(
    factory: RecordingFactory,
    source: AudioSource | None = None,
    console: Console | None = None,
    **kwargs: object,
) -> BenchmarkRunner:
    config = kwargs.pop("config", None) or _config()
    return BenchmarkRunner(
        config,
        console or _console()[0],
        source or BurstSource(3.0),
        factory,
        models=kwargs.pop("models", MODELS),
        rng=random.Random(0),
        metrics_stream=kwargs.pop("metrics_stream", io.StringIO()),
        **kwargs,
    )


class TestSelectModels:
    """Tests for model selection."""

    def test_all_models_by_default(self) -> None:
        assert _runner(RecordingFactory()).select_models() == list(MODELS)

    def test_exact_match_case_insensitive(self) -> None:
        assert _runner(RecordingFactory(), single_model="BASE").select_models() == [MODELS[1]]

    def test_substring_match(self) -> None:
        assert _runner(RecordingFactory(), single_model="large").select_models() == [MODELS[2]]

    def test_unknown_model(self) -> None:
        with pytest.raises(ModelNotFoundError) as exc_info:
            _runner(RecordingFactory(), single_model="huge").select_models()
        assert exc_info.value.available == ["tiny", "base", "large-v3"]


class TestPrepareModels:
    """Tests for the preparation phase."""

    @pytest.mark.asyncio
    async def test_loads_and_unloads_each_model(self) -> None:
        factory = RecordingFactory()
        status = await _runner(factory).prepare_models(MODELS)
        assert status == {"tiny": True, "base": True, "large-v3": True}
        assert all(e.unloads == 1 for e in factory.engines)
        assert all(not e.loaded for e in factory.engines)

    @pytest.mark.asyncio
    async def test_failed_model_reported_and_skipped(self) -> None:
        factory = RecordingFactory(call1={"fail_load": True})
        console, buffer = _console()
        status = await _runner(factory, console=console).prepare_models(MODELS)
        assert status == {"tiny": True, "base": False, "large-v3": True}
        assert "✗ base" in buffer.getvalue()
        assert "2 models ready, 1 failed." in buffer.getvalue()
        assert factory.engines[1].unloads == 1

    @pytest.mark.asyncio
    async def test_no_models_available(self) -> None:
        factory = RecordingFactory(call0={"fail_load": True})
        with pytest.raises(NoModelsAvailableError):
            await _runner(factory).prepare_models(MODELS[:1])


class TestModelTest:
    """Tests for a single model's live test."""

    @pytest.mark.asyncio
    async def test_records_chunk_timings(self) -> None:
        factory = RecordingFactory()
        runner = _runner(factory, skip_warmup=True)
        metrics = await runner.test_model(MODELS[0])

        # 3 s at 1.5 s chunks with 0.25 s overlap: two full chunks and an untimed remainder
        assert metrics.chunk_count == 2
        assert metrics.total_audio_duration == pytest.approx(3.0)
        assert metrics.model_name == "tiny"
        assert metrics.compute_unit is ComputeUnit.CPU
        assert metrics.user_quality_rating is QualityRating.SKIPPED
        assert math.isfinite(metrics.first_word_latency)
        assert metrics.backpressure_events == 0

        engine = factory.engines[0]
        assert engine.calls == 3
        assert engine.unloads == 1

    @pytest.mark.asyncio
    async def test_warmup_adds_one_inference(self) -> None:
        factory = RecordingFactory()
        await _runner(factory).test_model(MODELS[0])
        assert factory.engines[0].calls == 4

    @pytest.mark.asyncio
    async def test_live_transcript_and_review_displayed(self) -> None:
        console, buffer = _console()
        await _runner(RecordingFactory(), console=console, skip_warmup=True).test_model(MODELS[0])
        output = buffer.getvalue()
        assert "Testing Model: tiny (39 MB)" in output
        assert "hello [world]" in output
        assert "TRANSCRIPT:" in output
        assert "Recording stopped. Duration: 3.0 seconds" in output

    @pytest.mark.asyncio
    async def test_failed_chunks_dropped(self) -> None:
        factory = RecordingFactory(call0={"fail_transcribe": True})
        console, buffer = _console()
        runner = _runner(factory, console=console, skip_warmup=True)
        metrics = await runner.test_model(MODELS[0])
        assert metrics.chunk_count == 0
        assert math.isinf(metrics.first_word_latency)
        assert runner.metrics.in_flight == 0
        assert "Chunk 0 failed" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_warmup_failure_is_a_warning(self) -> None:
        factory = RecordingFactory(call0={"fail_transcribe": True})
        console, buffer = _console()
        await _runner(factory, console=console).test_model(MODELS[0])
        assert "Warning: Warmup failed" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_emits_metrics_line(self) -> None:
        stream = io.StringIO()
        await _runner(RecordingFactory(), skip_warmup=True, metrics_stream=stream).test_model(
            MODELS[0]
        )
        entry = json.loads(stream.getvalue())
        assert entry["metric_type"] == "model_benchmark"
        assert entry["model_name"] == "tiny"
        assert entry["chunk_count"] == 2

    @pytest.mark.asyncio
    async def test_quality_rating_prompted(self) -> None:
        def answer(prompt: str) -> str:
            return "5" if "rating" in prompt else ""

        console, _ = _console(input_fn=answer)
        metrics = await _runner(RecordingFactory(), console=console, skip_warmup=True).test_model(
            MODELS[0]
        )
        assert metrics.user_quality_rating is QualityRating.EXCELLENT

    @pytest.mark.asyncio
    async def test_cumulative_strategy(self) -> None:
        config = _config(streaming_strategy="cumulative", unconfirmed_word_count=1)
        metrics = await _runner(RecordingFactory(), config=config, skip_warmup=True).test_model(
            MODELS[0]
        )
        assert metrics.chunk_count == 2
        assert math.isfinite(metrics.first_word_latency)

    @pytest.mark.asyncio
    async def test_wav_replay_source(self, tmp_path: Path) -> None:
        path = tmp_path / "speech.wav"
        write_wav_samples(str(path), np.zeros(2 * RATE, dtype=np.float32))
        source = WavFileSource(str(path), realtime=False)
        config = _config(recording_duration=0.3)
        runner = BenchmarkRunner(
            config,
            _console()[0],
            source,
            lambda name: NullEngine(model_name=name),
            skip_warmup=True,
            models=MODELS,
            metrics_stream=io.StringIO(),
        )
        metrics = await runner.test_model(MODELS[0])
        assert metrics.chunk_count == 1
        assert metrics.compute_unit is ComputeUnit.CPU


class TestRun:
    """Tests for the full session."""

    @pytest.mark.asyncio
    async def test_tests_every_ready_model(self) -> None:
        factory = RecordingFactory(call1={"fail_load": True})
        runner = _runner(factory, skip_warmup=True)
        results = await runner.run()
        assert [r.model_name for r in results] == ["tiny", "large-v3"]
        assert runner.results == results

    @pytest.mark.asyncio
    async def test_failed_test_recorded_with_sentinel(self) -> None:
        # Preparation succeeds (call0), the test's own load fails (call1)
        factory = RecordingFactory(call1={"fail_load": True})
        runner = _runner(factory, single_model="tiny", skip_warmup=True)
        (result,) = await runner.run()
        assert result == ModelMetrics.failed("tiny")
        assert factory.engines[1].unloads == 1

    @pytest.mark.asyncio
    async def test_each_model_gets_a_new_passage(self) -> None:
        console, buffer = _console()
        runner = _runner(RecordingFactory(), console=console, skip_warmup=True)
        await runner.run()
        assert len(runner._used_passages) == 3

    @pytest.mark.asyncio
    async def test_declining_to_continue_stops_session(self) -> None:
        def answer(prompt: str) -> str:
            if "Continue" in prompt:
                return "n"
            return "3" if "rating" in prompt else ""

        console, _ = _console(input_fn=answer)
        results = await _runner(RecordingFactory(), console=console, skip_warmup=True).run()
        assert len(results) == 1
        assert results[0].user_quality_rating is QualityRating.FAIR

    @pytest.mark.asyncio
    async def test_stop_skips_remaining_models(self) -> None:
        source = BurstSource(3.0)
        runner = _runner(RecordingFactory(), source=source, skip_warmup=True)
        runner.stop()
        assert await runner.run() == []
        assert source.starts == 0

    @pytest.mark.asyncio
    async def test_stop_at_start_prompt_skips_rating_and_remaining_models(self) -> None:
        prompts: list[str] = []
        runner: BenchmarkRunner | None = None

        def answer(prompt: str) -> str:
            prompts.append(prompt)
            if "start recording" in prompt:
                runner.stop()
                raise KeyboardInterrupt
            return ""

        console, _ = _console(input_fn=answer)
        runner = _runner(RecordingFactory(), console=console, skip_warmup=True)
        (result,) = await runner.run()
        assert result.model_name == "tiny"
        assert result.user_quality_rating is QualityRating.SKIPPED
        assert prompts == ["Press ENTER to start recording... "]
