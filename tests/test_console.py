"""Tests for the rich-based benchmark console."""

import io
import math
from datetime import datetime

import pytest
from rich.console import Console as RichConsole

from streaming_benchmark.metrics import (
    ChunkTiming,
    ComputeUnit,
    ModelMetrics,
    QualityRating,
    ViabilityThresholds,
)
from streaming_benchmark.reporting.console import Console, format_latency, format_ratio
from streaming_benchmark.reporting.system_info import SystemInfo


def _console(**kwargs: object) -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(console=RichConsole(file=buffer, width=120), **kwargs), buffer


def _scripted_input(*answers: str):
    """Input function returning answers in order, then raising EOFError."""
    queue = list(answers)
    prompts: list[str] = []

    def _input(prompt: str) -> str:
        prompts.append(prompt)
        if not queue:
            raise EOFError
        return queue.pop(0)

    _input.prompts = prompts  # type: ignore[attr-defined]
    return _input


def _no_input(prompt: str) -> str:
    raise AssertionError(f"unexpected prompt: {prompt}")


def _metrics(ratio: float = 0.5, rating: QualityRating = QualityRating.GOOD) -> ModelMetrics:
    return ModelMetrics(
        model_name="small",
        total_audio_duration=30.0,
        total_processing_time=30.0 * ratio,
        average_processing_ratio=ratio,
        first_word_latency=1.5,
        backpressure_events=0,
        compute_unit=ComputeUnit.GPU,
        chunk_timings=(),
        user_quality_rating=rating,
    )


class TestFormatting:
    """Tests for number formatting helpers."""

    def test_ratio(self) -> None:
        assert format_ratio(0.456) == "0.46x"
        assert format_ratio(math.inf) == "N/A"

    def test_latency(self) -> None:
        assert format_latency(1.234) == "1.2s"
        assert format_latency(math.inf) == "N/A"


class TestDisplay:
    """Tests for display output."""

    def test_model_status_lines(self) -> None:
        console, buffer = _console()
        console.show_model_status(1, 5, "tiny")
        console.show_model_status(2, 5, "medium", error="download failed")
        output = buffer.getvalue()
        assert "[1/5] ✓ tiny" in output
        assert "[2/5] ✗ medium - download failed" in output

    def test_download_complete_with_failures(self) -> None:
        console, buffer = _console()
        console.show_download_complete(3, 2)
        assert "3 models ready, 2 failed." in buffer.getvalue()
        assert "skip failed models" in buffer.getvalue()

    def test_transcription_marks_unconfirmed(self) -> None:
        console, buffer = _console()
        console.update_transcription("hello world", "foo bar")
        console.update_transcription("", "just started")
        lines = [line.rstrip() for line in buffer.getvalue().splitlines()]
        assert lines == ["hello world [foo bar]", "[just started]"]

    def test_timing_only_when_verbose(self) -> None:
        timing = ChunkTiming(3, 1.5, 0.3, 0.2, False)
        quiet, quiet_buffer = _console()
        quiet.update_timing(timing)
        assert quiet_buffer.getvalue() == ""

        verbose, buffer = _console(verbose=True)
        verbose.update_timing(timing)
        assert "Chunk 3: 1.5s audio -> 0.30s process (0.20x) ok" in buffer.getvalue()

    def test_recording_status_clock(self) -> None:
        console, buffer = _console()
        console.show_recording_status(65.2, 35.0)
        assert "Recording... 01:05 / 00:35" in buffer.getvalue()

    def test_review_without_transcript(self) -> None:
        console, buffer = _console()
        console.show_review("Read this.", "")
        output = buffer.getvalue()
        assert "REFERENCE:" in output
        assert "Read this." in output
        assert "(No transcription captured)" in output

    def test_model_results(self) -> None:
        console, buffer = _console()
        console.show_model_results(_metrics())
        output = buffer.getvalue()
        assert "Results for small:" in output
        assert "Average Processing Ratio: 0.50x realtime" in output
        assert "First-Word Latency: 1.5s" in output
        assert "Compute Unit: GPU" in output
        assert "4/5 (Good)" in output
        assert "[✓] STREAMING VIABLE" in output

    def test_failed_model_results(self) -> None:
        console, buffer = _console()
        console.show_model_results(ModelMetrics.failed("large-v3"))
        output = buffer.getvalue()
        assert "Average Processing Ratio: N/A" in output
        assert "User Quality Rating: Skipped" in output
        assert "[✗] STREAMING NOT VIABLE" in output

    def test_results_use_configured_thresholds(self) -> None:
        strict = ViabilityThresholds(viable_ratio=0.4, marginal_ratio=0.6)
        console, buffer = _console(thresholds=strict)
        console.show_model_results(_metrics(ratio=0.5))
        assert "STREAMING MARGINAL" in buffer.getvalue()

    def test_final_report_table(self) -> None:
        console, buffer = _console()
        info = SystemInfo("bench-host", "Ryzen", 32, "Ubuntu 24.04")
        console.show_final_report(
            [_metrics(), ModelMetrics.failed("medium")],
            info,
            date=datetime(2026, 10, 18, 9, 30),
        )
        output = buffer.getvalue()
        assert "Machine: bench-host (32GB RAM), Ubuntu 24.04" in output
        assert "Date:    2026-10-18 09:30" in output
        assert "small" in output
        assert "medium" in output
        assert "Not Viable" in output
        assert "Legend:" in output

    def test_messages(self) -> None:
        console, buffer = _console()
        console.warning("disk almost full")
        console.error("no microphone")
        output = buffer.getvalue()
        assert "Warning: disk almost full" in output
        assert "Error: no microphone" in output


class TestPrompts:
    """Tests for interactive prompts."""

    @pytest.mark.parametrize(
        "answer,default,expected",
        [("n", True, False), ("YES", False, True), ("", False, False), ("  ", True, True)],
    )
    def test_yes_no(self, answer: str, default: bool, expected: bool) -> None:
        console, _ = _console(input_fn=_scripted_input(answer))
        assert console.prompt_yes_no("Continue?", default=default) is expected

    def test_yes_no_suffix(self) -> None:
        input_fn = _scripted_input("y")
        console, _ = _console(input_fn=input_fn)
        console.prompt_yes_no("Continue to next model?", default=False)
        assert input_fn.prompts == ["Continue to next model? [y/N]: "]

    def test_yes_no_end_of_input_returns_default(self) -> None:
        console, _ = _console(input_fn=_scripted_input())
        assert console.prompt_yes_no("Continue?", default=True) is True

    def test_quality_retries_until_valid(self) -> None:
        console, buffer = _console(input_fn=_scripted_input("great", "9", " 4 "))
        assert console.prompt_quality() is QualityRating.GOOD
        assert buffer.getvalue().count("Please enter a number from 1 to 5.") == 2

    def test_quality_end_of_input_skips(self) -> None:
        console, _ = _console(input_fn=_scripted_input("0"))
        assert console.prompt_quality() is QualityRating.SKIPPED

    def test_wait_for_enter_reads_once(self) -> None:
        input_fn = _scripted_input("")
        console, _ = _console(input_fn=input_fn)
        console.wait_for_enter("Press ENTER to start recording")
        assert input_fn.prompts == ["Press ENTER to start recording... "]

    def test_prompting_only_while_reading(self) -> None:
        seen: list[bool] = []

        def answer(prompt: str) -> str:
            seen.append(console.prompting)
            return "y"

        console, _ = _console(input_fn=answer)
        assert console.prompting is False
        console.prompt_yes_no("Continue?")
        assert seen == [True]
        assert console.prompting is False

    def test_ctrl_c_answers_default(self) -> None:
        def interrupted(prompt: str) -> str:
            raise KeyboardInterrupt

        console, _ = _console(input_fn=interrupted)
        assert console.prompt_yes_no("Continue?", default=False) is False
        assert console.prompt_quality() is QualityRating.SKIPPED
        console.wait_for_enter()
        assert console.prompting is False

    def test_non_interactive_never_reads(self) -> None:
        console, _ = _console(input_fn=_no_input, interactive=False)
        assert console.prompt_yes_no("Continue?", default=False) is False
        assert console.prompt_quality() is QualityRating.SKIPPED
        console.wait_for_enter()
