"""Interactive terminal output built on rich.

All user-facing text of a benchmark session goes through Console: phase
headers, model preparation status, the live transcript, per-chunk
timing, review, and results. Prompts read from an injectable input
function; in non-interactive mode they return their defaults without
reading, so sessions can run unattended (CI, WAV replay).
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from datetime import datetime

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from streaming_benchmark.metrics.models import (
    ChunkTiming,
    ModelMetrics,
    QualityRating,
    ViabilityStatus,
)
from streaming_benchmark.metrics.viability import (
    DEFAULT_THRESHOLDS,
    ViabilityThresholds,
    classify_viability,
)
from streaming_benchmark.reporting.system_info import SystemInfo

STATUS_STYLES: dict[ViabilityStatus, tuple[str, str]] = {
    ViabilityStatus.VIABLE: ("green", "✓"),
    ViabilityStatus.MARGINAL: ("yellow", "~"),
    ViabilityStatus.NOT_VIABLE: ("red", "✗"),
}

QUALITY_HELP = (
    "  1 = Unusable  (many errors, hard to understand)",
    "  2 = Poor      (frequent errors, requires effort)",
    "  3 = Fair      (some errors, but readable)",
    "  4 = Good      (minor errors, easy to follow)",
    "  5 = Excellent (accurate, natural reading)",
)

LEGEND = (
    "  Ratio      = processing_time / audio_duration (< 1.0 required for streaming)",
    "  Latency    = time from recording start to first confirmed word",
    "  Compute    = hardware reported by the engine",
    "  Viable     = ratio < 1.0, latency < 3.0s, zero backpressure, quality >= Fair",
    "  Marginal   = ratio below 1.5x, may work for slow or deliberate speech",
    "  Not Viable = ratio of 1.5x or more, audio backs up",
)


def format_ratio(value: float) -> str:
    return f"{value:.2f}x" if math.isfinite(value) else "N/A"


def format_latency(value: float) -> str:
    return f"{value:.1f}s" if math.isfinite(value) else "N/A"


class Console:
    """Benchmark terminal display.

    Args:
        console: rich Console to draw on (a new stdout console if None).
        input_fn: Function used to read a line of user input.
        interactive: When False, prompts return defaults without reading.
        verbose: Show per-chunk timing lines.
        thresholds: Thresholds used to label each model's verdict.
    """

    def __init__(
        self,
        console: RichConsole | None = None,
        input_fn: Callable[[str], str] = input,
        interactive: bool = True,
        verbose: bool = False,
        thresholds: ViabilityThresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        self.rich = console or RichConsole()
        self._input = input_fn
        self.interactive = interactive
        self.verbose = verbose
        self.thresholds = thresholds
        self._prompting = False

    # Phases

    def show_banner(self) -> None:
        self.rich.print(
            Panel.fit(
                "Measures whether each Whisper model can keep up with live speech.",
                title="Whisper Streaming Benchmark",
                border_style="cyan",
            )
        )

    def show_section(self, title: str) -> None:
        self.rich.rule(f"[bold]{title}[/bold]")

    def show_download_phase(self, models: Sequence[str]) -> None:
        self.show_section("Preparing Models")
        self.rich.print(f"Checking {len(models)} models before benchmark begins...")

    def show_model_status(
        self, index: int, total: int, model_name: str, error: str | None = None
    ) -> None:
        if error is None:
            self.rich.print(f"  [{index}/{total}] [green]✓[/green] {model_name}", highlight=False)
        else:
            self.rich.print(
                f"  [{index}/{total}] [red]✗[/red] {model_name} - {error}", highlight=False
            )

    def show_download_complete(self, successful: int, failed: int) -> None:
        if failed == 0:
            self.rich.print(f"[green]All {successful} models ready.[/green]")
        else:
            self.rich.print(f"[yellow]{successful} models ready, {failed} failed.[/yellow]")
            self.rich.print("Benchmark will skip failed models.")

    def show_model_header(self, name: str, size: str) -> None:
        self.rich.print()
        self.rich.print(f"[bold]Testing Model:[/bold] {name} ({size})")

    def show_loading(self, message: str) -> None:
        self.rich.print(f"{message}...", end="")

    def show_loading_done(self, duration: float | None = None) -> None:
        if duration is None:
            self.rich.print(" Done")
        else:
            self.rich.print(f" Done ({duration:.1f}s)")

    def show_test_instructions(self, passage: str, duration: float) -> None:
        self.rich.print()
        self.rich.print(Panel(passage, title="Read this passage aloud", border_style="blue"))
        self.rich.print(f"Recording runs for {duration:.0f} seconds once started.")

    def show_recording_status(self, elapsed: float, target: float) -> None:
        elapsed_s, target_s = int(elapsed), int(target)
        self.rich.print(
            f"[dim]Recording... {elapsed_s // 60:02d}:{elapsed_s % 60:02d}"
            f" / {target_s // 60:02d}:{target_s % 60:02d}[/dim]"
        )

    def show_recording_stopped(self, duration: float) -> None:
        self.rich.print(f"Recording stopped. Duration: {duration:.1f} seconds")

    # Live output

    def update_transcription(self, confirmed: str, unconfirmed: str) -> None:
        line = Text()
        line.append(confirmed, style="bold")
        if unconfirmed:
            if confirmed:
                line.append(" ")
            line.append(f"[{unconfirmed}]", style="dim")
        self.rich.print(line)

    def update_timing(self, timing: ChunkTiming) -> None:
        if not self.verbose:
            return
        status = "[green]ok[/green]" if timing.is_realtime else "[red]slow[/red]"
        self.rich.print(
            f"  Chunk {timing.chunk_index}: {timing.audio_duration:.1f}s audio -> "
            f"{timing.processing_time:.2f}s process ({format_ratio(timing.processing_ratio)})"
            f" {status}",
            highlight=False,
        )

    def show_timing_summary(self, chunks: int, average_ratio: float) -> None:
        self.rich.print(
            f"  {chunks} chunks processed, average ratio: {format_ratio(average_ratio)}"
        )

    def show_review(self, passage: str, transcript: str) -> None:
        self.show_section("Review")
        self.rich.print("[bold]REFERENCE:[/bold]")
        self.rich.print(Text(passage, style="dim"))
        self.rich.print()
        self.rich.print("[bold]TRANSCRIPT:[/bold]")
        self.rich.print(Text(transcript) if transcript else Text("(No transcription captured)", style="dim"))
        self.rich.print()

    # Results

    def show_model_results(self, metrics: ModelMetrics) -> None:
        status = classify_viability(metrics, self.thresholds)
        color, symbol = STATUS_STYLES[status]
        rating = metrics.user_quality_rating
        rating_display = (
            "Skipped" if rating is QualityRating.SKIPPED else f"{int(rating)}/5 ({rating.description})"
        )
        self.rich.print()
        self.rich.print(f"[bold]Results for {metrics.model_name}:[/bold]")
        self.rich.print(
            f"  |-- Average Processing Ratio: {format_ratio(metrics.average_processing_ratio)} realtime",
            highlight=False,
        )
        self.rich.print(
            f"  |-- First-Word Latency: {format_latency(metrics.first_word_latency)}",
            highlight=False,
        )
        self.rich.print(f"  |-- Backpressure Events: {metrics.backpressure_events}", highlight=False)
        self.rich.print(f"  |-- Compute Unit: {metrics.compute_unit.value}", highlight=False)
        self.rich.print(f"  `-- User Quality Rating: {rating_display}", highlight=False)
        self.rich.print(
            f"  [{color}]\\[{symbol}] STREAMING {status.display_name.upper()}[/{color}]"
        )

    def show_final_report(
        self,
        results: Sequence[ModelMetrics],
        system_info: SystemInfo,
        date: datetime | None = None,
    ) -> None:
        date = date or datetime.now()
        self.show_section("Whisper Streaming Benchmark Results")
        self.rich.print(f"Machine: {system_info.display_string}", highlight=False)
        self.rich.print(f"Date:    {date:%Y-%m-%d %H:%M}", highlight=False)

        table = Table()
        table.add_column("Model")
        table.add_column("Ratio", justify="right")
        table.add_column("Latency", justify="right")
        table.add_column("Compute")
        table.add_column("Status")
        for metrics in results:
            status = classify_viability(metrics, self.thresholds)
            color, symbol = STATUS_STYLES[status]
            table.add_row(
                metrics.model_name,
                format_ratio(metrics.average_processing_ratio),
                format_latency(metrics.first_word_latency),
                metrics.compute_unit.value,
                Text(f"{symbol} {status.display_name}", style=color),
            )
        self.rich.print(table)
        self.rich.print("[dim]Legend:[/dim]")
        for line in LEGEND:
            self.rich.print(Text(line, style="dim"))

    # Messages

    def info(self, message: str) -> None:
        self.rich.print(Text(message, style="cyan"))

    def success(self, message: str) -> None:
        self.rich.print(Text(message, style="green"))

    def warning(self, message: str) -> None:
        self.rich.print(Text(f"Warning: {message}", style="yellow"))

    def error(self, message: str) -> None:
        self.rich.print(Text(f"Error: {message}", style="red"))

    # Prompts

    @property
    def prompting(self) -> bool:
        """True while blocked reading a line of user input."""
        return self._prompting

    def _read(self, prompt: str) -> str | None:
        """Read one line; None on end of input or Ctrl-C."""
        self._prompting = True
        try:
            return self._input(prompt)
        except EOFError:
            return None
        except KeyboardInterrupt:
            self.rich.print()
            return None
        finally:
            self._prompting = False

    def prompt_yes_no(self, question: str, default: bool = True) -> bool:
        if not self.interactive:
            return default
        suffix = "[Y/n]" if default else "[y/N]"
        answer = self._read(f"{question} {suffix}: ")
        if not answer or not answer.strip():
            return default
        return answer.strip().lower() in ("y", "yes")

    def wait_for_enter(self, message: str = "Press ENTER to continue") -> None:
        if not self.interactive:
            return
        self._read(f"{message}... ")

    def prompt_quality(self) -> QualityRating:
        """Ask for a 1-5 rating; SKIPPED when non-interactive or input ends."""
        if not self.interactive:
            return QualityRating.SKIPPED
        self.rich.print("[bold]Rate the transcription quality:[/bold]")
        for line in QUALITY_HELP:
            self.rich.print(line, highlight=False)
        while True:
            answer = self._read("Enter rating (1-5): ")
            if answer is None:
                return QualityRating.SKIPPED
            answer = answer.strip()
            if answer.isdigit() and 1 <= int(answer) <= 5:
                return QualityRating(int(answer))
            self.rich.print("[yellow]Please enter a number from 1 to 5.[/yellow]")
