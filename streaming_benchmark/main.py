"""Command-line entry point for the streaming benchmark.

Parses flags, builds configuration (defaults < environment < flags),
runs the benchmark session, prints the final table, and writes the JSON
report. SIGINT stops the current recording and skips remaining models so
partial results are still reported.

Exit codes: 0 success, 1 runtime failure (no input device, no usable
model, report not written), 2 invalid configuration or unknown model.
"""

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from datetime import date
from pathlib import Path

from streaming_benchmark.asr.interface import ASREngine
from streaming_benchmark.asr.registry import get_asr_engine
from streaming_benchmark.audio.capture.interface import AudioSource
from streaming_benchmark.audio.capture.registry import get_audio_source
from streaming_benchmark.config import BenchmarkConfig
from streaming_benchmark.metrics.models import ModelMetrics
from streaming_benchmark.observability.logger import StructuredJsonFormatter
from streaming_benchmark.reporting.console import Console
from streaming_benchmark.reporting.report import save_report
from streaming_benchmark.reporting.system_info import collect_system_info
from streaming_benchmark.runner import DEFAULT_MODELS, BenchmarkRunner, EngineFactory
from streaming_benchmark.streaming.transcriber import STREAMING_STRATEGIES
from streaming_benchmark.utils.errors import (
    CaptureError,
    ConfigError,
    ModelNotFoundError,
    NoModelsAvailableError,
    ReportError,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _setup_logging(verbose: bool = False) -> None:
    """Configure root logger with structured JSON output on stderr."""
    root = logging.getLogger()
    root.setLevel(logging.INFO if verbose else logging.WARNING)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredJsonFormatter())
    root.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streaming-benchmark",
        description="Benchmark Whisper models for real-time streaming transcription.",
    )
    parser.add_argument(
        "--model",
        help=f"Test a single model (one of: {', '.join(m.name for m in DEFAULT_MODELS)})",
    )
    parser.add_argument("--skip-warmup", action="store_true", help="Skip model warmup")
    parser.add_argument("--output", type=Path, help="Report path (JSON)")
    parser.add_argument("--verbose", action="store_true", help="Per-chunk timing and logs")
    parser.add_argument("--asr-provider", help="ASR engine: faster-whisper, http, null")
    parser.add_argument("--asr-base-url", help="Base URL for the http engine")
    parser.add_argument("--device", help="Inference device: auto, cpu, cuda")
    parser.add_argument("--audio-file", help="Replay this WAV file instead of the microphone")
    parser.add_argument("--duration", type=float, help="Recording seconds per model")
    parser.add_argument(
        "--strategy", choices=STREAMING_STRATEGIES, help="Streaming confirmation strategy"
    )
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; skip quality ratings and continue between models",
    )
    return parser


def default_output_path(today: date | None = None, home: Path | None = None) -> Path:
    """Report path under ~/Documents, or the home directory if it is missing."""
    today = today or date.today()
    home = home or Path.home()
    documents = home / "Documents"
    base = documents if documents.is_dir() else home
    return base / f"whisper-streaming-benchmark-{today:%Y-%m-%d}.json"


def build_config(args: argparse.Namespace, environ: dict[str, str] | None = None) -> BenchmarkConfig:
    """Merge defaults, environment, and flags into a validated config.

    Raises:
        ConfigError: If the merged configuration is invalid.
    """
    return (
        BenchmarkConfig.from_env(environ)
        .with_overrides(
            asr_provider=args.asr_provider,
            asr_base_url=args.asr_base_url,
            asr_device=args.device,
            audio_file=args.audio_file,
            audio_source="wav" if args.audio_file else None,
            recording_duration=args.duration,
            streaming_strategy=args.strategy,
        )
        .validate()
    )


def build_engine_factory(config: BenchmarkConfig) -> EngineFactory:
    """Return a callable creating an unloaded engine for a model name."""
    options: dict[str, object] = {"device": config.asr_device}
    if config.asr_provider == "http":
        options.update(base_url=config.asr_base_url, api_key=config.asr_api_key)

    def factory(model_name: str) -> ASREngine:
        return get_asr_engine(config.asr_provider, model_name=model_name, **options)

    return factory


def build_audio_source(config: BenchmarkConfig) -> AudioSource:
    if config.audio_source == "wav":
        return get_audio_source("wav", path=config.audio_file, sample_rate=config.sample_rate)
    return get_audio_source(config.audio_source, sample_rate=config.sample_rate)


def interrupt_handler(runner: BenchmarkRunner, console: Console):
    """Build the SIGINT handler: stop the session, and break out of a prompt.

    Prompts block the event loop thread in input(), so a loop signal handler
    would never run while one is waiting. Raising KeyboardInterrupt there
    unblocks the read; the console treats it as the prompt's default answer.
    """

    def handler(signum: int, frame: object) -> None:
        runner.stop()
        if console.prompting:
            raise KeyboardInterrupt

    return handler


async def _run(runner: BenchmarkRunner, console: Console) -> list[ModelMetrics]:
    """Run the session with SIGINT/SIGTERM mapped to a graceful stop."""
    loop = asyncio.get_running_loop()
    # Not available on Windows event loops
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGTERM, runner.stop)
    previous = signal.signal(signal.SIGINT, interrupt_handler(runner, console))
    try:
        return await runner.run()
    finally:
        signal.signal(signal.SIGINT, previous)


def main(argv: list[str] | None = None) -> int:
    """Run the benchmark and return the process exit code."""
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        config = build_config(args)
    except ConfigError as exc:
        Console(interactive=False).error(str(exc))
        return EXIT_USAGE

    console = Console(
        interactive=not args.non_interactive,
        verbose=args.verbose,
        thresholds=config.viability_thresholds(),
    )
    console.show_banner()

    try:
        source = build_audio_source(config)
        engine_factory = build_engine_factory(config)
        # Fail on an unknown provider before any model work starts
        engine_factory(DEFAULT_MODELS[0].name)
    except ConfigError as exc:
        console.error(str(exc))
        return EXIT_USAGE
    except CaptureError as exc:
        console.error(str(exc))
        return EXIT_FAILURE

    if not source.permission_granted():
        console.error(
            "Audio input is not available. Check that a microphone is connected and "
            "that this terminal may use it, or pass --audio-file."
        )
        return EXIT_FAILURE

    runner = BenchmarkRunner(
        config,
        console,
        source,
        engine_factory,
        skip_warmup=args.skip_warmup,
        single_model=args.model,
    )
    logger.info("Benchmark starting", extra={"stage": "start"})

    try:
        results = asyncio.run(_run(runner, console))
    except ModelNotFoundError as exc:
        console.error(str(exc))
        console.info(f"Available models: {', '.join(exc.available)}")
        return EXIT_USAGE
    except NoModelsAvailableError as exc:
        console.error(str(exc))
        return EXIT_FAILURE
    except CaptureError as exc:
        console.error(str(exc))
        return EXIT_FAILURE

    if not results:
        console.warning("No models were tested.")
        return EXIT_OK

    system_info = collect_system_info()
    console.show_final_report(results, system_info)

    output = args.output or default_output_path()
    try:
        path = save_report(results, output, system_info, thresholds=config.viability_thresholds())
    except ReportError as exc:
        console.error(str(exc))
        return EXIT_FAILURE
    console.success(f"Results saved to: {path}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
