"""Typer CLI entrypoint for catalog-scraper."""

from __future__ import annotations

import signal
import sys
import threading
from pathlib import Path
from typing import Any, Optional

import structlog
import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigError, ScraperConfig, build_config, read_key_list
from .engine import RunSummary, load_resume_set
from .logging_conf import configure_logging, default_log_dir, tail_log
from .orchestrator import Orchestrator
from .ui import ProgressReporter

app = typer.Typer(
    help="Resolve part numbers against an online catalog and export product details.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def build_orchestrator(config: ScraperConfig, logger: structlog.BoundLogger) -> Orchestrator:
    return Orchestrator(config, logger=logger)


def _load_config(config_file: Optional[Path], overrides: dict[str, Any]) -> ScraperConfig:
    try:
        return build_config(config_file, overrides)
    except ConfigError as exc:
        console.print(f"Configuration error: {exc}", style="red")
        raise typer.Exit(code=1) from exc


# Progress bar only on an interactive terminal
def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _install_signal_handlers(
    orchestrator: Orchestrator, logger: structlog.BoundLogger
) -> dict[int, Any]:
    if threading.current_thread() is not threading.main_thread():
        return {}

    def _handler(signum: int, _frame: object) -> None:
        logger.warning("shutdown_requested", signal=signal.Signals(signum).name)
        orchestrator.request_stop()

    previous: dict[int, Any] = {}
    for sig in _SHUTDOWN_SIGNALS:
        previous[sig] = signal.signal(sig, _handler)
    return previous


def _restore_signal_handlers(previous: dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def _render_config_table(config: ScraperConfig) -> Table:
    table = Table(title="Run configuration", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Setting", style="dim")
    table.add_column("Value", style="cyan", overflow="fold")
    table.add_row("Input", str(config.input_path))
    table.add_row("Output", str(config.output_path))
    table.add_row("Base URL", config.base_url)
    table.add_row("Workers", str(config.workers))
    table.add_row("Delay", f"{config.delay_ms} ms")
    table.add_row("Max retries", str(config.max_retries))
    table.add_row("Timeout", f"{config.timeout_ms} ms" if config.timeout_ms else "disabled")
    return table


def _render_summary_table(summary: RunSummary, config: ScraperConfig) -> Table:
    table = Table(title="Scraping complete", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Duration", f"{summary.duration_seconds:.2f} s")
    table.add_row("Total processed", str(summary.total_processed))
    table.add_row("Successful", f"[green]{summary.success_count}[/green]")
    table.add_row("Failed", f"[red]{summary.failure_count}[/red]")
    table.add_row("Exact matches", str(summary.exact_matches))
    table.add_row("Partial matches", str(summary.partial_matches))
    table.add_row("No results", str(summary.no_results))
    table.add_row("Output", str(config.output_path))
    return table


@app.command("run", help="Resolve every key of the input file and write the results.")
def run(
    input_path: Optional[Path] = typer.Option(
        None, "--input", "-i", help="Input file containing keys (one per line)."
    ),
    output_path: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file path."),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Number of concurrent workers."),
    delay: Optional[int] = typer.Option(
        None, "--delay", "-d", help="Delay between request starts in milliseconds."
    ),
    retries: Optional[int] = typer.Option(
        None, "--retries", "-r", help="Maximum attempts per request."
    ),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", "-t", help="Request timeout in milliseconds (0 disables)."
    ),
    resume: bool = typer.Option(
        False, "--resume", help="Skip keys already present in the incremental log.", is_flag=True
    ),
    limit: Optional[int] = typer.Option(None, "--limit", help="Process at most this many keys."),
    start: Optional[int] = typer.Option(None, "--start", help="Start index in the key list (0-based)."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Catalog base URL."),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML or JSON file with default settings."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.", is_flag=True),
    no_progress: bool = typer.Option(False, "--no-progress", help="Hide the progress bar.", is_flag=True),
) -> None:
    config = _load_config(
        config_file,
        {
            "input_path": input_path,
            "output_path": output_path,
            "workers": workers,
            "delay_ms": delay,
            "max_retries": retries,
            "timeout_ms": timeout,
            "resume": True if resume else None,
            "limit": limit,
            "start_index": start,
            "base_url": base_url,
            "verbose": True if verbose else None,
        },
    )
    logger = configure_logging(verbose=config.verbose)
    console.print(_render_config_table(config))

    orchestrator = build_orchestrator(config, logger)
    previous_handlers = _install_signal_handlers(orchestrator, logger)
    reporter: ProgressReporter | None = None
    try:
        try:
            keys = orchestrator.plan()
        except ConfigError as exc:
            logger.error("input_error", error=str(exc))
            console.print(f"Failed to read key list: {exc}", style="red")
            raise typer.Exit(code=1) from exc
        if orchestrator.stop_requested:
            console.print("Interrupted before any key was started.", style="yellow")
            raise typer.Exit(code=0)
        if not keys:
            console.print("No keys to process.", style="yellow")
            raise typer.Exit(code=0)

        reporter = ProgressReporter(enabled=not no_progress and _progress_default_enabled())
        reporter.start(len(keys))
        try:
            summary = orchestrator.run(keys, progress=reporter)
        except Exception as exc:  # noqa: BLE001
            logger.exception("run_failed", error=str(exc))
            console.print(f"Scraping failed: {exc}", style="red")
            raise typer.Exit(code=1) from exc
    finally:
        _restore_signal_handlers(previous_handlers)
        if reporter is not None:
            reporter.close()
        orchestrator.close()

    console.print(_render_summary_table(summary, config))


@app.command("status", help="Show how much of the input has already been processed.")
def status(
    input_path: Optional[Path] = typer.Option(None, "--input", "-i", help="Input key list."),
    output_path: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file path."),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML or JSON settings file."),
) -> None:
    config = _load_config(config_file, {"input_path": input_path, "output_path": output_path})
    configure_logging(verbose=False)
    try:
        keys = read_key_list(config.input_path)
    except ConfigError as exc:
        console.print(f"Failed to read key list: {exc}", style="red")
        raise typer.Exit(code=1) from exc
    processed = load_resume_set(config.incremental_log_path)
    remaining = sum(1 for key in keys if key not in processed)

    table = Table(title="Resume status", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Item", style="dim")
    table.add_column("Value", style="cyan", overflow="fold")
    table.add_row("Input keys", str(len(keys)))
    table.add_row("Already processed", str(len(keys) - remaining))
    table.add_row("Remaining", str(remaining))
    table.add_row("Incremental log", str(config.incremental_log_path))
    console.print(table)


@app.command("log", help="Print the tail of the scraper log.")
def log(
    errors: bool = typer.Option(False, "--errors", help="Show error.log instead of scraper.log.", is_flag=True),
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines to show."),
) -> None:
    path = default_log_dir() / ("error.log" if errors else "scraper.log")
    content = tail_log(path, lines)
    if not content:
        console.print(f"No log entries in {path}", style="yellow")
        raise typer.Exit(code=0)
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


if __name__ == "__main__":  # pragma: no cover
    app()
