"""
AutonomateQA - natural-language browser test runner.
Main entry point for the application.
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from autonomate import __version__
from autonomate.agents.oracle import ModelBackedOracle
from autonomate.config.settings import Settings, get_settings
from autonomate.core.cancellation import CancellationToken
from autonomate.core.types import RunRecord, RunStatus
from autonomate.models import ModelIterator, create_transport
from autonomate.monitoring.logger import get_logger, setup_logging
from autonomate.monitoring.usage import RunTokenSink
from autonomate.orchestration.run_lifecycle import RunLifecycle
from autonomate.orchestration.run_store import JsonFileRunStore
from autonomate.security.sanitizer import redact_pii
from autonomate.security.secrets import SecretStore

console = Console()
logger = get_logger("main")


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        description=f"AutonomateQA - natural-language browser test runner v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a Gherkin scenario against a page
  autonomate run https://example.com --script-file login.feature

  # Same, with a visible browser and per-run test data
  autonomate run https://example.com --script-file login.feature --headed --test-data users.csv

  # Turn a recorded event into a Gherkin step
  autonomate synthesize click "button#submit" --snapshot-file page.txt

  # List stored runs
  autonomate runs
        """,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with verbose logging",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose structured logging output (JSON)",
    )

    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Execute a scenario against a URL")
    run_parser.add_argument("url", help="Page to open before the first step")
    script_group = run_parser.add_mutually_exclusive_group()
    script_group.add_argument(
        "-f", "--script-file",
        type=Path,
        help="Path to a Gherkin scenario file",
    )
    script_group.add_argument(
        "-s", "--script",
        help="Scenario text passed inline",
    )
    run_parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )
    run_parser.add_argument(
        "--test-data",
        help="Per-run test data reference (CSV file name)",
    )
    run_parser.add_argument(
        "--runs-dir",
        type=Path,
        help="Directory for run records (default: settings runs_dir)",
    )

    synth_parser = subparsers.add_parser(
        "synthesize", help="Write a Gherkin step for a recorded browser event"
    )
    synth_parser.add_argument("action", help="Recorded event type (click, fill, ...)")
    synth_parser.add_argument("selector", help="Recorded target element")
    synth_parser.add_argument("value", nargs="?", help="Recorded input value")
    synth_parser.add_argument(
        "--snapshot-file",
        type=Path,
        help="Accessibility snapshot text for context",
    )

    runs_parser = subparsers.add_parser("runs", help="List stored run records")
    runs_parser.add_argument(
        "--runs-dir",
        type=Path,
        help="Directory for run records (default: settings runs_dir)",
    )

    return parser


def build_oracle(settings: Settings) -> ModelBackedOracle:
    """Wire the configured transport, the model iterator and the oracle.

    Usage is reported to a ``RunTokenSink`` so each run's totals stay separate.
    """
    iterator = ModelIterator(
        create_transport(settings),
        max_retries=settings.ai_retry_count,
        initial_backoff_seconds=settings.ai_initial_backoff_seconds,
        token_sink=RunTokenSink(),
    )
    return ModelBackedOracle(iterator, settings)


def read_script(parsed_args: argparse.Namespace) -> Optional[str]:
    """Return the scenario text from ``--script`` or ``--script-file``."""
    if parsed_args.script is not None:
        return parsed_args.script
    if parsed_args.script_file is None:
        return None
    if not parsed_args.script_file.is_file():
        raise FileNotFoundError(f"Script file not found: {parsed_args.script_file}")
    return parsed_args.script_file.read_text(encoding="utf-8")


def _install_cancel_handler(token: CancellationToken) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel, "Interrupted by user")
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handler support.
        logger.debug("SIGINT handler not installed; Ctrl+C aborts the run")


def _print_run_summary(record: RunRecord) -> None:
    color = "green" if record.status == RunStatus.PASSED else "red"
    table = Table(title="Run Summary", show_lines=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Run", record.run_id)
    table.add_row("Status", f"[{color}]{record.status.value}[/{color}]")
    table.add_row("Message", record.error_message or "")
    table.add_row(
        "Duration",
        f"{record.duration_seconds:.1f}s" if record.duration_seconds is not None else "",
    )
    table.add_row("Tokens", str(record.total_tokens or 0))
    table.add_row("Screenshot", record.screenshot_path or "")
    table.add_row("Video", record.video_path or "")
    console.print(table)

    if record.reasoning_log:
        console.print(Panel(record.reasoning_log.rstrip(), title="Reasoning Log"))


async def run_scenario(parsed_args: argparse.Namespace, settings: Settings) -> int:
    """Create a run record, execute it and print the outcome."""
    script = read_script(parsed_args)
    store = JsonFileRunStore(parsed_args.runs_dir or settings.runs_dir)
    lifecycle = RunLifecycle(
        store=store,
        oracle=build_oracle(settings),
        secrets=SecretStore.from_settings(settings),
        settings=settings,
    )

    record = await store.create(parsed_args.url, script, parsed_args.test_data)
    console.print(Panel.fit(
        f"[bold]Run[/bold] {record.run_id}\n[bold]Provider[/bold] {settings.ai_provider}",
        title="AutonomateQA",
        border_style="cyan",
    ))

    token = CancellationToken()
    _install_cancel_handler(token)
    try:
        result = await lifecycle.execute(
            record.run_id,
            parsed_args.url,
            headed=parsed_args.headed,
            script=script,
            test_data_ref=parsed_args.test_data,
            cancel_token=token,
        )
    except asyncio.CancelledError:
        console.print("[yellow]Run cancelled[/yellow]")
        cancelled = await store.get(record.run_id)
        if cancelled is not None:
            _print_run_summary(cancelled)
        return 130

    if result is None:
        console.print(f"[red]Run record {record.run_id} not found[/red]")
        return 1

    _print_run_summary(result)
    return 0 if result.status == RunStatus.PASSED else 1


async def synthesize(parsed_args: argparse.Namespace, settings: Settings) -> int:
    """Print a Gherkin step for one recorded event."""
    snapshot = ""
    if parsed_args.snapshot_file is not None:
        snapshot = redact_pii(parsed_args.snapshot_file.read_text(encoding="utf-8"))

    oracle = build_oracle(settings)
    step = await oracle.synthesize_step(
        parsed_args.action, parsed_args.selector, parsed_args.value, snapshot
    )
    console.print(step)
    return 0


async def list_runs(parsed_args: argparse.Namespace, settings: Settings) -> int:
    """Print stored run records, newest first."""
    store = JsonFileRunStore(parsed_args.runs_dir or settings.runs_dir)
    records = await store.list_runs()
    if not records:
        console.print("[dim]No runs recorded[/dim]")
        return 0

    table = Table(title="Runs")
    table.add_column("Run", style="cyan")
    table.add_column("Created")
    table.add_column("Status")
    table.add_column("URL")
    table.add_column("Message")
    for record in records:
        table.add_row(
            record.run_id,
            record.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            record.status.value,
            record.url,
            record.error_message or "",
        )
    console.print(table)
    return 0


def show_version() -> int:
    """Show version information."""
    console.print("\n[bold cyan]AutonomateQA - natural-language browser test runner[/bold cyan]")
    console.print(f"Version: [green]{__version__}[/green]")
    console.print("Python: [dim]3.10+[/dim]")
    return 0


async def async_main(args: Optional[list] = None) -> int:
    """Async main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.version:
        return show_version()

    if parsed_args.command is None:
        parser.print_help()
        return 1

    settings = get_settings()
    if parsed_args.debug:
        settings.log_level = "DEBUG"
    if parsed_args.verbose:
        settings.log_format = "json"

    setup_logging(settings=settings)

    if parsed_args.command == "run":
        return await run_scenario(parsed_args, settings)
    if parsed_args.command == "synthesize":
        return await synthesize(parsed_args, settings)
    return await list_runs(parsed_args, settings)


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for AutonomateQA.

    Args:
        args: Command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        return asyncio.run(async_main(args))
    except Exception as e:
        console.print(f"[red]Fatal error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
