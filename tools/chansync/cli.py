"""CLI entry-point for chansync."""

from __future__ import annotations

import logging
import sys

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .api import ChanClient
from .config import ChanConfig, SyncConfig
from .ledger import DedupLedger, LedgerUnavailableError
from .links import ThreadUrlError, ensure_directory, parse_thread_url, thread_directory
from .syncer import PollScheduler, SyncCycle
from .worker import FetchPool, SyncCycleOutcome

console = Console()
logger = logging.getLogger("chansync.cli")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )
    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _print_stats(outcomes: list[SyncCycleOutcome]) -> None:
    totals = {"cycles": len(outcomes)}
    for outcome in outcomes:
        for key, val in outcome.as_dict().items():
            totals[key] = totals.get(key, 0) + val
    table = Table(title="Sync Summary", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    for key, val in totals.items():
        table.add_row(key.capitalize(), str(val))
    console.print(table)


def run(cfg: SyncConfig) -> list[SyncCycleOutcome]:
    """Resolve the thread directory and drive the configured cycles."""
    ref = parse_thread_url(cfg.thread_url)
    directory = thread_directory(ref, cfg.output, use_names=cfg.use_names)
    ensure_directory(directory)
    logger.info("Saving /%s/%d into %s", ref.board, ref.thread_id, directory)

    ledger = DedupLedger()
    with ChanClient(cfg.chan) as client:
        pool = FetchPool(client, ledger, cfg.concurrency)
        cycle = SyncCycle(client, pool, cfg.thread_url, directory, show_progress=cfg.progress, console=console)
        scheduler = PollScheduler(cycle, reload=cfg.reload, interval=cfg.interval, budget=cfg.budget)
        return scheduler.run()


@click.command()
@click.argument("thread_url")
@click.option("-o", "--output", envvar="CHANSYNC_OUTPUT", default="downloads", show_default=True, help="Root directory for downloads")
@click.option("-r", "--reload", "reload_", envvar="CHANSYNC_RELOAD", is_flag=True, help="Keep re-polling the thread")
@click.option("-i", "--interval", envvar="CHANSYNC_INTERVAL", default=5.0, type=float, show_default=True, help="Minutes between reloads")
@click.option("-b", "--budget", envvar="CHANSYNC_BUDGET", default=120.0, type=float, show_default=True, help="Total minutes to keep reloading")
@click.option("-c", "--concurrency", envvar="CHANSYNC_CONCURRENCY", default=2, type=click.IntRange(min=1), show_default=True, help="Parallel downloads")
@click.option("-n", "--names", envvar="CHANSYNC_NAMES", is_flag=True, help="Store files under the thread's title slug instead of its id")
@click.option("--no-progress", is_flag=True, help="Hide the per-cycle progress bar")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(
    thread_url: str,
    output: str,
    reload_: bool,
    interval: float,
    budget: float,
    concurrency: int,
    names: bool,
    no_progress: bool,
    verbose: bool,
) -> None:
    """Download every image and webm posted in a thread.

    Example: chansync https://boards.4chan.org/wg/thread/6872254 --reload
    """
    _setup_logging(verbose)
    try:
        cfg = SyncConfig(
            thread_url=thread_url,
            output=output,
            reload=reload_,
            interval_minutes=interval,
            budget_minutes=budget,
            concurrency=concurrency,
            use_names=names,
            progress=not no_progress,
            chan=ChanConfig.from_env(),
        )
        outcomes = run(cfg)
    except ThreadUrlError as exc:
        console.print(f"[red]✗[/red] {exc}")
        sys.exit(1)
    except LedgerUnavailableError as exc:
        console.print(f"[red]✗[/red] Download ledger unavailable, stopping: {exc}")
        sys.exit(1)
    except (ValueError, httpx.InvalidURL) as exc:
        console.print(f"[red]✗[/red] Invalid configuration: {exc}")
        sys.exit(1)

    _print_stats(outcomes)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
