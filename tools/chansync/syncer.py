"""Core sync logic – one page → links → downloads cycle, and the poll loop around it."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

import httpx
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn

from .api import ChanClient
from .links import Link, extract_links
from .worker import FetchPool, Outcome, SyncCycleOutcome

logger = logging.getLogger("chansync.syncer")


class SyncCycle:
    """One pass over the thread: load the page and fetch every new file."""

    def __init__(
        self,
        client: ChanClient,
        pool: FetchPool,
        thread_url: str,
        directory: Path,
        *,
        show_progress: bool = False,
        console: Console | None = None,
    ) -> None:
        self.client = client
        self.pool = pool
        self.thread_url = thread_url
        self.directory = directory
        self.show_progress = show_progress
        self.console = console

    def _load(self) -> str:
        try:
            return self.client.load_page(self.thread_url)
        except httpx.HTTPError as exc:
            logger.error("Could not load %s: %s", self.thread_url, exc)
            return ""

    def run_once(self) -> SyncCycleOutcome:
        started = time.monotonic()
        links = extract_links(self._load())
        logger.debug("Found %d media links in %s", len(links), self.thread_url)

        if self.show_progress and links:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                TimeElapsedColumn(),
                console=self.console,
                transient=True,
            ) as progress:
                task = progress.add_task(self.directory.name, total=len(links))

                def advance(link: Link, outcome: Outcome) -> None:
                    progress.update(task, advance=1, description=link.local_name)

                outcome = self.pool.run_cycle(links, self.directory, on_result=advance)
        else:
            outcome = self.pool.run_cycle(links, self.directory)

        outcome.elapsed = timedelta(seconds=time.monotonic() - started)
        logger.info(
            "Cycle done in %.1fs: %d links, %d downloaded, %d skipped, %d failed",
            outcome.elapsed.total_seconds(),
            outcome.links_seen,
            outcome.downloaded,
            outcome.skipped,
            outcome.failed,
        )
        return outcome


class PollScheduler:
    """Repeats a SyncCycle every ``interval`` until ``budget`` has passed.

    The budget is checked after each cycle, so the last cycle may run past it.
    With ``reload`` off exactly one cycle runs.
    """

    def __init__(
        self,
        cycle: SyncCycle,
        *,
        reload: bool = False,
        interval: timedelta = timedelta(minutes=5),
        budget: timedelta = timedelta(minutes=120),
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cycle = cycle
        self.reload = reload
        self.interval = interval
        self.budget = budget
        self._clock = clock
        self._sleep = sleep

    def run(self) -> list[SyncCycleOutcome]:
        if not self.reload:
            return [self.cycle.run_once()]

        outcomes: list[SyncCycleOutcome] = []
        interval = self.interval.total_seconds()
        budget = self.budget.total_seconds()
        start = self._clock()

        while True:
            cycle_start = self._clock()
            outcomes.append(self.cycle.run_once())
            now = self._clock()

            if now - start >= budget:
                logger.info("Time budget of %s used up after %d cycles", self.budget, len(outcomes))
                return outcomes

            remaining = interval - (now - cycle_start)
            if remaining > 0:
                logger.info("Next reload in %.0fs", remaining)
                self._sleep(remaining)
