"""Download workers – fetch one media link to disk, or a cycle's worth in parallel."""

from __future__ import annotations

import enum
import logging
import os
import tempfile
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

import httpx

from .api import ChanClient
from .ledger import DedupLedger, LedgerUnavailableError
from .links import Link

logger = logging.getLogger("chansync.worker")


class Outcome(enum.Enum):
    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncCycleOutcome:
    links_seen: int = 0
    downloaded: int = 0
    skipped: int = 0
    failed: int = 0
    elapsed: timedelta = timedelta(0)

    def add(self, outcome: Outcome) -> None:
        if outcome is Outcome.DOWNLOADED:
            self.downloaded += 1
        elif outcome is Outcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    def as_dict(self) -> dict[str, int]:
        return {
            "links": self.links_seen,
            "downloaded": self.downloaded,
            "skipped": self.skipped,
            "failed": self.failed,
        }


def fetch_and_save(link: Link, directory: Path, ledger: DedupLedger, client: ChanClient) -> Outcome:
    """Download ``link`` into ``directory`` unless it is already there.

    Failures are logged and returned as Outcome.FAILED; the ledger is only
    updated for files that are complete on disk.
    """
    target = directory / link.local_name
    key = str(target)

    if ledger.contains(key):
        return Outcome.SKIPPED
    if target.exists():
        logger.debug("%s already on disk", link.local_name)
        ledger.record(key)
        return Outcome.SKIPPED

    # Only complete files ever appear under local_name.
    partial: Path | None = None
    try:
        with client.stream(link.fetch_url) as resp:
            resp.raise_for_status()
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{link.local_name}.", suffix=".part")
            partial = Path(tmp_name)
            with os.fdopen(fd, "wb") as fh:
                for chunk in resp.iter_bytes():
                    fh.write(chunk)
        os.replace(partial, target)
    except (httpx.HTTPError, OSError) as exc:
        logger.error("Failed to download %s: %s", link.fetch_url, exc)
        if partial is not None:
            partial.unlink(missing_ok=True)
        return Outcome.FAILED

    ledger.record(key)
    logger.debug("Saved %s", target)
    return Outcome.DOWNLOADED


class FetchPool:
    """Runs fetch_and_save over a cycle's links, at most ``concurrency`` at a time."""

    def __init__(self, client: ChanClient, ledger: DedupLedger, concurrency: int = 2) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.client = client
        self.ledger = ledger
        self.concurrency = concurrency

    def run_cycle(
        self,
        links: Sequence[Link],
        directory: Path,
        on_result: Callable[[Link, Outcome], None] | None = None,
    ) -> SyncCycleOutcome:
        """Process every link and wait for all workers before returning.

        A worker that raises is counted as failed; the others keep going.
        A ledger failure is re-raised once the pool has drained.
        """
        totals = SyncCycleOutcome(links_seen=len(links))
        fatal: LedgerUnavailableError | None = None

        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="chansync") as pool:
            futures = {
                pool.submit(fetch_and_save, link, directory, self.ledger, self.client): link
                for link in links
            }
            for fut in as_completed(futures):
                link = futures[fut]
                try:
                    result = fut.result()
                except LedgerUnavailableError as exc:
                    fatal = fatal or exc
                    result = Outcome.FAILED
                except Exception as exc:
                    logger.error("Worker for %s crashed: %s", link.fetch_url, exc)
                    result = Outcome.FAILED
                totals.add(result)
                if on_result is not None:
                    on_result(link, result)

        if fatal is not None:
            raise fatal
        return totals
