"""De-duplication ledger shared by all download workers in a run."""

from __future__ import annotations

import threading

# Seconds a worker waits for the ledger before giving up on the run.
LOCK_TIMEOUT = 30.0


class LedgerUnavailableError(RuntimeError):
    """The ledger lock could not be taken; dedup can no longer be trusted."""


class DedupLedger:
    """Set of absolute file paths this process has saved or found on disk.

    Entries are never removed. Every read and write goes through one lock.
    """

    def __init__(self, lock_timeout: float = LOCK_TIMEOUT) -> None:
        self._paths: set[str] = set()
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout

    def _acquire(self) -> None:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise LedgerUnavailableError(f"ledger lock not acquired within {self._lock_timeout}s")

    def contains(self, path: str) -> bool:
        self._acquire()
        try:
            return path in self._paths
        finally:
            self._lock.release()

    def record(self, path: str) -> None:
        self._acquire()
        try:
            self._paths.add(path)
        finally:
            self._lock.release()

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.contains(path)

    def __len__(self) -> int:
        self._acquire()
        try:
            return len(self._paths)
        finally:
            self._lock.release()
