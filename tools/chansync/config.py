"""Configuration and environment settings for chansync."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta

from . import __version__


@dataclass(frozen=True)
class ChanConfig:
    """HTTP client settings for talking to the imageboard and its media CDN."""
    user_agent: str = f"chansync/{__version__} (thread media sync)"
    timeout: float | None = 30.0  # None leaves requests unbounded
    follow_redirects: bool = True

    @classmethod
    def from_env(cls) -> ChanConfig:
        timeout = os.getenv("CHANSYNC_TIMEOUT")
        return cls(
            user_agent=os.getenv("CHANSYNC_USER_AGENT", cls.user_agent),
            timeout=float(timeout) if timeout else cls.timeout,
        )


@dataclass(frozen=True)
class SyncConfig:
    thread_url: str
    output: str = "downloads"
    reload: bool = False
    interval_minutes: float = 5.0
    budget_minutes: float = 120.0
    concurrency: int = 2
    use_names: bool = False
    progress: bool = True
    chan: ChanConfig = field(default_factory=ChanConfig.from_env)

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.interval_minutes < 0 or self.budget_minutes < 0:
            raise ValueError("interval and budget must not be negative")

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.interval_minutes)

    @property
    def budget(self) -> timedelta:
        return timedelta(minutes=self.budget_minutes)
