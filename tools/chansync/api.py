"""Imageboard HTTP client – page loads and streamed media downloads."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import httpx

from .config import ChanConfig

logger = logging.getLogger("chansync.api")


class ChanClient:
    """Thin wrapper around a shared httpx client.

    One instance is shared by every worker thread in a run; httpx clients
    are safe to use from several threads at once.
    """

    def __init__(self, cfg: ChanConfig | None = None, transport: httpx.BaseTransport | None = None) -> None:
        self.cfg = cfg or ChanConfig()
        self._client = httpx.Client(
            timeout=self.cfg.timeout,
            headers={"User-Agent": self.cfg.user_agent},
            follow_redirects=self.cfg.follow_redirects,
            transport=transport,
        )

    # ── public API ───────────────────────────────────────────────

    def load_page(self, url: str) -> str:
        """Fetch a thread page and return its text.

        Raises httpx.HTTPStatusError on a non-success status and
        httpx.TransportError when the request itself fails.
        """
        resp = self._client.get(url)
        resp.raise_for_status()
        logger.debug("Loaded %s (%d bytes)", url, len(resp.content))
        return resp.text

    @contextmanager
    def stream(self, url: str) -> Iterator[httpx.Response]:
        """Open a streamed GET; the caller checks the status and reads the body."""
        with self._client.stream("GET", url) as resp:
            yield resp

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ChanClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
