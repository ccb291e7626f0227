"""Thread locators, media link extraction and storage paths."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("chansync.links")

# Full-size media on the 4chan CDNs: //i.4cdn.org/wg/1234.jpg, //is2.4chan.org/gif/99.webm ...
MEDIA_RE = re.compile(r"(//is?\d*\.(?:4cdn|4chan)\.org/\w+/(\d+\.(?:jpg|png|gif|webm)))")


class ThreadUrlError(ValueError):
    """The thread locator does not name a board and a numeric thread id."""


@dataclass(frozen=True)
class ThreadReference:
    board: str
    thread_id: int
    slug: str | None = None


@dataclass(frozen=True)
class Link:
    remote_url: str
    local_name: str

    @property
    def fetch_url(self) -> str:
        if self.remote_url.startswith("//"):
            return "https:" + self.remote_url
        return self.remote_url


def extract_links(page_text: str) -> list[Link]:
    """Return one Link per distinct media file, in page order.

    Every post references its file twice (the thumbnail anchor and the
    file-info link), so repeated captures are collapsed here.
    """
    seen: dict[tuple[str, str], Link] = {}
    for match in MEDIA_RE.finditer(page_text):
        key = (match.group(1), match.group(2))
        if key not in seen:
            seen[key] = Link(remote_url=key[0], local_name=key[1])
    return list(seen.values())


def parse_thread_url(url: str) -> ThreadReference:
    """Split ``scheme://host/board/thread/id[/slug][#fragment]`` into its parts."""
    parts = url.split("/")
    if len(parts) < 6:
        raise ThreadUrlError(f"Not a thread URL (too few path segments): {url}")

    board = parts[3]
    raw_id = parts[5].split("#")[0]
    if not board:
        raise ThreadUrlError(f"Missing board name in {url}")
    if not (raw_id.isascii() and raw_id.isdigit()):
        raise ThreadUrlError(f"Thread id {raw_id!r} is not a number in {url}")

    slug = None
    if len(parts) > 6:
        slug = parts[6].split("#")[0] or None
    return ThreadReference(board=board, thread_id=int(raw_id), slug=slug)


def thread_directory(ref: ThreadReference, output_root: str | Path, *, use_names: bool = False) -> Path:
    """Resolve the absolute directory a thread's files are stored in.

    The slug directory wins when names are requested or when an earlier
    run already saved the thread under its slug.
    """
    board_dir = Path(output_root).resolve() / ref.board
    if ref.slug:
        named = board_dir / ref.slug
        if use_names or named.exists():
            return named
    return board_dir / str(ref.thread_id)


def ensure_directory(path: Path) -> bool:
    """Create the storage directory; a failure is logged, not raised."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Failed to create directory %s: %s", path, exc)
        return False
    return True
