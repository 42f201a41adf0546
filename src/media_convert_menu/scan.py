"""Directory listing of recognized media files."""

from __future__ import annotations

from pathlib import Path
import threading
from typing import Callable, Iterable, List, Optional, Set

from .constants import IGNORED_NAMES
from .logging_utils import get_logger

logger = get_logger(__name__)


def _should_ignore(path: Path) -> bool:
    return path.name in IGNORED_NAMES or path.name.startswith(".")


def _ext_set(exts: Iterable[str]) -> Set[str]:
    return {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in exts}


def scan_media(root: Path, exts: Iterable[str]) -> List[Path]:
    """Return media files directly inside ``root``, sorted by name.

    Hidden entries and subdirectories are skipped; extension matching is
    case-insensitive.
    """

    normalized_exts = _ext_set(exts)
    found: List[Path] = []
    for path in Path(root).iterdir():
        if path.is_dir() or _should_ignore(path):
            continue
        if path.suffix.lower() not in normalized_exts:
            continue
        found.append(path)

    found.sort(key=lambda p: p.name.lower())
    return found


class DirectoryListing:
    """File listing of one directory, with marks and a redisplay hook.

    ``on_redisplay`` is called whenever a redisplay is requested, after the
    listing has been rescanned. Redisplays come from conversion waiter threads
    while the menu marks files, so paths and marks are guarded by a lock.
    """

    def __init__(
        self,
        root: Path,
        exts: Iterable[str],
        on_redisplay: Optional[Callable[["DirectoryListing"], None]] = None,
    ) -> None:
        self.root = Path(root)
        self._exts = tuple(exts)
        self._on_redisplay = on_redisplay
        self._marked: List[Path] = []
        self._paths: List[Path] = []
        self._lock = threading.Lock()
        self.refresh()

    def refresh(self) -> List[Path]:
        with self._lock:
            self._paths = scan_media(self.root, self._exts)
            # Marks on files that disappeared are dropped
            self._marked = [path for path in self._marked if path in self._paths]
            return list(self._paths)

    def paths(self) -> List[Path]:
        with self._lock:
            return list(self._paths)

    def marked(self) -> List[Path]:
        with self._lock:
            return list(self._marked)

    def mark(self, path: Path) -> None:
        with self._lock:
            if path not in self._paths:
                raise ValueError(f"Not in listing: {path}")
            if path not in self._marked:
                self._marked.append(path)

    def unmark(self, path: Path) -> None:
        with self._lock:
            if path in self._marked:
                self._marked.remove(path)

    def request_redisplay(self) -> None:
        count = len(self.refresh())
        logger.debug("Listing of %s refreshed: %d media files", self.root, count)
        if self._on_redisplay is not None:
            self._on_redisplay(self)
