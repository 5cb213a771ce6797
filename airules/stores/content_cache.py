"""In-memory cache for parsed content definitions."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..logging import get_logger


def fingerprint_files(paths: Iterable[Path]) -> str:
    """Digest of file names, sizes and modification times.

    Any edit, addition or removal of a file changes the fingerprint.
    """
    digest = hashlib.sha256()
    for path in sorted(paths):
        try:
            stat = path.stat()
        except OSError:
            digest.update(f"{path}:missing\n".encode("utf-8"))
            continue
        digest.update(f"{path}:{stat.st_size}:{stat.st_mtime_ns}\n".encode("utf-8"))
    return digest.hexdigest()


class ContentCache:
    """Stores parsed questions, rules and fragments keyed by kind and source fingerprint.

    The cache is owned by whoever builds the repository; nothing expires on
    its own. Callers drop entries with :meth:`invalidate`.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Dict[str, Any]] = {}
        self.logger = get_logger("stores.content_cache")

    def get(self, key: str, *, fingerprint: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if not entry:
            return None
        if entry.get("fingerprint") != fingerprint:
            self.logger.debug("Content cache entry %s is stale", key)
            return None
        self.logger.debug("Content cache hit for %s", key)
        return entry["value"]

    def store(self, key: str, *, fingerprint: str, value: Any) -> None:
        self._entries[key] = {"fingerprint": fingerprint, "value": value}

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or every entry when no key is given."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ContentCache", "fingerprint_files"]
