"""Caches used by content loading."""

from .content_cache import ContentCache, fingerprint_files

__all__ = ["ContentCache", "fingerprint_files"]
