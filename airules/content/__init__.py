"""Question, rule and fragment sources."""

from .repository import (
    DEFAULT_CONTENT_DIR,
    ContentRepository,
    FileContentRepository,
    StaticContentRepository,
    parse_fragment,
)

__all__ = [
    "ContentRepository",
    "DEFAULT_CONTENT_DIR",
    "FileContentRepository",
    "StaticContentRepository",
    "parse_fragment",
]
