"""Shared constants for document assembly and output layout."""

from __future__ import annotations

DOCUMENT_TYPES: tuple[str, ...] = (
    "claude",
    "vscode",
    "readme",
    "cursor",
    "copilot",
    "roocode",
)

# "all" is accepted wherever a list of document names is.
ALL_DOCUMENTS = "all"

DOCUMENT_PATHS: dict[str, str] = {
    "claude": "CLAUDE.md",
    "vscode": ".vscode/settings.json",
    "readme": "README.md",
    "cursor": ".cursorrules",
    "copilot": ".github/copilot-instructions.md",
    "roocode": ".roo/rules/instructions.md",
}

# Documents whose body is built from selected content fragments.
FRAGMENT_DOCUMENTS: frozenset[str] = frozenset(
    {"claude", "readme", "cursor", "copilot", "roocode"}
)

SECTION_ORDER: tuple[str, ...] = (
    "philosophy",
    "language",
    "tools",
    "quality",
    "infrastructure",
)

SECTION_TITLES: dict[str, str] = {
    "philosophy": "Development Philosophy",
    "language": "Language-Specific Guidelines",
    "tools": "Development Tools & Quality",
    "quality": "Quality Assurance",
    "infrastructure": "Infrastructure & Operations",
}

METADATA_FILENAME = ".ai-rules-metadata.json"
EXTENSIONS_PATH = ".vscode/extensions.json"

MAX_CURSOR_PRINCIPLES = 10


def section_title(name: str) -> str:
    """Return the display title for a section, falling back to a capitalised name."""
    return SECTION_TITLES.get(name, name.replace("_", " ").capitalize())


__all__ = [
    "ALL_DOCUMENTS",
    "DOCUMENT_PATHS",
    "DOCUMENT_TYPES",
    "EXTENSIONS_PATH",
    "FRAGMENT_DOCUMENTS",
    "MAX_CURSOR_PRINCIPLES",
    "METADATA_FILENAME",
    "SECTION_ORDER",
    "SECTION_TITLES",
    "section_title",
]
