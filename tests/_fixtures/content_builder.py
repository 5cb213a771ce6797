"""Helper utilities for constructing temporary content directories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from airules.content.repository import FileContentRepository
from airules.stores.content_cache import ContentCache

MINIMAL_QUESTIONS = """
categories:
  - category: project
    order: 1
    questions:
      - id: project_type
        prompt: What type of project are you building?
        type: single
        options: [typescript, javascript, python, other]
        default: typescript
      - id: follow_tdd
        prompt: Follow TDD?
        type: boolean
        default: true
"""

MINIMAL_RULES = """
rules:
  - content_id: tdd
    priority: 10
    conditions:
      - {field: philosophy.tdd, operator: equals, value: true}
"""

TDD_FRAGMENT = """
---
id: tdd
name: Test-Driven Development
section: philosophy
weight: 10
description: Tests first
---
- Write a failing test first using {{testing_frameworks}}
"""


class ContentBuilder:
    """Writes questions, rules and fragments into a throwaway content directory."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "content-root"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries below the content directory."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_minimal(self) -> None:
        self.write(
            {
                "questions.yml": MINIMAL_QUESTIONS,
                "rules.yml": MINIMAL_RULES,
                "content/philosophy/tdd.md": TDD_FRAGMENT,
            }
        )

    def repository(self, cache: ContentCache | None = None) -> FileContentRepository:
        return FileContentRepository(self.root, cache=cache)


__all__ = ["ContentBuilder"]
