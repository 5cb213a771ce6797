"""Normalisation for generated markdown documents."""

from __future__ import annotations

import re
from typing import List

_HEADING = re.compile(r"^#{1,6}\s")


class MarkdownLinter:
    """Normalises line endings, blank lines and heading spacing outside code fences."""

    def lint(self, markdown: str) -> str:
        normalized = markdown.replace("\r\n", "\n").replace("\r", "\n")
        cleaned: List[str] = []
        in_code = False

        for line in normalized.split("\n"):
            stripped = line.rstrip()
            if stripped.lstrip().startswith("```"):
                in_code = not in_code
                cleaned.append(stripped)
                continue
            if in_code:
                cleaned.append(stripped)
                continue

            if not stripped:
                if cleaned and cleaned[-1] != "":
                    cleaned.append("")
                continue

            if _HEADING.match(stripped):
                if cleaned and cleaned[-1] != "":
                    cleaned.append("")
                cleaned.append(stripped)
                cleaned.append("")
                continue

            cleaned.append(stripped)

        while cleaned and cleaned[-1] == "":
            cleaned.pop()
        return "\n".join(cleaned) + "\n"


__all__ = ["MarkdownLinter"]
