"""Minimal template evaluator for guideline fragments.

Grammar:

* ``{{ name }}`` or ``{{ dotted.path }}`` is replaced by the named value.
  Unknown names render as an empty string.
* ``{{#if name}} ... {{/if}}`` keeps the enclosed text only when ``name`` is
  true (for non-boolean values: defined and non-empty). Blocks do not nest and
  there is no else branch.
"""

from __future__ import annotations

import re
from dataclasses import fields, is_dataclass
from typing import Any, Dict, Mapping

from ..rules.engine import UNDEFINED, resolve_field

_TAG_PATTERN = re.compile(
    r"\{\{\s*(?:#if\s+(?P<flag>[A-Za-z_][\w.]*)|(?P<close>/if)|(?P<name>[A-Za-z_][\w.]*))\s*\}\}"
)


class TemplateSyntaxError(ValueError):
    """Raised when conditional blocks are unbalanced or nested."""


class TemplateContext:
    """Resolves template names from explicit variables, then from a source object."""

    def __init__(self, variables: Mapping[str, Any], source: Any = None) -> None:
        self._variables = dict(variables)
        self._source = source

    def lookup(self, name: str) -> Any:
        if name in self._variables:
            return self._variables[name]
        if self._source is None:
            return UNDEFINED
        return resolve_field(self._source, name)

    def text(self, name: str) -> str:
        return format_value(self.lookup(name))

    def flag(self, name: str) -> bool:
        value = self.lookup(name)
        if isinstance(value, bool):
            return value
        if value is UNDEFINED or value is None:
            return False
        if isinstance(value, (str, list, tuple, set, frozenset, dict)):
            return len(value) > 0
        return True


def template_context(configuration: Any) -> TemplateContext:
    """Expose the named template variables of a project configuration.

    Every boolean flag of the philosophy, tools, quality and infrastructure
    groups is available by its short name (``tdd``, ``i18n``, ``cicd``...).
    Anything else is reachable through its dotted path.
    """
    variables: Dict[str, Any] = {}
    for group_name in ("philosophy", "tools", "quality", "infrastructure"):
        group = getattr(configuration, group_name, None)
        if group is None or not is_dataclass(group):
            continue
        for item in fields(group):
            value = getattr(group, item.name)
            if isinstance(value, bool):
                variables.setdefault(item.name, value)

    tools = getattr(configuration, "tools", None)
    output = getattr(configuration, "output", None)
    variables.update(
        project_name=getattr(output, "project_name", ""),
        project_type=getattr(configuration, "project_type", ""),
        testing_frameworks=" and ".join(getattr(tools, "testing", ())),
        linting_tools=", ".join(getattr(tools, "linting", ())),
        ui_framework=getattr(tools, "ui_framework", None) or "",
        state_management=getattr(tools, "state_management", None) or "",
    )
    return TemplateContext(variables, source=configuration)


def format_value(value: Any) -> str:
    if value is UNDEFINED or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(item) for item in value)
    return str(value)


def render_template(template: str, context: TemplateContext) -> str:
    """Render a fragment body against a context."""
    output: list[str] = []
    position = 0
    block_line: int | None = None
    include = True

    for match in _TAG_PATTERN.finditer(template):
        if include:
            output.append(template[position : match.start()])
        position = match.end()

        if match.group("flag"):
            line = template.count("\n", 0, match.start()) + 1
            if block_line is not None:
                raise TemplateSyntaxError(
                    f"Nested {{{{#if}}}} on line {line}; blocks opened on line {block_line} must close first"
                )
            block_line = line
            include = context.flag(match.group("flag"))
        elif match.group("close"):
            if block_line is None:
                line = template.count("\n", 0, match.start()) + 1
                raise TemplateSyntaxError(f"Unexpected {{{{/if}}}} on line {line}")
            block_line = None
            include = True
        elif include:
            output.append(context.text(match.group("name")))

    if block_line is not None:
        raise TemplateSyntaxError(f"Unclosed {{{{#if}}}} opened on line {block_line}")
    output.append(template[position:])
    return "".join(output)


__all__ = [
    "TemplateContext",
    "TemplateSyntaxError",
    "format_value",
    "render_template",
    "template_context",
]
