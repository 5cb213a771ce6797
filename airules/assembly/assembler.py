"""Render selected content fragments into the named output documents."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateError

from ..logging import get_logger
from ..models import ContentFragment
from ..postproc.lint import MarkdownLinter
from .constants import (
    DOCUMENT_TYPES,
    FRAGMENT_DOCUMENTS,
    MAX_CURSOR_PRINCIPLES,
    SECTION_ORDER,
    section_title,
)
from .template import TemplateContext, TemplateSyntaxError, render_template, template_context

if TYPE_CHECKING:
    from ..configuration import ProjectConfiguration

DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


class _RenderedSection:
    """One document section: its name and the rendered bodies of its fragments."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.fragments: List[ContentFragment] = []
        self.bodies: List[str] = []

    @property
    def title(self) -> str:
        return section_title(self.name)


class DocumentAssembler:
    """Groups selected fragments by section and renders each document type.

    Markdown documents come from ``<name>.md.j2`` templates. A custom
    templates directory is searched before the bundled one, so a project can
    override a single document. The vscode document is built as JSON.
    """

    def __init__(
        self,
        linter: MarkdownLinter | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.linter = linter or MarkdownLinter()
        self.logger = get_logger("assembly")
        self._env = self._create_env(templates_dir)
        if templates_dir is not None:
            self.logger.debug("Using custom templates from %s", templates_dir)

    @property
    def document_types(self) -> List[str]:
        return list(DOCUMENT_TYPES)

    def select_fragments(
        self,
        selected_ids: Sequence[str],
        fragments: Mapping[str, ContentFragment],
        document: str | None = None,
    ) -> List[ContentFragment]:
        """Return fragments for the selected ids, in selection order.

        With a document name, fragments restricted to other documents are left out.
        The vscode document never takes fragments.
        """
        if document is not None and document not in FRAGMENT_DOCUMENTS:
            return []
        chosen: List[ContentFragment] = []
        for content_id in selected_ids:
            fragment = fragments.get(content_id)
            if fragment is None:
                self.logger.debug("No fragment for selected content id %s", content_id)
                continue
            if document is not None and not fragment.targets(document):
                continue
            chosen.append(fragment)
        return chosen

    def assemble(
        self,
        selected_ids: Sequence[str],
        fragments: Mapping[str, ContentFragment],
        targets: Iterable[str],
        configuration: "ProjectConfiguration",
        generated_at: datetime,
    ) -> Dict[str, str]:
        """Render every target document; the mapping keeps the order of targets."""
        return {
            name: self.render_document(name, selected_ids, fragments, configuration, generated_at)
            for name in targets
        }

    def render_document(
        self,
        name: str,
        selected_ids: Sequence[str],
        fragments: Mapping[str, ContentFragment],
        configuration: "ProjectConfiguration",
        generated_at: datetime,
    ) -> str:
        if name not in DOCUMENT_TYPES:
            raise KeyError(name)
        if name == "vscode":
            return _render_vscode(configuration)

        sections = self.rendered_sections(name, selected_ids, fragments, configuration)
        variables = self._document_variables(name, sections, configuration)
        variables["date"] = generated_at.date().isoformat()
        try:
            text = self._env.get_template(f"{name}.md.j2").render(**variables)
        except TemplateError as exc:
            raise TemplateSyntaxError(f"Template for {name} failed to render: {exc}") from exc
        self.logger.debug("Rendered %s with %d section(s)", name, len(sections))
        return self.linter.lint(text)

    def rendered_sections(
        self,
        name: str,
        selected_ids: Sequence[str],
        fragments: Mapping[str, ContentFragment],
        configuration: "ProjectConfiguration",
    ) -> List[_RenderedSection]:
        """Sections of a document that keep some text once fragment bodies are rendered."""
        context = template_context(configuration)
        return self._partition(self.select_fragments(selected_ids, fragments, name), context)

    # ------------------------------------------------------------------
    # Grouping

    def _partition(
        self, fragments: Sequence[ContentFragment], context: TemplateContext
    ) -> List[_RenderedSection]:
        by_name: Dict[str, _RenderedSection] = {}
        for fragment in fragments:
            section = by_name.get(fragment.section)
            if section is None:
                section = by_name[fragment.section] = _RenderedSection(fragment.section)
            body = render_template(fragment.body, context).strip()
            section.fragments.append(fragment)
            if body:
                section.bodies.append(body)

        ordered = [by_name[name] for name in SECTION_ORDER if name in by_name]
        # Sections outside the known order follow in first-seen order.
        ordered.extend(section for name, section in by_name.items() if name not in SECTION_ORDER)
        return [section for section in ordered if section.bodies]

    @staticmethod
    def _document_variables(
        name: str, sections: List[_RenderedSection], configuration: "ProjectConfiguration"
    ) -> Dict[str, Any]:
        variables: Dict[str, Any] = {
            "project_name": configuration.output.project_name,
            "project_type": configuration.project_type,
            "python": configuration.project_type == "python",
            "philosophy": configuration.philosophy,
            "tools": configuration.tools,
            "formats": configuration.output.formats,
            "sections": sections,
        }
        if name == "readme":
            variables["guidelines"] = [
                _guideline_line(fragment) for section in sections for fragment in section.fragments
            ]
        elif name == "cursor":
            principles = [item for section in sections for body in section.bodies for item in _bullets(body)]
            variables["principles"] = principles[:MAX_CURSOR_PRINCIPLES]
        elif name == "roocode":
            rule_blocks = []
            for section in sections:
                rules = [_as_generation_rule(item) for body in section.bodies for item in _bullets(body)]
                if rules:
                    rule_blocks.append((section.title, rules))
            variables["rule_blocks"] = rule_blocks
        return variables

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = [str(DEFAULT_TEMPLATES_DIR)]
        if templates_dir is not None:
            directories.insert(0, str(templates_dir))
        env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["json"] = json.dumps
        env.filters["yaml_bool"] = _yaml_bool
        return env


def _render_vscode(configuration: "ProjectConfiguration") -> str:
    tools = configuration.tools
    settings: Dict[str, object] = {
        "editor.formatOnSave": True,
        "editor.codeActionsOnSave": {"source.fixAll": "explicit"},
    }
    extensions: List[str] = []

    if configuration.project_type == "typescript":
        settings["typescript.preferences.includePackageJsonAutoImports"] = "auto"
        extensions.append("ms-vscode.vscode-typescript-next")
    elif configuration.project_type == "python":
        settings["python.testing.pytestEnabled"] = True
        extensions.append("ms-python.python")

    if tools.eslint:
        settings["eslint.validate"] = [
            "typescript",
            "typescriptreact",
            "javascript",
            "javascriptreact",
        ]
        extensions.append("dbaeumer.vscode-eslint")
    if tools.prettier:
        settings["editor.defaultFormatter"] = "esbenp.prettier-vscode"
        extensions.append("esbenp.prettier-vscode")
    if tools.stylelint:
        settings["stylelint.validate"] = ["css", "scss"]
        extensions.append("stylelint.vscode-stylelint")

    for framework, extension in _TESTING_EXTENSIONS:
        if framework in tools.testing:
            extensions.append(extension)
    ui_extension = _UI_EXTENSIONS.get(tools.ui_framework or "")
    if ui_extension:
        extensions.append(ui_extension)

    payload = {"settings": settings, "extensions": {"recommendations": extensions}}
    return json.dumps(payload, indent=2) + "\n"


_TESTING_EXTENSIONS = (
    ("vitest", "vitest.explorer"),
    ("jest", "orta.vscode-jest"),
    ("playwright", "ms-playwright.playwright"),
)

_UI_EXTENSIONS = {
    "react": "burkeholland.simple-react-snippets",
    "vue": "Vue.volar",
    "angular": "Angular.ng-template",
    "svelte": "svelte.svelte-vscode",
}


def _bullets(body: str) -> List[str]:
    """Top-level "- " items of a rendered fragment body."""
    return [line[2:].strip() for line in body.split("\n") if line.startswith("- ") and line[2:].strip()]


def _as_generation_rule(item: str) -> str:
    lowered = item.lower()
    if "generate" in lowered or "ensure" in lowered:
        return item
    return f"Generate code that {item[0].lower()}{item[1:]}"


def _guideline_line(fragment: ContentFragment) -> str:
    if fragment.description:
        return f"- **{fragment.title}**: {fragment.description}"
    return f"- **{fragment.title}**"


def _yaml_bool(value: bool) -> str:
    return "true" if value else "false"


__all__ = ["DEFAULT_TEMPLATES_DIR", "DocumentAssembler"]
