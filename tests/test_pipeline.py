"""Tests for airules.pipeline."""

from __future__ import annotations

from dataclasses import replace

import pytest

from airules.assembly.constants import DOCUMENT_TYPES
from airules.configuration import Philosophy, ProjectConfiguration, apply_overrides
from airules.content.repository import StaticContentRepository
from airules.models import Condition, ConditionRule, ContentFragment, Operator
from airules.pipeline import (
    GenerationPipeline,
    NoApplicableContentError,
    UnknownDocumentTypeError,
    normalize_documents,
)

TDD_RULE = ConditionRule(
    content_id="tdd",
    conditions=(Condition("philosophy.tdd", Operator.EQUALS, True),),
    priority=10,
)
TDD_FRAGMENT = ContentFragment(id="tdd", section="philosophy", body="- Write the test first")


class RecordingRepository(StaticContentRepository):
    """Static repository that counts how often rules are loaded."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.rule_loads = 0

    def load_rules(self):
        self.rule_loads += 1
        return super().load_rules()


def _pipeline(repository, fixed_clock) -> GenerationPipeline:
    return GenerationPipeline(repository, clock=fixed_clock)


def test_generate_is_deterministic(bundled_repository, fixed_clock) -> None:
    pipeline = _pipeline(bundled_repository, fixed_clock)
    configuration = ProjectConfiguration()

    first = pipeline.generate(configuration, ["all"])
    second = pipeline.generate(configuration, ["all"])

    assert first.documents == second.documents
    assert first.metadata.applied_content_ids == second.metadata.applied_content_ids
    assert first.document_names == list(DOCUMENT_TYPES)


def test_generate_uses_configured_formats_by_default(bundled_repository, fixed_clock) -> None:
    configuration = apply_overrides(ProjectConfiguration(), formats=["cursor", "claude"])

    output = _pipeline(bundled_repository, fixed_clock).generate(configuration)

    assert output.document_names == ["claude", "cursor"]


def test_metadata_records_selection_and_clock(fixed_clock) -> None:
    repository = StaticContentRepository(rules=[TDD_RULE], fragments=[TDD_FRAGMENT])
    configuration = ProjectConfiguration()

    output = _pipeline(repository, fixed_clock).generate(configuration, ["claude"])

    assert output.metadata.applied_content_ids == ("tdd",)
    assert output.metadata.generated_at == fixed_clock()
    assert output.metadata.source_configuration is configuration
    assert output.errors == ()
    assert "## Development Philosophy" in output.documents["claude"]
    assert "Generated on 2024-05-17" in output.documents["claude"]


def test_unknown_names_are_reported_without_aborting(fixed_clock) -> None:
    repository = StaticContentRepository(rules=[TDD_RULE], fragments=[TDD_FRAGMENT])

    output = _pipeline(repository, fixed_clock).generate(ProjectConfiguration(), ["claude", "pdf"])

    assert output.document_names == ["claude"]
    assert [(error.kind, error.document) for error in output.errors] == [
        ("UnknownDocumentType", "pdf")
    ]


def test_only_unknown_names_raise(fixed_clock) -> None:
    repository = StaticContentRepository(rules=[TDD_RULE], fragments=[TDD_FRAGMENT])

    with pytest.raises(UnknownDocumentTypeError) as excinfo:
        _pipeline(repository, fixed_clock).generate(ProjectConfiguration(), ["pdf", "docx"])

    assert excinfo.value.names == ["pdf", "docx"]


def test_no_applicable_content_raises(fixed_clock) -> None:
    repository = StaticContentRepository(rules=[TDD_RULE], fragments=[TDD_FRAGMENT])
    configuration = replace(ProjectConfiguration(), philosophy=Philosophy(tdd=False))

    with pytest.raises(NoApplicableContentError):
        _pipeline(repository, fixed_clock).generate(configuration, ["claude", "readme"])


def test_vscode_alone_does_not_need_fragments(fixed_clock) -> None:
    repository = StaticContentRepository()

    output = _pipeline(repository, fixed_clock).generate(ProjectConfiguration(), ["vscode"])

    assert output.document_names == ["vscode"]
    assert output.metadata.applied_content_ids == ()


def test_document_without_fragments_is_a_warning_when_others_have_content(fixed_clock) -> None:
    restricted = ContentFragment(
        id="tdd", section="philosophy", body="- Write the test first", documents=("claude",)
    )
    repository = StaticContentRepository(rules=[TDD_RULE], fragments=[restricted])

    output = _pipeline(repository, fixed_clock).generate(ProjectConfiguration(), ["claude", "readme"])

    assert output.document_names == ["claude", "readme"]
    assert output.metadata.warnings == ("NoApplicableContent: readme received no content fragments",)


def test_fragment_that_renders_to_nothing_counts_as_no_content(fixed_clock) -> None:
    restricted = replace(TDD_FRAGMENT, documents=("claude",))
    translations = ContentFragment(
        id="translations", section="tools", body="{{#if i18n}}- Translate every string{{/if}}"
    )
    rules = [TDD_RULE, ConditionRule(content_id="translations")]
    repository = StaticContentRepository(rules=rules, fragments=[restricted, translations])
    pipeline = _pipeline(repository, fixed_clock)

    output = pipeline.generate(ProjectConfiguration(), ["claude", "readme"])

    assert output.metadata.applied_content_ids == ("tdd", "translations")
    assert output.metadata.warnings == ("NoApplicableContent: readme received no content fragments",)
    with pytest.raises(NoApplicableContentError):
        pipeline.generate(ProjectConfiguration(), ["readme"])


def test_template_error_excludes_only_that_document(fixed_clock) -> None:
    broken = ContentFragment(id="tdd", section="philosophy", body="- {{#if tdd}}never closed")
    repository = StaticContentRepository(rules=[TDD_RULE], fragments=[broken])

    output = _pipeline(repository, fixed_clock).generate(ProjectConfiguration(), ["claude", "vscode"])

    assert output.document_names == ["vscode"]
    assert [(error.kind, error.document) for error in output.errors] == [
        ("TemplateSyntaxError", "claude")
    ]


def test_conflicts_are_recorded_in_metadata(fixed_clock) -> None:
    rules = [
        TDD_RULE,
        ConditionRule(content_id="later", priority=1, conflicts_with=frozenset({"tdd"})),
    ]
    fragments = [TDD_FRAGMENT, ContentFragment(id="later", section="tools", body="- Test later")]
    repository = RecordingRepository(rules=rules, fragments=fragments)

    output = _pipeline(repository, fixed_clock).generate(ProjectConfiguration(), ["claude"])

    assert output.metadata.applied_content_ids == ("tdd",)
    assert output.metadata.suppressed_content_ids == ("later",)
    assert "Test later" not in output.documents["claude"]
    assert repository.rule_loads == 1


def test_normalize_documents() -> None:
    assert normalize_documents(["readme", "claude", "readme"]) == (("claude", "readme"), [])
    assert normalize_documents(["all", "bogus"]) == (DOCUMENT_TYPES, ["bogus"])
