"""Tests for rule evaluation."""

from __future__ import annotations

from dataclasses import replace

import pytest

from airules.configuration import Philosophy, ProjectConfiguration, Tools
from airules.models import Condition, ConditionRule, Operator
from airules.rules.engine import UNDEFINED, RuleEngine, condition_matches, resolve_field


def _rule(content_id: str, *conditions: Condition, priority: int = 0, conflicts=()) -> ConditionRule:
    return ConditionRule(
        content_id=content_id,
        conditions=tuple(conditions),
        priority=priority,
        conflicts_with=frozenset(conflicts),
    )


def test_tdd_rule_fires_for_tdd_configuration() -> None:
    configuration = {"project_type": "typescript", "philosophy": {"tdd": True}}
    rule = _rule("tdd", Condition("philosophy.tdd", Operator.EQUALS, True), priority=10)

    assert RuleEngine().select_applicable(configuration, [rule]) == ["tdd"]


def test_equal_priorities_keep_declaration_order() -> None:
    always = Condition("project_type", Operator.EXISTS)
    rules = [_rule("r1", always, priority=5), _rule("r2", always, priority=5)]

    assert RuleEngine().select_applicable({"project_type": "python"}, rules) == ["r1", "r2"]


def test_rules_sorted_by_priority_descending() -> None:
    rules = [_rule("low", priority=1), _rule("high", priority=9), _rule("mid", priority=5)]

    assert RuleEngine().select_applicable(ProjectConfiguration(), rules) == ["high", "mid", "low"]


def test_conditions_are_or_combined() -> None:
    rule = _rule(
        "js-family",
        Condition("project_type", Operator.EQUALS, "typescript"),
        Condition("project_type", Operator.EQUALS, "javascript"),
    )
    engine = RuleEngine()

    assert engine.matches(rule, ProjectConfiguration(project_type="javascript"))
    assert not engine.matches(rule, ProjectConfiguration(project_type="python"))


def test_equals_does_not_treat_integers_as_booleans() -> None:
    condition = Condition("philosophy.tdd", Operator.EQUALS, True)

    assert not condition_matches(condition, {"philosophy": {"tdd": 1}})
    assert condition_matches(condition, {"philosophy": {"tdd": True}})


def test_includes_and_exists_operators() -> None:
    configuration = ProjectConfiguration(tools=Tools(ui_framework="react"))

    assert condition_matches(Condition("tools.linting", Operator.INCLUDES, "eslint"), configuration)
    assert not condition_matches(Condition("tools.linting", Operator.INCLUDES, "stylelint"), configuration)
    assert not condition_matches(Condition("project_type", Operator.INCLUDES, "type"), configuration)
    assert condition_matches(Condition("tools.ui_framework", Operator.EXISTS), configuration)
    assert not condition_matches(Condition("tools.state_management", Operator.EXISTS), configuration)
    assert not condition_matches(Condition("tools.missing.deeper", Operator.EXISTS), configuration)


@pytest.mark.parametrize("path", ["nope", "philosophy.nope", "project_type.length"])
def test_resolve_field_missing_segments_are_undefined(path: str) -> None:
    assert resolve_field(ProjectConfiguration(), path) is UNDEFINED


def test_conflicting_rule_with_lower_rank_is_suppressed() -> None:
    rules = [
        _rule("strict", priority=5, conflicts=["loose"]),
        _rule("loose", priority=7),
        _rule("other", priority=1),
    ]

    selection = RuleEngine().evaluate(ProjectConfiguration(), rules)

    assert selection.content_ids == ("loose", "other")
    assert selection.suppressed == ("strict",)


def test_duplicate_content_ids_keep_first_rule() -> None:
    rules = [_rule("a", priority=1), _rule("a", priority=9), _rule("b", priority=5)]

    assert RuleEngine().select_applicable({}, rules) == ["b", "a"]


def test_explain_lists_matching_conditions() -> None:
    configuration = ProjectConfiguration(philosophy=replace(Philosophy(), tdd=False))
    rule = _rule(
        "logging",
        Condition("philosophy.tdd", Operator.EQUALS, True),
        Condition("philosophy.strict_architecture", Operator.EQUALS, True),
    )

    matched = RuleEngine().explain(configuration, rule)

    assert [condition.field for condition in matched] == ["philosophy.strict_architecture"]


def test_bundled_rules_for_default_configuration(bundled_repository) -> None:
    rules = bundled_repository.load_rules()

    selection = RuleEngine().evaluate(ProjectConfiguration(), rules)

    assert selection.content_ids[:3] == ("tdd", "typescript-standards", "development-workflow")
    assert "test-after-development" not in selection.content_ids
    assert "atomic-design" not in selection.content_ids
    assert "version-control" in selection.content_ids
    assert selection.suppressed == ()
