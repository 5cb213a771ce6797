"""Declarative rule evaluation over a project configuration."""

from __future__ import annotations

from dataclasses import dataclass, is_dataclass
from typing import Any, List, Mapping, Sequence, Set, Tuple

from ..logging import get_logger
from ..models import Condition, ConditionRule, Operator


class _Undefined:
    """Marker for a field path that does not resolve."""

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


def resolve_field(source: Any, path: str) -> Any:
    """Follow a dotted path through mappings and dataclass attributes.

    Returns UNDEFINED as soon as a segment is missing.
    """
    current = source
    for segment in path.split("."):
        if current is None or current is UNDEFINED:
            return UNDEFINED
        if isinstance(current, Mapping):
            if segment not in current:
                return UNDEFINED
            current = current[segment]
        elif is_dataclass(current) and not isinstance(current, type):
            if not hasattr(current, segment):
                return UNDEFINED
            current = getattr(current, segment)
        else:
            return UNDEFINED
    return current


def _strict_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if left is UNDEFINED or right is UNDEFINED:
        return False
    if left is None or right is None:
        return left is right
    if type(left) is not type(right) and not (
        isinstance(left, (int, float)) and isinstance(right, (int, float))
    ):
        return False
    return left == right


def condition_matches(condition: Condition, source: Any) -> bool:
    value = resolve_field(source, condition.field)
    if condition.operator is Operator.EQUALS:
        return _strict_equals(value, condition.value)
    if condition.operator is Operator.INCLUDES:
        return isinstance(value, (list, tuple, set, frozenset)) and condition.value in value
    if condition.operator is Operator.EXISTS:
        return value is not UNDEFINED and value is not None and value != ""
    return False


@dataclass(frozen=True)
class RuleSelection:
    """Ordered content ids chosen by the engine plus the ids dropped by conflicts."""

    content_ids: Tuple[str, ...]
    suppressed: Tuple[str, ...] = ()


class RuleEngine:
    """Selects content ids whose rules fire, highest priority first.

    Ties keep declaration order. When two fired rules conflict (in either
    direction) the one ranked first is kept and the other is suppressed.
    """

    def __init__(self) -> None:
        self.logger = get_logger("rules")

    def matches(self, rule: ConditionRule, configuration: Any) -> bool:
        if not rule.conditions:
            return True
        return any(condition_matches(condition, configuration) for condition in rule.conditions)

    def explain(self, configuration: Any, rule: ConditionRule) -> List[Condition]:
        """Return the conditions of a rule that hold for the configuration."""
        return [condition for condition in rule.conditions if condition_matches(condition, configuration)]

    def evaluate(self, configuration: Any, rules: Sequence[ConditionRule]) -> RuleSelection:
        fired: List[ConditionRule] = []
        seen: Set[str] = set()
        for rule in rules:
            if rule.content_id in seen:
                continue
            if self.matches(rule, configuration):
                fired.append(rule)
                seen.add(rule.content_id)
                self.logger.debug("Rule %s fired (priority %d)", rule.content_id, rule.priority)

        # sorted() is stable, so equal priorities keep declaration order.
        ordered = sorted(fired, key=lambda rule: -rule.priority)

        kept: List[ConditionRule] = []
        suppressed: List[str] = []
        for rule in ordered:
            winner = next((other for other in kept if _conflicting(rule, other)), None)
            if winner is not None:
                self.logger.debug(
                    "Rule %s suppressed by conflicting rule %s", rule.content_id, winner.content_id
                )
                suppressed.append(rule.content_id)
                continue
            kept.append(rule)

        return RuleSelection(
            content_ids=tuple(rule.content_id for rule in kept),
            suppressed=tuple(suppressed),
        )

    def select_applicable(self, configuration: Any, rules: Sequence[ConditionRule]) -> List[str]:
        return list(self.evaluate(configuration, rules).content_ids)


def _conflicting(left: ConditionRule, right: ConditionRule) -> bool:
    return right.content_id in left.conflicts_with or left.content_id in right.conflicts_with


__all__ = [
    "RuleEngine",
    "RuleSelection",
    "UNDEFINED",
    "condition_matches",
    "resolve_field",
]
