"""Rule evaluation for content selection."""

from .engine import UNDEFINED, RuleEngine, RuleSelection, condition_matches, resolve_field

__all__ = ["RuleEngine", "RuleSelection", "UNDEFINED", "condition_matches", "resolve_field"]
