"""Question navigation and answer validation."""

from .resolver import DependencyResolver, answer_satisfies, check_question_order, prerequisites_met
from .validator import (
    AnswerValidationError,
    AnswerValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "AnswerValidationError",
    "AnswerValidator",
    "DependencyResolver",
    "ValidationIssue",
    "ValidationResult",
    "answer_satisfies",
    "check_question_order",
    "prerequisites_met",
]
