"""Answer validation against question types and required-ness."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence

from ..models import AnswerSet, Question, QuestionType
from .resolver import prerequisites_met

MISSING_REQUIRED_ANSWER = "MissingRequiredAnswer"
INVALID_OPTION = "InvalidOption"
TYPE_MISMATCH = "TypeMismatch"


@dataclass(frozen=True)
class ValidationIssue:
    """Represents a single validation failure tied to one question."""

    question_id: str
    message: str
    detail: str = ""
    invalid_values: tuple = ()

    @property
    def kind(self) -> str:
        return self.message


class AnswerValidationError(RuntimeError):
    """Raised when a caller asks for validation failures to be fatal."""

    def __init__(self, message: str, issues: Sequence[ValidationIssue]) -> None:
        super().__init__(message)
        self.issues = list(issues)


@dataclass
class ValidationResult:
    """Every issue found for an answer set, in canonical question order."""

    errors: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def for_question(self, question_id: str) -> List[ValidationIssue]:
        return [issue for issue in self.errors if issue.question_id == question_id]

    def raise_for_errors(self) -> None:
        if self.errors:
            summary = ", ".join(f"{issue.question_id} ({issue.message})" for issue in self.errors)
            raise AnswerValidationError(f"Invalid answers: {summary}", self.errors)


class AnswerValidator:
    """Checks answers for every reachable question without stopping at the first error."""

    def validate(
        self, answers: AnswerSet | Mapping[str, Any], questions: Sequence[Question]
    ) -> ValidationResult:
        result = ValidationResult()
        for question in questions:
            if not prerequisites_met(question, answers):
                continue
            issue = self._check(question, answers)
            if issue is not None:
                result.errors.append(issue)
        return result

    def _check(self, question: Question, answers: AnswerSet | Mapping[str, Any]) -> ValidationIssue | None:
        answer = answers.get(question.id)
        if answer is None or answer == "":
            if question.required:
                return ValidationIssue(
                    question_id=question.id,
                    message=MISSING_REQUIRED_ANSWER,
                    detail=f'Question "{question.prompt}" is required but not answered',
                )
            return None

        if question.type is QuestionType.SINGLE:
            if not isinstance(answer, str):
                return _mismatch(question, "a single option")
            if answer not in question.options:
                return ValidationIssue(
                    question_id=question.id,
                    message=INVALID_OPTION,
                    detail=f'Invalid answer for "{question.prompt}": {answer}',
                    invalid_values=(answer,),
                )
        elif question.type is QuestionType.MULTIPLE:
            if isinstance(answer, (str, bytes)) or not isinstance(answer, (list, tuple)):
                return _mismatch(question, "a list of options")
            invalid = tuple(item for item in answer if item not in question.options)
            if invalid:
                return ValidationIssue(
                    question_id=question.id,
                    message=INVALID_OPTION,
                    detail=f'Invalid options for "{question.prompt}": '
                    + ", ".join(str(item) for item in invalid),
                    invalid_values=invalid,
                )
        elif question.type is QuestionType.BOOLEAN:
            if not isinstance(answer, bool):
                return _mismatch(question, "true or false")
        elif question.type is QuestionType.TEXT:
            if not isinstance(answer, str):
                return _mismatch(question, "text")
        return None


def _mismatch(question: Question, expected: str) -> ValidationIssue:
    return ValidationIssue(
        question_id=question.id,
        message=TYPE_MISMATCH,
        detail=f'Answer for "{question.prompt}" must be {expected}',
    )


__all__ = [
    "AnswerValidationError",
    "AnswerValidator",
    "INVALID_OPTION",
    "MISSING_REQUIRED_ANSWER",
    "TYPE_MISMATCH",
    "ValidationIssue",
    "ValidationResult",
]
