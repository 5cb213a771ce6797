"""Dependency-aware navigation through the ordered question set."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from ..config import ConfigurationLoadError
from ..logging import get_logger
from ..models import AnswerSet, Question

logger = get_logger("questions.resolver")


def answer_satisfies(value: Any) -> bool:
    """Return True when an answer satisfies a prerequisite on its question."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) > 0
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def prerequisites_met(question: Question, answers: AnswerSet | Mapping[str, Any]) -> bool:
    """Every prerequisite of the question must hold (logical AND)."""
    return all(answer_satisfies(answers.get(dep)) for dep in question.prerequisites)


def check_question_order(questions: Sequence[Question]) -> None:
    """Reject duplicate ids, choice questions without options, and prerequisites
    that do not point at an earlier question.

    Because a prerequisite may only reference a question that precedes it,
    passing this check also rules out cycles.
    """
    seen: Set[str] = set()
    all_ids = {question.id for question in questions}
    for question in questions:
        if question.id in seen:
            raise ConfigurationLoadError(f"Duplicate question id '{question.id}'")
        if question.is_choice and not question.options:
            raise ConfigurationLoadError(
                f"Question '{question.id}' of type {question.type.value} must declare options"
            )
        for dep in question.prerequisites:
            if dep == question.id:
                raise ConfigurationLoadError(f"Question '{question.id}' lists itself as a prerequisite")
            if dep not in all_ids:
                raise ConfigurationLoadError(
                    f"Question '{question.id}' depends on unknown question '{dep}'"
                )
            if dep not in seen:
                raise ConfigurationLoadError(
                    f"Question '{question.id}' depends on '{dep}', which is not asked before it"
                )
        seen.add(question.id)


class DependencyResolver:
    """Finds the next or previous askable question for a partial answer set."""

    def __init__(self, questions: Sequence[Question]) -> None:
        self._questions: List[Question] = list(questions)
        self._positions: Dict[str, int] = {}
        for index, question in enumerate(self._questions):
            self._positions.setdefault(question.id, index)

    @property
    def questions(self) -> List[Question]:
        return list(self._questions)

    def get(self, question_id: str) -> Optional[Question]:
        index = self._positions.get(question_id)
        return self._questions[index] if index is not None else None

    def position(self, question_id: Optional[str]) -> Optional[int]:
        if question_id is None:
            return None
        return self._positions.get(question_id)

    def next_question(
        self, current_id: Optional[str], answers: AnswerSet | Mapping[str, Any]
    ) -> Optional[Question]:
        """Return the first askable question after current_id, or None when done.

        A missing or unknown current_id means "no current position" and yields
        the first question.
        """
        if not self._questions:
            return None
        current = self.position(current_id)
        if current is None:
            return self._questions[0]
        index = current + 1
        # Bounded by the question count; each step moves strictly forward.
        for _ in range(len(self._questions)):
            if index >= len(self._questions):
                return None
            candidate = self._questions[index]
            if prerequisites_met(candidate, answers):
                return candidate
            logger.debug("Skipping question %s: prerequisites not met", candidate.id)
            index += 1
        return None

    def previous_question(
        self, current_id: Optional[str], answers: AnswerSet | Mapping[str, Any]
    ) -> Optional[Question]:
        """Return the closest askable question before current_id, or None at the start."""
        current = self.position(current_id)
        if current is None:
            return None
        index = current - 1
        for _ in range(len(self._questions)):
            if index < 0:
                return None
            candidate = self._questions[index]
            if prerequisites_met(candidate, answers):
                return candidate
            index -= 1
        return None

    def reachable_questions(self, answers: AnswerSet | Mapping[str, Any]) -> List[Question]:
        """Questions a complete walk would visit under the given answers."""
        return [question for question in self._questions if prerequisites_met(question, answers)]


__all__ = [
    "DependencyResolver",
    "answer_satisfies",
    "check_question_order",
    "prerequisites_met",
]
