"""Core data models shared across ai-rules components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple


class QuestionType(str, Enum):
    """Answer shape expected by a question."""

    SINGLE = "single"
    MULTIPLE = "multiple"
    BOOLEAN = "boolean"
    TEXT = "text"


class Operator(str, Enum):
    """Comparison operators supported by rule conditions."""

    EQUALS = "equals"
    INCLUDES = "includes"
    EXISTS = "exists"


CONTENT_CATEGORIES: Tuple[str, ...] = ("craft", "process", "product")


@dataclass(frozen=True)
class Question:
    """A single configuration prompt with its answer type and prerequisites."""

    id: str
    prompt: str
    type: QuestionType
    options: Tuple[str, ...] = ()
    default: Any = None
    prerequisites: Tuple[str, ...] = ()
    required: bool = True
    category: str = "project"
    description: str = ""

    @property
    def is_choice(self) -> bool:
        return self.type in (QuestionType.SINGLE, QuestionType.MULTIPLE)


class AnswerSet:
    """Answers keyed by question id, kept in the order they were first recorded."""

    def __init__(self, answers: Mapping[str, Any] | None = None) -> None:
        self._answers: Dict[str, Any] = dict(answers or {})

    @classmethod
    def with_defaults(cls, questions: Iterable[Question]) -> "AnswerSet":
        """Seed an answer set with every question default that is defined."""
        answers = cls()
        for question in questions:
            if question.default is not None:
                default = question.default
                if isinstance(default, (list, tuple)):
                    default = list(default)
                answers.record(question.id, default)
        return answers

    def record(self, question_id: str, value: Any) -> None:
        """Record or overwrite the answer for a question."""
        self._answers[question_id] = value

    def get(self, question_id: str, default: Any = None) -> Any:
        return self._answers.get(question_id, default)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._answers)

    def copy(self) -> "AnswerSet":
        return AnswerSet(self._answers)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._answers

    def __getitem__(self, question_id: str) -> Any:
        return self._answers[question_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AnswerSet):
            return self._answers == other._answers
        if isinstance(other, Mapping):
            return self._answers == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"AnswerSet({self._answers!r})"


@dataclass(frozen=True)
class Condition:
    """One clause of a rule predicate."""

    field: str
    operator: Operator
    value: Any = None


@dataclass(frozen=True)
class ConditionRule:
    """Selects a content fragment when any of its conditions holds."""

    content_id: str
    conditions: Tuple[Condition, ...] = ()
    priority: int = 0
    conflicts_with: frozenset[str] = frozenset()
    category: Optional[str] = None


@dataclass(frozen=True)
class ContentFragment:
    """Unit of static guideline text placed in one document section."""

    id: str
    section: str
    body: str
    category: str = "craft"
    weight: int = 1
    name: str = ""
    description: str = ""
    # Empty means every fragment-backed document.
    documents: Tuple[str, ...] = ()

    @property
    def title(self) -> str:
        return self.name or self.id.replace("-", " ").title()

    def targets(self, document: str) -> bool:
        return not self.documents or document in self.documents


@dataclass(frozen=True)
class DocumentError:
    """Per-document failure recorded in an otherwise successful generation."""

    kind: str
    document: str
    message: str


@dataclass(frozen=True)
class GenerationMetadata:
    """Audit data captured alongside generated documents."""

    applied_content_ids: Tuple[str, ...]
    generated_at: datetime
    source_configuration: Any
    suppressed_content_ids: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        source = self.source_configuration
        if hasattr(source, "to_dict"):
            source = source.to_dict()
        return {
            "appliedContentIds": list(self.applied_content_ids),
            "suppressedContentIds": list(self.suppressed_content_ids),
            "generatedAt": self.generated_at.isoformat().replace("+00:00", "Z"),
            "sourceConfiguration": source,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class GeneratedOutput:
    """Rendered documents plus the metadata describing how they were produced."""

    documents: Mapping[str, str]
    metadata: GenerationMetadata
    errors: Tuple[DocumentError, ...] = field(default_factory=tuple)

    @property
    def document_names(self) -> List[str]:
        return list(self.documents)


__all__ = [
    "AnswerSet",
    "CONTENT_CATEGORIES",
    "Condition",
    "ConditionRule",
    "ContentFragment",
    "DocumentError",
    "GeneratedOutput",
    "GenerationMetadata",
    "Operator",
    "Question",
    "QuestionType",
]
