"""Loading question, rule and fragment definitions."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

import yaml

from ..assembly.constants import FRAGMENT_DOCUMENTS, SECTION_ORDER
from ..config import ConfigurationLoadError
from ..logging import get_logger
from ..models import (
    CONTENT_CATEGORIES,
    Condition,
    ConditionRule,
    ContentFragment,
    Operator,
    Question,
    QuestionType,
)
from ..questions.resolver import check_question_order
from ..stores.content_cache import ContentCache, fingerprint_files

QUESTIONS_FILENAME = "questions.yml"
RULES_FILENAME = "rules.yml"
FRAGMENTS_DIRNAME = "content"
FRONT_MATTER_SEPARATOR = "---"

DEFAULT_CONTENT_DIR = Path(__file__).resolve().parent.parent / "resources"

T = TypeVar("T")


class ContentRepository(Protocol):
    """Source of question, rule and fragment definitions."""

    def load_questions(self) -> List[Question]:
        ...

    def load_rules(self) -> List[ConditionRule]:
        ...

    def load_fragments(self) -> Dict[str, ContentFragment]:
        ...


class StaticContentRepository:
    """Serves definitions that were built in memory."""

    def __init__(
        self,
        questions: Sequence[Question] = (),
        rules: Sequence[ConditionRule] = (),
        fragments: Iterable[ContentFragment] = (),
    ) -> None:
        check_question_order(questions)
        self._questions = list(questions)
        self._rules = list(rules)
        self._fragments = {fragment.id: fragment for fragment in fragments}

    def load_questions(self) -> List[Question]:
        return list(self._questions)

    def load_rules(self) -> List[ConditionRule]:
        return list(self._rules)

    def load_fragments(self) -> Dict[str, ContentFragment]:
        return dict(self._fragments)


class FileContentRepository:
    """Reads definitions from a content directory.

    Layout::

        <content_dir>/questions.yml
        <content_dir>/rules.yml
        <content_dir>/content/<section>/<fragment-id>.md

    Parsed results are kept in a :class:`ContentCache` keyed by a fingerprint of
    the source files, so edits on disk are picked up on the next load.
    """

    def __init__(self, content_dir: Path | None = None, cache: ContentCache | None = None) -> None:
        self.content_dir = (content_dir or DEFAULT_CONTENT_DIR).expanduser()
        self.cache = cache if cache is not None else ContentCache()
        self.logger = get_logger("content")

    @property
    def questions_path(self) -> Path:
        return self.content_dir / QUESTIONS_FILENAME

    @property
    def rules_path(self) -> Path:
        return self.content_dir / RULES_FILENAME

    @property
    def fragments_dir(self) -> Path:
        return self.content_dir / FRAGMENTS_DIRNAME

    def fragment_paths(self) -> List[Path]:
        if not self.fragments_dir.is_dir():
            return []
        return sorted(
            path
            for path in self.fragments_dir.rglob("*.md")
            if path.is_file() and path.name != "README.md"
        )

    def load_questions(self) -> List[Question]:
        questions = self._cached(
            "questions", [self.questions_path], lambda: _parse_questions(self.questions_path)
        )
        return list(questions)

    def load_fragments(self) -> Dict[str, ContentFragment]:
        paths = self.fragment_paths()
        fragments = self._cached("fragments", paths, lambda: _parse_fragments(paths))
        return dict(fragments)

    def load_rules(self) -> List[ConditionRule]:
        fragments = self.load_fragments()
        paths = [self.rules_path, *self.fragment_paths()]
        rules = self._cached("rules", paths, lambda: _parse_rules(self.rules_path, fragments))
        return list(rules)

    def reload(self) -> None:
        """Drop every cached definition so the next load reads from disk."""
        self.cache.invalidate()
        self.logger.debug("Content cache cleared for %s", self.content_dir)

    def _cached(self, key: str, paths: Sequence[Path], loader: Callable[[], T]) -> T:
        fingerprint = fingerprint_files(paths)
        cached = self.cache.get(key, fingerprint=fingerprint)
        if cached is not None:
            return cached
        value = loader()
        self.cache.store(key, fingerprint=fingerprint, value=value)
        self.logger.debug("Loaded %s from %s", key, self.content_dir)
        return value


# ----------------------------------------------------------------------
# Parsing


def _read_yaml(path: Path) -> Any:
    if not path.is_file():
        raise ConfigurationLoadError(f"Content file not found: {path}")
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationLoadError(f"Failed to parse {path.name}: {exc}") from exc


def _parse_questions(path: Path) -> Tuple[Question, ...]:
    data = _read_yaml(path)
    if not isinstance(data, dict) or not isinstance(data.get("categories"), list):
        raise ConfigurationLoadError(f"{path.name} must contain a 'categories' list")

    categories: List[Tuple[int, Mapping[str, Any]]] = []
    for index, raw in enumerate(data["categories"]):
        if not isinstance(raw, dict):
            raise ConfigurationLoadError(f"{path.name}: category #{index + 1} must be a mapping")
        order = raw.get("order", index)
        if not isinstance(order, int) or isinstance(order, bool):
            raise ConfigurationLoadError(f"{path.name}: category order must be an integer")
        categories.append((order, raw))
    # sorted() is stable, so categories sharing an order keep file order.
    categories.sort(key=lambda item: item[0])

    questions: List[Question] = []
    for _, raw_category in categories:
        category = str(raw_category.get("category") or "general")
        for raw_question in raw_category.get("questions") or []:
            questions.append(_parse_question(raw_question, category, path))

    check_question_order(questions)
    return tuple(questions)


def _parse_question(raw: Any, category: str, path: Path) -> Question:
    if not isinstance(raw, dict):
        raise ConfigurationLoadError(f"{path.name}: every question must be a mapping")
    question_id = raw.get("id")
    prompt = raw.get("prompt") or raw.get("text")
    if not isinstance(question_id, str) or not question_id:
        raise ConfigurationLoadError(f"{path.name}: question without an id")
    if not isinstance(prompt, str) or not prompt:
        raise ConfigurationLoadError(f"{path.name}: question '{question_id}' has no prompt")
    try:
        question_type = QuestionType(raw.get("type"))
    except ValueError as exc:
        raise ConfigurationLoadError(
            f"{path.name}: question '{question_id}' has unknown type {raw.get('type')!r}"
        ) from exc

    default = raw.get("default")
    if isinstance(default, list):
        default = tuple(default)
    required = raw.get("required", True)
    if not isinstance(required, bool):
        raise ConfigurationLoadError(
            f"{path.name}: question '{question_id}' required must be true or false"
        )
    prerequisites = _id_list(
        raw.get("prerequisites") or raw.get("dependencies"),
        f"{path.name}: question '{question_id}' prerequisites",
    )
    return Question(
        id=question_id,
        prompt=prompt,
        type=question_type,
        options=tuple(str(option) for option in raw.get("options") or ()),
        default=default,
        prerequisites=prerequisites,
        required=required,
        category=category,
        description=str(raw.get("description") or ""),
    )


def _parse_rules(path: Path, fragments: Mapping[str, ContentFragment]) -> Tuple[ConditionRule, ...]:
    data = _read_yaml(path)
    if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
        raise ConfigurationLoadError(f"{path.name} must contain a 'rules' list")

    rules: List[ConditionRule] = []
    seen: set[str] = set()
    for raw in data["rules"]:
        if not isinstance(raw, dict):
            raise ConfigurationLoadError(f"{path.name}: every rule must be a mapping")
        content_id = raw.get("content_id")
        if not isinstance(content_id, str) or not content_id:
            raise ConfigurationLoadError(f"{path.name}: rule without a content_id")
        if content_id in seen:
            raise ConfigurationLoadError(f"{path.name}: duplicate rule for '{content_id}'")
        fragment = fragments.get(content_id)
        if fragment is None:
            raise ConfigurationLoadError(
                f"{path.name}: rule '{content_id}' references a missing content fragment"
            )
        seen.add(content_id)

        priority = raw.get("priority", fragment.weight)
        if not isinstance(priority, int) or isinstance(priority, bool):
            raise ConfigurationLoadError(f"{path.name}: rule '{content_id}' priority must be an integer")

        rules.append(
            ConditionRule(
                content_id=content_id,
                conditions=tuple(
                    _parse_condition(item, content_id, path) for item in raw.get("conditions") or ()
                ),
                priority=priority,
                conflicts_with=frozenset(
                    _id_list(raw.get("conflicts_with"), f"{path.name}: rule '{content_id}' conflicts_with")
                ),
                category=raw.get("category") or fragment.category,
            )
        )
    return tuple(rules)


def _id_list(value: Any, label: str) -> Tuple[str, ...]:
    """A list of ids; a bare string would otherwise be split into characters."""
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
        raise ConfigurationLoadError(f"{label} must be a list of ids, got {value!r}")
    return tuple(value)


def _parse_condition(raw: Any, content_id: str, path: Path) -> Condition:
    if not isinstance(raw, dict) or not isinstance(raw.get("field"), str):
        raise ConfigurationLoadError(f"{path.name}: rule '{content_id}' has a condition without a field")
    try:
        operator = Operator(raw.get("operator"))
    except ValueError as exc:
        raise ConfigurationLoadError(
            f"{path.name}: rule '{content_id}' uses unknown operator {raw.get('operator')!r}"
        ) from exc
    return Condition(field=raw["field"], operator=operator, value=raw.get("value"))


def _parse_fragments(paths: Sequence[Path]) -> Dict[str, ContentFragment]:
    fragments: Dict[str, ContentFragment] = {}
    for path in paths:
        fragment = parse_fragment(path.read_text(encoding="utf-8"), source=path.name)
        if fragment.id in fragments:
            raise ConfigurationLoadError(f"Duplicate content fragment id '{fragment.id}' in {path}")
        fragments[fragment.id] = fragment
    return fragments


def parse_fragment(text: str, *, source: str = "<fragment>") -> ContentFragment:
    """Parse a markdown fragment with YAML front matter."""
    lines = text.replace("\r\n", "\n").split("\n")
    if not lines or lines[0].strip() != FRONT_MATTER_SEPARATOR:
        raise ConfigurationLoadError(f"{source}: content must start with YAML front matter (---)")
    end: Optional[int] = next(
        (index for index in range(1, len(lines)) if lines[index].strip() == FRONT_MATTER_SEPARATOR),
        None,
    )
    if end is None:
        raise ConfigurationLoadError(f"{source}: front matter must be closed with ---")

    try:
        metadata = yaml.safe_load("\n".join(lines[1:end])) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationLoadError(f"{source}: failed to parse front matter: {exc}") from exc
    if not isinstance(metadata, dict):
        raise ConfigurationLoadError(f"{source}: front matter must be a mapping")

    for key in ("id", "section"):
        if not metadata.get(key):
            raise ConfigurationLoadError(f"{source}: missing required field '{key}'")
    section = str(metadata["section"])
    if section not in SECTION_ORDER:
        raise ConfigurationLoadError(
            f"{source}: section must be one of {', '.join(SECTION_ORDER)}, got '{section}'"
        )
    category = str(metadata.get("category") or "craft")
    if category not in CONTENT_CATEGORIES:
        raise ConfigurationLoadError(
            f"{source}: category must be one of {', '.join(CONTENT_CATEGORIES)}, got '{category}'"
        )
    weight = metadata.get("weight", 1)
    if not isinstance(weight, int) or isinstance(weight, bool) or weight < 1:
        raise ConfigurationLoadError(f"{source}: weight must be a positive integer")
    documents = metadata.get("documents") or []
    if isinstance(documents, str):
        documents = [documents]
    unknown = [name for name in documents if name not in FRAGMENT_DOCUMENTS]
    if unknown:
        raise ConfigurationLoadError(
            f"{source}: documents must be fragment-backed documents, got {', '.join(map(str, unknown))}"
        )

    return ContentFragment(
        id=str(metadata["id"]),
        section=section,
        body="\n".join(lines[end + 1 :]).strip(),
        category=category,
        weight=weight,
        name=str(metadata.get("name") or ""),
        description=str(metadata.get("description") or ""),
        documents=tuple(documents),
    )


__all__ = [
    "ContentRepository",
    "DEFAULT_CONTENT_DIR",
    "FileContentRepository",
    "StaticContentRepository",
    "parse_fragment",
]
