"""Interactive question flow for `ai-rules init`."""

from __future__ import annotations

import re
import sys
from typing import Any, Callable, List, Optional, Protocol, Sequence, TextIO

from .logging import get_logger
from .models import AnswerSet, Question, QuestionType
from .questions.resolver import DependencyResolver

BACK_INPUT = "<"

_TRUE_WORDS = {"y", "yes", "true", "1"}
_FALSE_WORDS = {"n", "no", "false", "0"}
_SEPARATORS = re.compile(r"[,\s]+")


class _Back:
    def __repr__(self) -> str:
        return "BACK"


BACK = _Back()


class Prompter(Protocol):
    """Asks one question and returns the typed answer or BACK."""

    def ask(self, question: Question, current: Any = None) -> Any:
        ...


class TerminalPrompter:
    """Line-based prompter reading from an injectable input function."""

    def __init__(
        self,
        input_fn: Callable[[str], str] | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self._input = input_fn or input
        self._stream = stream or sys.stdout

    def ask(self, question: Question, current: Any = None) -> Any:
        self._write(f"\n{question.prompt}")
        if question.description:
            self._write(f"  {question.description}")
        if question.is_choice:
            for index, option in enumerate(question.options, start=1):
                self._write(f"  {index}) {option}")
        hint = self._describe(question, current)
        while True:
            raw = self._input(f"{hint}> ").strip()
            if raw == BACK_INPUT:
                return BACK
            if not raw:
                if current is not None:
                    return current
                if not question.required:
                    return None
                self._write("  An answer is required.")
                continue
            try:
                return self.parse(question, raw)
            except ValueError as exc:
                self._write(f"  {exc}")

    def parse(self, question: Question, raw: str) -> Any:
        """Convert one line of input into the answer type of the question."""
        if question.type is QuestionType.BOOLEAN:
            word = raw.lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
            raise ValueError("Please answer y or n.")
        if question.type is QuestionType.SINGLE:
            return self._option(question, raw)
        if question.type is QuestionType.MULTIPLE:
            tokens = [token for token in _SEPARATORS.split(raw) if token]
            if tokens == ["all"] and "all" not in question.options:
                return list(question.options)
            selected: List[str] = []
            for token in tokens:
                option = self._option(question, token)
                if option not in selected:
                    selected.append(option)
            return selected
        return raw

    @staticmethod
    def _option(question: Question, token: str) -> str:
        if token.isdigit():
            index = int(token)
            if 1 <= index <= len(question.options):
                return question.options[index - 1]
            raise ValueError(f"Choose a number between 1 and {len(question.options)}.")
        if token in question.options:
            return token
        raise ValueError(f"'{token}' is not one of: {', '.join(question.options)}.")

    @staticmethod
    def _describe(question: Question, current: Any) -> str:
        if current is None:
            return ""
        if isinstance(current, bool):
            shown = "Y/n" if current else "y/N"
        elif isinstance(current, (list, tuple)):
            shown = ", ".join(str(item) for item in current)
        else:
            shown = str(current)
        return f"[{shown}] "

    def _write(self, text: str) -> None:
        self._stream.write(text + "\n")
        self._stream.flush()


class QuestionWizard:
    """Walks the question set, honouring prerequisites and back navigation."""

    def __init__(self, questions: Sequence[Question], prompter: Prompter) -> None:
        self.questions = list(questions)
        self.resolver = DependencyResolver(self.questions)
        self.prompter = prompter
        self.logger = get_logger("wizard")

    def run(self, answers: Optional[AnswerSet] = None) -> AnswerSet:
        """Ask every reachable question and return the collected answers.

        Answers start from the question defaults unless a seed set is given.
        """
        collected = answers.copy() if answers is not None else AnswerSet.with_defaults(self.questions)
        question = self.resolver.next_question(None, collected)
        while question is not None:
            value = self.prompter.ask(question, collected.get(question.id))
            if value is BACK:
                previous = self.resolver.previous_question(question.id, collected)
                if previous is None:
                    self.logger.debug("Already at the first question")
                else:
                    question = previous
                continue
            collected.record(question.id, value)
            question = self.resolver.next_question(question.id, collected)
        return collected


__all__ = ["BACK", "Prompter", "QuestionWizard", "TerminalPrompter"]
