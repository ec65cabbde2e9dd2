"""Operator prompt abstraction.

The release flow asks yes/no questions and lets the operator pick a tag.
Services depend only on ``PromptProtocol``; the terminal implementation
lives in the CLI layer and ``ScriptedPrompter`` replays canned answers in
tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

__all__ = ["PromptProtocol", "ScriptedPrompter"]


class PromptProtocol(Protocol):
    def confirm(self, question: str) -> bool:
        """Ask a No/Yes question; True means Yes."""
        ...

    def choose(self, message: str, options: Sequence[str]) -> str | None:
        """Pick one of ``options``; None means the operator cancelled."""
        ...

    def ask_text(self, message: str) -> str:
        """Ask for free text; an empty string means no answer."""
        ...


def _no_answers() -> list[object]:
    return []


def _no_questions() -> list[str]:
    return []


@dataclass
class ScriptedPrompter:
    """Prompter that pops pre-recorded answers in order.

    ``answers`` holds bools for ``confirm``, strings (or None) for ``choose``
    and strings for ``ask_text``. Running out of answers is a test bug and
    raises ``AssertionError``.
    """

    answers: list[object] = field(default_factory=_no_answers)
    asked: list[str] = field(default_factory=_no_questions)

    def _next(self, question: str) -> object:
        self.asked.append(question)
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {question}")
        return self.answers.pop(0)

    def confirm(self, question: str) -> bool:
        answer = self._next(question)
        if not isinstance(answer, bool):
            raise AssertionError(f"expected bool answer for {question!r}, got {answer!r}")
        return answer

    def choose(self, message: str, options: Sequence[str]) -> str | None:
        answer = self._next(message)
        if answer is None:
            return None
        if not isinstance(answer, str) or answer not in options:
            raise AssertionError(f"answer {answer!r} not among options {list(options)}")
        return answer

    def ask_text(self, message: str) -> str:
        answer = self._next(message)
        if not isinstance(answer, str):
            raise AssertionError(f"expected text answer for {message!r}, got {answer!r}")
        return answer
