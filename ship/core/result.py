"""Result type for explicit error handling.

Every step of a release can fail in a way the operator must see, so the
code below the CLI never raises for expected failures. It returns
``Ok(value)`` or ``Err(error)`` and lets the caller decide.

Usage:
    def read_tag(repo: Repository) -> Result[str, GitError]:
        ...

    match read_tag(repo):
        case Ok(tag):
            print(f"current tag: {tag}")
        case Err(error):
            print(f"git failed: {error.message}")
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """A successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """A failed result.

    Attributes:
        error: The error value.
    """

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
