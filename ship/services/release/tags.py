"""Version tags: ordering, next-tag suggestions, pre-release detection.

Tags look like ``v1.5.2`` but are not required to be strict semver: the
project has tags such as ``v0.10`` (two fields) and ``v1.0.0-rc1``. Fields
are compared numerically, one at a time, so ``v0.9`` sorts before ``v0.10``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

DEFAULT_TAG = "v0.0.0"
PRERELEASE_MARKERS: tuple[str, ...] = ("-alpha", "-beta", "-pre", "-rc")

_LEADING_DIGITS = re.compile(r"^\d+")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    """Sort key of a tag.

    ``stable`` ranks a release above its own pre-releases
    (``v1.2.0-rc1`` < ``v1.2.0``).
    """

    major: int
    minor: int
    patch: int
    stable: bool = True


def is_prerelease(tag: str) -> bool:
    """True if the tag names a pre-release (alpha, beta, pre, rc)."""
    return any(marker in tag for marker in PRERELEASE_MARKERS)


def display_name(tag: str) -> str:
    """Release title for a tag: the tag without its ``v`` prefix."""
    return tag.removeprefix("v")


def _fields(tag: str) -> list[str]:
    parts = tag.lstrip("v").split(".")
    while len(parts) < 3:
        parts.append("0")
    return parts


def _numeric(field: str) -> int:
    m = _LEADING_DIGITS.match(field)
    return int(m.group(0)) if m else 0


def parse_version(tag: str) -> Version:
    parts = _fields(tag)
    return Version(
        major=_numeric(parts[0]),
        minor=_numeric(parts[1]),
        patch=_numeric(parts[2]),
        stable=not is_prerelease(tag),
    )


def current_tag(tags: Iterable[str]) -> str:
    """Highest tag by version order, or ``v0.0.0`` when there are none."""
    names = [t.strip() for t in tags if t.strip()]
    if not names:
        return DEFAULT_TAG
    return max(names, key=parse_version)


def suggest_next(current: str) -> list[str]:
    """Candidate tags following ``current``, patch bump first.

    Each candidate increments one of the three version fields and zeroes the
    fields after it. A field that is not a plain number gets no candidate.
    A zero patch is left off the label (``v0.10`` rather than ``v0.10.0``).
    """
    parts = _fields(current)[:3]
    prefix = "v" if current.startswith("v") else ""

    suggestions: list[str] = []
    for i in range(len(parts) - 1, -1, -1):
        if not (parts[i].isascii() and parts[i].isdigit()):
            continue
        bumped = list(parts)
        bumped[i] = str(int(parts[i]) + 1)
        for j in range(i + 1, len(bumped)):
            bumped[j] = "0"
        if bumped[2] == "0":
            bumped = bumped[:2]
        suggestions.append(prefix + ".".join(bumped))

    return suggestions
