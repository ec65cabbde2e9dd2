from __future__ import annotations

import os
import shutil
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, TypeVar

import typer

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SelectorOption[T]:
    value: T
    label: str
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class SelectorResult[T]:
    action: Literal["select", "cancel"]
    value: T | None
    index: int


def is_interactive_terminal() -> bool:
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _color_enabled() -> bool:
    if not is_interactive_terminal():
        return False
    if os.getenv("NO_COLOR") is not None:
        return False
    term = os.getenv("TERM", "")
    return term.lower() != "dumb"


def _paint(text: str, *codes: str) -> str:
    if not _color_enabled() or not codes:
        return text
    return f"\x1b[{';'.join(codes)}m{text}\x1b[0m"


def _read_key() -> str:
    if os.name == "nt":
        import msvcrt

        ch = msvcrt.getwch()
        if ch in ("\r", "\n"):
            return "enter"
        if ch in ("q", "Q", "\x03"):
            return "cancel"
        if ch in ("\x00", "\xe0"):
            ch2 = msvcrt.getwch()
            if ch2 == "H":
                return "up"
            if ch2 == "P":
                return "down"
        return "other"

    import termios
    import tty

    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        ch = sys.stdin.read(1)
        if ch in ("\r", "\n"):
            return "enter"
        if ch in ("q", "Q", "\x03"):
            return "cancel"
        if ch == "\x1b":
            c2 = sys.stdin.read(1)
            if c2 == "[":
                c3 = sys.stdin.read(1)
                if c3 == "A":
                    return "up"
                if c3 == "B":
                    return "down"
            return "cancel"
        return "other"
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def _cols() -> int:
    return max(40, min(120, shutil.get_terminal_size((80, 24)).columns))


def _render(*, title: str, options: Sequence[SelectorOption[object]], index: int) -> None:
    print(_paint(title, "1", "96"))
    width = _cols() - 6
    for i, opt in enumerate(options):
        label = opt.label if opt.detail is None else f"{opt.label}  {opt.detail}"
        label = _truncate(label, width)
        if i == index:
            print(_paint(f"  > {label}", "1", "30", "46"))
        else:
            print(f"    {label}")
    sys.stdout.flush()


def _rewind(lines: int) -> None:
    # Move back over the previous rendering and clear it.
    sys.stdout.write(f"\x1b[{lines}F\x1b[J")


def select_one[T](
    *,
    title: str,
    options: Sequence[SelectorOption[T]],
    initial_index: int = 0,
) -> SelectorResult[T]:
    if not options:
        raise ValueError("selector requires at least one option")
    if not is_interactive_terminal():
        raise RuntimeError("interactive selector requires a TTY")

    idx = max(0, min(initial_index, len(options) - 1))
    casted: list[SelectorOption[object]] = [
        SelectorOption(value=o.value, label=o.label, detail=o.detail) for o in options
    ]
    rendered = False

    while True:
        if rendered:
            _rewind(len(options) + 1)
        _render(title=title, options=casted, index=idx)
        rendered = True
        key = _read_key()

        if key == "up":
            idx = (idx - 1) % len(options)
            continue
        if key == "down":
            idx = (idx + 1) % len(options)
            continue
        if key == "enter":
            return SelectorResult(action="select", value=options[idx].value, index=idx)
        if key == "cancel":
            return SelectorResult(action="cancel", value=None, index=idx)


class TerminalPrompter:
    """``PromptProtocol`` for a human at a terminal.

    Uses the arrow-key selector on a TTY. Without one (piped input, CI) it
    falls back to typer's line prompts, so answers can be fed on stdin.
    """

    def confirm(self, question: str) -> bool:
        if not is_interactive_terminal():
            return typer.confirm(question, default=False)

        # No first, so a stray Enter never agrees to anything.
        picked = select_one(
            title=question,
            options=[SelectorOption(value=False, label="No"), SelectorOption(value=True, label="Yes")],
        )
        return picked.action == "select" and picked.value is True

    def choose(self, message: str, options: Sequence[str]) -> str | None:
        if not is_interactive_terminal():
            for i, opt in enumerate(options, start=1):
                typer.echo(f"  {i}) {opt}")
            raw = typer.prompt(message, default="1")
            try:
                index = int(raw) - 1
            except ValueError:
                return raw if raw in options else None
            if 0 <= index < len(options):
                return options[index]
            return None

        picked = select_one(
            title=message,
            options=[SelectorOption(value=opt, label=opt) for opt in options],
        )
        if picked.action != "select":
            return None
        return picked.value

    def ask_text(self, message: str) -> str:
        text: str = typer.prompt(message, default="", show_default=False)
        return text.strip()
