"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)
from .prompt import PromptProtocol, ScriptedPrompter

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "PromptProtocol",
    "RichConsole",
    "ScriptedPrompter",
    "Style",
]
