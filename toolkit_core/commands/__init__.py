"""Chat command tokenizing, definitions and lookup."""

from .builtin import hello_world_command
from .definition import ChatCommandDefinition, CommandOutcome, try_execute
from .filter import parse
from .registry import CommandRegistry

__all__ = [
    "ChatCommandDefinition",
    "CommandOutcome",
    "CommandRegistry",
    "hello_world_command",
    "parse",
    "try_execute",
]
