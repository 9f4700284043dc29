"""Commands shipped with the core."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..chat.messages import CommandContext
from .definition import ChatCommandDefinition

HELLO_WORLD_REPLY = "Hello World!"


def hello_world_command(send: Callable[[str], Any]) -> ChatCommandDefinition:
    """``helloworld``: replies in chat, handy to check the bot is alive."""

    def _handler(context: CommandContext | None) -> None:
        send(HELLO_WORLD_REPLY)

    return ChatCommandDefinition(
        command_text="helloworld",
        handler=_handler,
        description="Replies with Hello World!",
    )
