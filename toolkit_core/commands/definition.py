from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..chat.messages import CommandContext
from ..errors.handling import log_error

CommandHandler = Callable[[CommandContext | None], Any]


class CommandOutcome(Enum):
    EXECUTED = "executed"
    NOT_FOUND = "not_found"
    DISABLED = "disabled"
    FORBIDDEN = "forbidden"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self is CommandOutcome.EXECUTED


@dataclass
class ChatCommandDefinition:
    """Declarative chat command.

    Attributes:
        command_text: Keyword matched case-insensitively against the first token.
        handler: Called with the invocation context (None for system invocations).
        enabled: Disabled commands never execute.
        requires_mod: Only moderators or the broadcaster may run it.
        requires_broadcaster: Only the broadcaster may run it.
        description: Free text shown in command listings.
    """

    command_text: str
    handler: CommandHandler
    enabled: bool = True
    requires_mod: bool = False
    requires_broadcaster: bool = False
    description: str = ""

    @property
    def keyword(self) -> str:
        return self.command_text.strip().lower()

    def check(self, context: CommandContext | None) -> CommandOutcome:
        """Decide whether ``context`` may run this command, without running it.

        A None context is a system invocation and skips the role checks.
        """
        if not self.enabled:
            return CommandOutcome.DISABLED
        if context is None:
            if self.requires_mod or self.requires_broadcaster:
                # Privileged command run with no identity; kept for system callers
                logging.warning(
                    f"🛂 Role check bypassed for command={self.keyword} (no invoking context)"
                )
            return CommandOutcome.EXECUTED
        if self.requires_broadcaster and not context.is_broadcaster:
            return CommandOutcome.FORBIDDEN
        if self.requires_mod and not (context.is_broadcaster or context.is_moderator):
            return CommandOutcome.FORBIDDEN
        return CommandOutcome.EXECUTED

    def can_execute(self, context: CommandContext | None) -> bool:
        return self.check(context).ok

    def execute(self, context: CommandContext | None) -> CommandOutcome:
        """Run the handler if permitted; handler errors are logged, never raised."""
        outcome = self.check(context)
        if not outcome.ok:
            logging.debug(
                f"🚫 Command not executed command={self.keyword} outcome={outcome.value} "
                f"user={context.username if context else '-'}"
            )
            return outcome
        try:
            self.handler(context)
        except Exception as e:  # noqa: BLE001
            log_error(
                "Command handler failed",
                e,
                context={"command": self.keyword, "user": context.username if context else "-"},
            )
            return CommandOutcome.FAILED
        return CommandOutcome.EXECUTED

    def try_execute(self, context: CommandContext | None) -> bool:
        """Boolean form of ``execute``: True only when the handler ran cleanly."""
        return self.execute(context).ok


def try_execute(
    definition: ChatCommandDefinition | None, context: CommandContext | None
) -> CommandOutcome:
    """Execute a resolved definition; a failed lookup yields ``NOT_FOUND``."""
    if definition is None:
        return CommandOutcome.NOT_FOUND
    return definition.execute(context)
