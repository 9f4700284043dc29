from __future__ import annotations

from abc import ABC, abstractmethod

from .messages import ChatCommand, ChatMessage, WhisperCommand, WhisperMessage


class ChatListener(ABC):
    """Receives decoded chat traffic on the main loop.

    Subclasses must handle chat messages and whispers; command hooks are
    optional and default to doing nothing. Register instances with
    ``EventFanOut.register_listener``.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def parse_message(self, message: ChatMessage) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def parse_whisper(self, whisper: WhisperMessage) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def parse_chat_command(self, command: ChatCommand) -> None:
        _ = command

    def parse_whisper_command(self, command: WhisperCommand) -> None:
        _ = command
