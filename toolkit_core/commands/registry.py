from __future__ import annotations

import logging
import threading

from .definition import ChatCommandDefinition
from .filter import parse


class CommandRegistry:
    """Keyword to definition lookup, case-insensitive.

    Populated explicitly by whoever owns the commands; there is no discovery.
    """

    def __init__(self, command_identifier: str = "!") -> None:
        self.command_identifier = command_identifier
        self._definitions: dict[str, ChatCommandDefinition] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, keyword: object) -> bool:
        return isinstance(keyword, str) and keyword.strip().lower() in self._definitions

    def register(self, definition: ChatCommandDefinition) -> bool:
        """Add ``definition``; False if the keyword is empty or already taken."""
        keyword = definition.keyword
        if not keyword:
            logging.warning("⚠️ Refusing to register a command with an empty keyword")
            return False
        with self._lock:
            if keyword in self._definitions:
                logging.warning(f"⚠️ Duplicate command keyword={keyword}")
                return False
            self._definitions[keyword] = definition
        logging.debug(f"🧩 Command registered keyword={keyword}")
        return True

    def unregister(self, keyword: str) -> bool:
        with self._lock:
            return self._definitions.pop(keyword.strip().lower(), None) is not None

    def get(self, keyword: str) -> ChatCommandDefinition | None:
        with self._lock:
            return self._definitions.get(keyword.strip().lower())

    def definitions(self) -> list[ChatCommandDefinition]:
        with self._lock:
            return list(self._definitions.values())

    def resolve(self, command_text: str) -> ChatCommandDefinition | None:
        """Find the definition named by the first token of ``command_text``.

        A leading command identifier on that token is ignored, so ``!Hello``
        and ``hello`` resolve alike.
        """
        tokens = parse(command_text)
        if not tokens:
            return None
        keyword = tokens[0]
        if keyword.startswith(self.command_identifier):
            keyword = keyword[len(self.command_identifier):]
        if not keyword:
            return None
        return self.get(keyword)

    @staticmethod
    def arguments(command_text: str) -> list[str]:
        """Tokens after the keyword."""
        return parse(command_text)[1:]
