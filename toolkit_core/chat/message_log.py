from __future__ import annotations

import threading
from collections import deque

from ..constants import CHAT_LOG_CAPACITY, WHISPER_LOG_CAPACITY
from .messages import ChatMessage, WhisperMessage


class MessageLog:
    """Most recent chat messages and whispers, for display only.

    Two bounded buffers; when full, the oldest entry is evicted. Nothing is
    persisted.
    """

    def __init__(
        self, chat_capacity: int = CHAT_LOG_CAPACITY, whisper_capacity: int = WHISPER_LOG_CAPACITY
    ) -> None:
        self._chat: deque[ChatMessage] = deque(maxlen=chat_capacity)
        self._whispers: deque[WhisperMessage] = deque(maxlen=whisper_capacity)
        self._lock = threading.Lock()

    def log_chat(self, message: ChatMessage) -> None:
        with self._lock:
            self._chat.append(message)

    def log_whisper(self, whisper: WhisperMessage) -> None:
        with self._lock:
            self._whispers.append(whisper)

    def last_chat_messages(self) -> list[ChatMessage]:
        """Oldest first."""
        with self._lock:
            return list(self._chat)

    def last_whispers(self) -> list[WhisperMessage]:
        with self._lock:
            return list(self._whispers)

    def clear(self) -> None:
        with self._lock:
            self._chat.clear()
            self._whispers.clear()
