"""Serialize-and-throttle sender for outbound chat messages."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from ..chat.abstract import ChatTransport
from ..constants import (
    CHAT_MAX_MESSAGE_LENGTH,
    CHAT_MIN_SEND_DELAY_SECONDS,
    CHAT_TRUNCATION_MARKER,
)
from ..errors.handling import log_error


def truncate_message(text: str, max_length: int = CHAT_MAX_MESSAGE_LENGTH) -> str:
    """Clip ``text`` to ``max_length`` characters, ending in the truncation marker."""
    if len(text) <= max_length:
        return text
    keep = max(max_length - len(CHAT_TRUNCATION_MARKER), 0)
    return text[:keep] + CHAT_TRUNCATION_MARKER


class RateLimitedSender:
    """Sends chat messages no faster than one per ``min_delay`` seconds.

    This is not a token bucket: a caller arriving inside the delay window
    blocks for the remainder, so bursts are flattened to one message per
    window. The last-send timestamp is claimed under the lock right after the
    wait, before the transport call, so concurrent callers queue up behind
    each other instead of sending together.

    Args:
        transport_provider: Returns the live transport, or None.
        channel_provider: Returns the configured channel name.
        min_delay: Minimum seconds between two sends.
        max_length: Longer messages are truncated.
        clock: Monotonic clock, injectable for tests.
        sleep: Blocking sleep, injectable for tests.
    """

    def __init__(
        self,
        transport_provider: Callable[[], ChatTransport | None],
        channel_provider: Callable[[], str],
        min_delay: float = CHAT_MIN_SEND_DELAY_SECONDS,
        max_length: int = CHAT_MAX_MESSAGE_LENGTH,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transport_provider = transport_provider
        self.channel_provider = channel_provider
        self.min_delay = min_delay
        self.max_length = max_length
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_send: float | None = None

    @property
    def last_send(self) -> float | None:
        return self._last_send

    def _target(self) -> tuple[ChatTransport, str] | None:
        transport = self.transport_provider()
        if transport is None or not transport.is_connected:
            return None
        channel = transport.get_joined_channel(self.channel_provider())
        if not channel:
            return None
        return transport, channel

    def send(self, text: str) -> bool:
        """Send ``text`` to the joined channel.

        Returns:
            True if the message was handed to the transport, False when there
            was no live transport or joined channel (a silent no-op) or the
            transport raised.
        """
        if not text:
            return False
        if self._target() is None:
            logging.debug("📭 Outbound message dropped, no joined channel")
            return False
        if len(text) > self.max_length:
            logging.warning(
                f"✂️ Outbound message truncated original_length={len(text)} max={self.max_length}"
            )
            text = truncate_message(text, self.max_length)

        with self._lock:
            now = self._clock()
            if self._last_send is not None:
                remaining = self.min_delay - (now - self._last_send)
                if remaining > 0:
                    self._sleep(remaining)
            self._last_send = self._clock()

        # The transport may have gone away while we waited
        target = self._target()
        if target is None:
            logging.debug("📭 Outbound message dropped after throttle wait")
            return False
        transport, channel = target
        try:
            transport.send_message(channel, text)
        except Exception as e:  # noqa: BLE001
            log_error("Outbound chat message failed", e, context={"channel": channel})
            return False
        logging.debug(f"📤 Chat message sent channel={channel} length={len(text)}")
        return True
