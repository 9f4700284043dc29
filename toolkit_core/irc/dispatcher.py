"""Decodes IRC lines into transport events."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from ..chat.messages import (
    ChannelPresence,
    ChatCommand,
    RaidNotice,
    SubscriberNotice,
    UserBan,
    WhisperCommand,
)
from .events import TransportEvent
from .models import LOGIN_FAILURE_NOTICES, ConnectionState
from .parser import IRCMessage, build_chat_message, build_whisper, parse_irc_message

if TYPE_CHECKING:  # pragma: no cover
    from .client import TwitchChatTransport

_SUBSCRIPTION_EVENTS = {
    "sub": TransportEvent.NEW_SUBSCRIBER,
    "resub": TransportEvent.RE_SUBSCRIBER,
    "subgift": TransportEvent.GIFTED_SUBSCRIPTION,
    "anonsubgift": TransportEvent.GIFTED_SUBSCRIPTION,
}


class IRCDispatcher:
    def __init__(self, client: TwitchChatTransport):
        self.client = client

    async def process_incoming_data(self, buffer: str, new_data: str) -> str:
        """Append ``new_data`` and handle every complete line.

        Returns:
            The unterminated remainder to carry into the next call.
        """
        buffer += new_data
        self.client.last_server_activity = time.monotonic()
        while "\r\n" in buffer:
            line, buffer = buffer.split("\r\n", 1)
            if line.strip():
                await self._handle_irc_message(line.strip())
        return buffer

    async def _handle_irc_message(self, raw_message: str) -> None:  # noqa: C901
        if raw_message.startswith("PING"):
            await self._handle_ping(raw_message)
            return
        logging.debug(f"📥 IRC raw user={self.client.username} raw={raw_message}")

        parsed = parse_irc_message(raw_message)
        command = parsed.command
        if not command:
            return
        if command == "001":
            self._handle_welcome()
        elif command == "NOTICE":
            self._handle_notice(parsed)
        elif command == "JOIN":
            self._handle_join(parsed)
        elif command == "PART":
            self._handle_part(parsed)
        elif command == "PRIVMSG":
            self._handle_privmsg(parsed)
        elif command == "WHISPER":
            self._handle_whisper(parsed)
        elif command == "CLEARCHAT":
            self._handle_clearchat(parsed)
        elif command == "USERNOTICE":
            self._handle_usernotice(parsed)
        elif command == "RECONNECT":
            logging.info(f"🔄 Server requested reconnect user={self.client.username}")
            self.client.reconnect_requested = True

    async def _handle_ping(self, raw_message: str) -> None:
        server = raw_message.split(":", 1)[1] if ":" in raw_message else "tmi.twitch.tv"
        await self.client.send_line(f"PONG :{server}")

    def _emit(self, event: TransportEvent, payload: object = None) -> None:
        self.client.events.emit(event, payload)

    def _is_self(self, nick: str) -> bool:
        return bool(nick) and nick == (self.client.username or "").lower()

    def _handle_welcome(self) -> None:
        self.client.set_state(ConnectionState.CONNECTED)
        self._emit(TransportEvent.CONNECTED, self.client.username)

    def _handle_notice(self, parsed: IRCMessage) -> None:
        text = (parsed.trailing or "").lower()
        if any(marker in text for marker in LOGIN_FAILURE_NOTICES):
            logging.error(f"🔑 Login rejected user={self.client.username} notice={parsed.trailing}")
            self.client.auth_failed = True
            self._emit(TransportEvent.INCORRECT_LOGIN, parsed.trailing)
            return
        logging.info(f"📢 NOTICE channel={parsed.channel or '-'} text={parsed.trailing}")

    def _handle_join(self, parsed: IRCMessage) -> None:
        channel = parsed.channel
        if not channel:
            return
        if self._is_self(parsed.nick):
            self.client.joined_channels.add(channel)
            self.client.set_state(ConnectionState.JOINED)
            self._emit(TransportEvent.JOINED_CHANNEL, channel)
            return
        self._emit(TransportEvent.USER_JOINED, ChannelPresence(channel=channel, username=parsed.nick))

    def _handle_part(self, parsed: IRCMessage) -> None:
        channel = parsed.channel
        if not channel:
            return
        if self._is_self(parsed.nick):
            self.client.joined_channels.discard(channel)
            return
        self._emit(TransportEvent.USER_LEFT, ChannelPresence(channel=channel, username=parsed.nick))

    def _command_text(self, text: str) -> str | None:
        identifier = self.client.command_identifier
        if len(text) > len(identifier) and text.startswith(identifier):
            return text[len(identifier):].strip() or None
        return None

    def _handle_privmsg(self, parsed: IRCMessage) -> None:
        message = build_chat_message(parsed, self.client.username or "")
        if message is None:
            return
        # Command first: its queued unit must resolve before listeners see the text
        command_text = self._command_text(message.text)
        if command_text:
            self._emit(
                TransportEvent.CHAT_COMMAND_RECEIVED,
                ChatCommand(
                    message=message,
                    command_text=command_text,
                    identifier=self.client.command_identifier,
                ),
            )
        self._emit(TransportEvent.MESSAGE_RECEIVED, message)

    def _handle_whisper(self, parsed: IRCMessage) -> None:
        whisper = build_whisper(parsed)
        if whisper is None:
            return
        command_text = self._command_text(whisper.text)
        if command_text:
            self._emit(
                TransportEvent.WHISPER_COMMAND_RECEIVED,
                WhisperCommand(
                    whisper=whisper,
                    command_text=command_text,
                    identifier=self.client.command_identifier,
                ),
            )
        self._emit(TransportEvent.WHISPER_RECEIVED, whisper)

    def _handle_clearchat(self, parsed: IRCMessage) -> None:
        # CLEARCHAT without a target clears the whole chat; not a ban
        target = (parsed.trailing or "").strip().lower()
        if not target:
            return
        duration = parsed.tags.get("ban-duration")
        self._emit(
            TransportEvent.USER_BANNED,
            UserBan(
                channel=parsed.channel,
                username=target,
                duration_seconds=int(duration) if duration and duration.isdigit() else None,
                reason=parsed.tags.get("ban-reason", ""),
            ),
        )

    def _handle_usernotice(self, parsed: IRCMessage) -> None:
        tags = parsed.tags
        msg_id = tags.get("msg-id", "")
        login = tags.get("login", "").lower()
        if msg_id == "raid":
            self._emit(
                TransportEvent.RAID_NOTIFICATION,
                RaidNotice(
                    channel=parsed.channel,
                    raider=login,
                    display_name=tags.get("msg-param-displayName") or tags.get("display-name", login),
                    viewer_count=_safe_int(tags.get("msg-param-viewerCount")),
                ),
            )
            return
        event = _SUBSCRIPTION_EVENTS.get(msg_id)
        if event is None:
            logging.debug(f"📭 Unhandled USERNOTICE msg_id={msg_id}")
            return
        self._emit(
            event,
            SubscriberNotice(
                channel=parsed.channel,
                username=login,
                kind=msg_id,
                display_name=tags.get("display-name", login),
                cumulative_months=_safe_int(tags.get("msg-param-cumulative-months")),
                plan=tags.get("msg-param-sub-plan", ""),
                text=parsed.trailing or "",
                recipient=tags.get("msg-param-recipient-user-name", ""),
            ),
        )


def _safe_int(value: str | None) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0
