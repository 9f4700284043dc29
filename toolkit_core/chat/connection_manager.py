"""ConnectionManager: owns the chat transport and routes its events onto the main loop."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from collections.abc import Callable
from typing import Any

from ..commands.definition import CommandOutcome, try_execute
from ..commands.registry import CommandRegistry
from ..config.model import ChannelSettings, ConnectionCredentials
from ..errors.handling import log_error
from ..errors.internal import AuthenticationError, TransportError
from ..irc.events import TransportEvent
from ..logging_config import log_structured_error
from ..rate.sender import RateLimitedSender
from ..scheduler.main_loop import MainLoopDispatchQueue
from ..viewers.registry import ViewerRegistry
from .abstract import ChatTransport, TransportFactory
from .fan_out import EventFanOut, MessageCategory
from .message_log import MessageLog
from .messages import (
    ChannelPresence,
    ChatCommand,
    ChatMessage,
    CommandContext,
    RaidNotice,
    SubscriberNotice,
    UserBan,
    WhisperCommand,
    WhisperMessage,
)


def default_transport_factory(settings: ChannelSettings) -> TransportFactory:
    def _factory() -> ChatTransport:
        from ..irc.client import TwitchChatTransport

        return TwitchChatTransport(command_identifier=settings.command_identifier)

    return _factory


class ConnectionManager:
    """Owns at most one chat transport and turns its events into main-loop work.

    Transport handlers run on the network thread and only enqueue a named
    unit on the dispatch queue. Each unit captures the transport that raised
    it and becomes a no-op if that transport has since been replaced, so a
    reconnect never delivers one inbound message twice.

    Failures (bad credentials, refused connections, rejected logins, drops)
    are logged; nothing here raises into the caller or the transport thread.
    """

    def __init__(
        self,
        settings: ChannelSettings,
        dispatch_queue: MainLoopDispatchQueue,
        fan_out: EventFanOut,
        commands: CommandRegistry,
        viewers: ViewerRegistry,
        message_log: MessageLog | None = None,
        transport_factory: TransportFactory | None = None,
        sender: RateLimitedSender | None = None,
    ) -> None:
        self.settings = settings
        self.dispatch_queue = dispatch_queue
        self.fan_out = fan_out
        self.commands = commands
        self.viewers = viewers
        self.message_log = message_log or MessageLog()
        self.transport_factory = transport_factory or default_transport_factory(settings)
        self.transport: ChatTransport | None = None
        self.sender = sender or RateLimitedSender(
            transport_provider=lambda: self.transport,
            channel_provider=lambda: self.settings.channel_username,
        )
        self._credentials: ConnectionCredentials | None = None
        self._subscriptions: list[tuple[TransportEvent, Callable[[Any], None]]] = []
        self._lock = threading.RLock()
        self._outbound = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="chat-outbound"
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    @property
    def is_connected(self) -> bool:
        transport = self.transport
        return transport is not None and transport.is_connected

    @property
    def credentials(self) -> ConnectionCredentials | None:
        """Credentials of the last connect attempt that passed validation."""
        return self._credentials

    def connect(self, credentials: ConnectionCredentials | None = None) -> bool:
        """Replace any existing transport with a fresh one and start connecting.

        Args:
            credentials: Credentials to use; built from settings when omitted.

        Returns:
            True if a transport was created and asked to connect. False when
            validation failed (no transport is created) or the transport
            refused to start.
        """
        creds = credentials or self.settings.credentials()
        reason = creds.validation_error()
        if reason is None and not self.settings.channel_username:
            reason = "channel name is empty"
        if reason is not None:
            log_structured_error(
                "config",
                f"Connect aborted: {reason}",
                context={"user": creds.username or "-"},
                level=logging.WARNING,
            )
            return False

        with self._lock:
            self._teardown()
            try:
                transport = self.transport_factory()
                transport.initialize(creds, self.settings.channel_username)
            except Exception as e:  # noqa: BLE001
                log_error("Transport construction failed", e, context={"user": creds.username})
                return False
            self._subscribe(transport)
            self.transport = transport
            self._credentials = creds

        try:
            transport.connect()
        except Exception as e:  # noqa: BLE001
            log_error("Transport connect failed", e, context={"user": creds.username})
            return False
        logging.info(
            f"🔌 Connecting user={creds.username} channel={self.settings.channel_username}"
        )
        return True

    def disconnect(self) -> bool:
        """Ask the live transport to disconnect; safe to call repeatedly.

        Returns:
            False if there was no transport or its disconnect raised.
        """
        transport = self.transport
        if transport is None:
            logging.debug("🔌 Disconnect requested with no transport")
            return False
        try:
            transport.disconnect()
        except Exception as e:  # noqa: BLE001
            log_error("Transport disconnect failed", e)
            return False
        logging.info("🔌 Disconnect requested")
        return True

    def reconnect(self) -> bool:
        """Disconnect, then connect again with the last known credentials."""
        logging.info("🔄 Reconnecting to chat")
        try:
            self.disconnect()
        except Exception as e:  # noqa: BLE001
            log_error("Disconnect before reconnect failed, continuing", e, level=logging.WARNING)
        return self.connect(self._credentials)

    def start(self) -> bool:
        """Connect with credentials from the current settings."""
        return self.connect(self.settings.credentials())

    def auto_start(self) -> bool:
        """Connect only when settings ask for it and credentials are present."""
        if not self.settings.can_connect_on_startup():
            logging.info("⏸️ Auto-connect disabled or credentials missing")
            return False
        return self.start()

    def shutdown(self) -> None:
        with self._lock:
            transport = self.transport
            self._teardown()
            self.transport = None
        if transport is not None:
            logging.debug("🔌 Transport released on shutdown")
        self._outbound.shutdown(wait=True, cancel_futures=True)

    def _teardown(self) -> None:
        """Unsubscribe and disconnect the current transport (caller holds the lock)."""
        transport = self.transport
        if transport is None:
            return
        for event, handler in self._subscriptions:
            transport.events.unsubscribe(event, handler)
        self._subscriptions.clear()
        try:
            transport.disconnect()
        except Exception as e:  # noqa: BLE001
            log_error("Old transport disconnect failed", e, level=logging.WARNING)
        self.transport = None

    # ------------------------------------------------------------------ #
    # Outbound
    # ------------------------------------------------------------------ #
    def send_chat_message(self, text: str) -> concurrent.futures.Future[bool] | None:
        """Queue ``text`` for the outbound worker; never blocks the caller.

        Returns:
            Future resolving to the sender's result, or None after shutdown.
        """
        try:
            return self._outbound.submit(self.sender.send, text)
        except RuntimeError as e:
            log_error("Outbound message rejected", e, level=logging.WARNING)
            return None

    # ------------------------------------------------------------------ #
    # Transport events (network thread)
    # ------------------------------------------------------------------ #
    def _subscribe(self, transport: ChatTransport) -> None:
        queued: dict[TransportEvent, Callable[[Any], None]] = {
            TransportEvent.JOINED_CHANNEL: self._on_joined_channel,
            TransportEvent.MESSAGE_RECEIVED: self._on_message,
            TransportEvent.WHISPER_RECEIVED: self._on_whisper,
            TransportEvent.CHAT_COMMAND_RECEIVED: self._on_chat_command,
            TransportEvent.WHISPER_COMMAND_RECEIVED: self._on_whisper_command,
            TransportEvent.USER_BANNED: self._on_user_banned,
            TransportEvent.NEW_SUBSCRIBER: self._on_subscription,
            TransportEvent.RE_SUBSCRIBER: self._on_subscription,
            TransportEvent.GIFTED_SUBSCRIPTION: self._on_subscription,
            TransportEvent.RAID_NOTIFICATION: self._on_raid,
            TransportEvent.USER_JOINED: self._on_user_joined,
            TransportEvent.USER_LEFT: self._on_user_left,
        }
        immediate: dict[TransportEvent, Callable[[Any], None]] = {
            TransportEvent.CONNECTED: self._log_connected,
            TransportEvent.CONNECTION_ERROR: self._log_connection_error,
            TransportEvent.INCORRECT_LOGIN: self._log_incorrect_login,
            TransportEvent.DISCONNECTED: self._log_disconnected,
        }
        for event, unit in queued.items():
            handler = self._make_queued_handler(transport, event, unit)
            transport.events.subscribe(event, handler)
            self._subscriptions.append((event, handler))
        for event, log_handler in immediate.items():
            transport.events.subscribe(event, log_handler)
            self._subscriptions.append((event, log_handler))

    def _make_queued_handler(
        self,
        transport: ChatTransport,
        event: TransportEvent,
        unit: Callable[[Any], None],
    ) -> Callable[[Any], None]:
        def handler(payload: Any) -> None:
            self.dispatch_queue.enqueue(
                event.value, lambda: self._run_if_current(transport, event, unit, payload)
            )

        return handler

    def _run_if_current(
        self,
        transport: ChatTransport,
        event: TransportEvent,
        unit: Callable[[Any], None],
        payload: Any,
    ) -> None:
        if transport is not self.transport:
            logging.debug(f"🗑️ Dropped stale event={event.value} from replaced transport")
            return
        unit(payload)

    def _log_connected(self, username: Any) -> None:
        logging.info(f"✅ Connected to chat user={username}")

    def _log_connection_error(self, error: Any) -> None:
        if isinstance(error, BaseException):
            log_error("Chat connection error", error, level=logging.WARNING)
        else:
            log_structured_error(
                "network", f"Chat connection error: {error}", level=logging.WARNING
            )

    def _log_incorrect_login(self, notice: Any) -> None:
        log_error(
            "Chat login rejected, check bot username and oauth token",
            AuthenticationError(str(notice or "login failed")),
        )

    def _log_disconnected(self, username: Any) -> None:
        log_structured_error(
            "network",
            f"Disconnected from chat user={username}",
            exception=TransportError("disconnected"),
            level=logging.WARNING,
        )

    # ------------------------------------------------------------------ #
    # Main-loop units
    # ------------------------------------------------------------------ #
    def _on_joined_channel(self, channel: str) -> None:
        logging.info(f"📺 Joined channel={channel}")
        if self.settings.send_message_on_join and self.settings.greeting_message:
            self.send_chat_message(self.settings.greeting_message)

    def _on_message(self, message: ChatMessage) -> None:
        logging.debug(f"💬 {message.username}: {message.text}")
        if message.bits > 0:
            logging.info(f"💎 Bits received user={message.username} bits={message.bits}")
        self.message_log.log_chat(message)
        self.fan_out.deliver_chat_message(message)

    def _on_whisper(self, whisper: WhisperMessage) -> None:
        if not self.fan_out.allows(MessageCategory.WHISPER):
            logging.debug(f"🔇 Whisper ignored, whispers disabled user={whisper.username}")
            return
        logging.debug(f"🤫 Whisper from {whisper.username}: {whisper.text}")
        self.message_log.log_whisper(whisper)
        self.fan_out.deliver_whisper(whisper)

    def _execute_command(self, command_text: str, context: CommandContext) -> CommandOutcome:
        definition = self.commands.resolve(command_text)
        context.arguments = self.commands.arguments(command_text)
        outcome = try_execute(definition, context)
        if outcome is not CommandOutcome.NOT_FOUND:
            logging.info(
                f"⚙️ Command {outcome.value} command={definition.keyword if definition else '-'} "
                f"user={context.username} source={context.source}"
            )
        return outcome

    def _on_chat_command(self, command: ChatCommand) -> None:
        if not self.fan_out.allows(MessageCategory.CHAT_COMMAND):
            logging.debug(f"🔇 Chat command ignored, whispers forced user={command.username}")
            return
        message = command.message
        context = CommandContext(
            username=message.username,
            is_moderator=message.is_moderator,
            is_broadcaster=message.is_broadcaster,
            source="chat",
            command_text=command.command_text,
        )
        self._execute_command(command.command_text, context)
        self.fan_out.deliver_chat_command(command)

    def _on_whisper_command(self, command: WhisperCommand) -> None:
        if not self.fan_out.allows(MessageCategory.WHISPER_COMMAND):
            logging.debug(f"🔇 Whisper command ignored, whispers disabled user={command.username}")
            return
        # Whispers carry no channel roles; use what chat last told us
        viewer = self.viewers.get(command.username)
        context = CommandContext(
            username=command.username,
            is_moderator=bool(viewer and viewer.is_moderator),
            is_broadcaster=bool(viewer and viewer.is_broadcaster),
            source="whisper",
            command_text=command.command_text,
        )
        self._execute_command(command.command_text, context)
        self.fan_out.deliver_whisper_command(command)

    def _on_user_banned(self, ban: UserBan) -> None:
        if ban.is_timeout:
            logging.info(f"⏳ User timed out user={ban.username} seconds={ban.duration_seconds}")
        else:
            logging.info(f"🔨 User banned user={ban.username} channel={ban.channel}")

    def _on_subscription(self, notice: SubscriberNotice) -> None:
        if notice.kind in ("subgift", "anonsubgift"):
            logging.info(
                f"🎁 Gifted subscription from={notice.username or 'anonymous'} to={notice.recipient}"
            )
        else:
            logging.info(
                f"⭐ Subscription kind={notice.kind} user={notice.username} months={notice.cumulative_months}"
            )

    def _on_raid(self, raid: RaidNotice) -> None:
        logging.info(f"🚀 Raid from={raid.raider} viewers={raid.viewer_count}")

    def _on_user_joined(self, presence: ChannelPresence) -> None:
        logging.debug(f"➡️ User joined user={presence.username} channel={presence.channel}")

    def _on_user_left(self, presence: ChannelPresence) -> None:
        logging.debug(f"⬅️ User left user={presence.username} channel={presence.channel}")
