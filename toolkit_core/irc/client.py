"""Twitch IRC-over-WebSocket transport running on its own network thread."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import time

import aiohttp

from ..chat.abstract import ChatTransport
from ..config.model import ConnectionCredentials, normalize_channel
from ..constants import (
    TRANSPORT_CONNECT_MAX_ATTEMPTS,
    TRANSPORT_CONNECT_TIMEOUT_SECONDS,
    TRANSPORT_RETRY_MAX_BACKOFF_SECONDS,
    TRANSPORT_STOP_TIMEOUT_SECONDS,
    TWITCH_IRC_WS_URL,
)
from ..errors.handling import log_error, retry_async
from ..errors.internal import ConfigurationError, TransportError
from .dispatcher import IRCDispatcher
from .events import TransportEvent
from .models import ConnectionState


class TwitchChatTransport(ChatTransport):  # pylint: disable=too-many-instance-attributes
    """Default ``ChatTransport`` talking to Twitch chat over a WebSocket.

    ``connect`` starts a daemon thread hosting a private asyncio loop and
    returns immediately. All events are emitted from that thread. Connection
    attempts are retried with exponential backoff; when they are exhausted a
    ``CONNECTION_ERROR`` event carries the final exception.
    """

    def __init__(self, url: str = TWITCH_IRC_WS_URL, command_identifier: str = "!"):
        super().__init__()
        self.url = url
        self.command_identifier = command_identifier
        self.credentials: ConnectionCredentials | None = None
        self.channel = ""
        self.state = ConnectionState.DISCONNECTED
        self.joined_channels: set[str] = set()
        self.last_server_activity = 0.0
        self.auth_failed = False
        self.reconnect_requested = False
        self.dispatcher = IRCDispatcher(self)
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._was_online = False
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

    @property
    def username(self) -> str | None:
        return self.credentials.username if self.credentials else None

    @property
    def is_connected(self) -> bool:
        return self.state.is_online

    def set_state(self, new_state: ConnectionState) -> None:
        if self.state != new_state:
            logging.debug(
                f"🔀 Transport state {self.state.name} -> {new_state.name} user={self.username}"
            )
            self.state = new_state
            if new_state.is_online:
                self._was_online = True

    def initialize(self, credentials: ConnectionCredentials, channel: str) -> None:
        self.credentials = credentials
        self.channel = normalize_channel(channel)

    def get_joined_channel(self, name: str) -> str | None:
        channel = normalize_channel(name)
        return channel if channel in self.joined_channels else None

    # ------------------------------------------------------------------ #
    # Lifecycle (called from any thread)
    # ------------------------------------------------------------------ #
    def connect(self) -> None:
        if self.credentials is None or not self.channel:
            raise ConfigurationError("Transport used before initialize()")
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                logging.warning(f"⚠️ Transport already running user={self.username}")
                return
            self.auth_failed = False
            self.reconnect_requested = False
            self._was_online = False
            stop_event = threading.Event()
            self._stop_event = stop_event
            loop = asyncio.new_event_loop()
            self._loop = loop
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(loop, stop_event),
                name=f"twitch-chat-{self.username}",
                daemon=True,
            )
            self.set_state(ConnectionState.CONNECTING)
            self._thread.start()

    def disconnect(self, wait: bool = False) -> None:
        """Stop the network thread; returns at once unless ``wait`` is set."""
        with self._lock:
            thread, loop, stop_event = self._thread, self._loop, self._stop_event
            self._thread = None
        if thread is None or loop is None:
            return
        stop_event.set()
        self.set_state(ConnectionState.CLOSING)
        if not loop.is_closed():
            try:
                loop.call_soon_threadsafe(self._cancel_tasks, loop)
            except RuntimeError:
                # loop closed between the check and the call
                pass
        if wait and thread is not threading.current_thread():
            thread.join(TRANSPORT_STOP_TIMEOUT_SECONDS)
            if thread.is_alive():
                logging.warning(f"⚠️ Transport thread did not stop in time user={self.username}")

    def send_message(self, channel: str, text: str) -> concurrent.futures.Future[bool] | None:
        loop = self._loop
        if loop is None or loop.is_closed() or not self.is_connected:
            logging.debug(f"📭 Send skipped, transport offline user={self.username}")
            return None
        return asyncio.run_coroutine_threadsafe(
            self._send_privmsg(normalize_channel(channel), text), loop
        )

    # ------------------------------------------------------------------ #
    # Network thread
    # ------------------------------------------------------------------ #
    def _run_loop(self, loop: asyncio.AbstractEventLoop, stop_event: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self._main(stop_event))
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    @staticmethod
    def _cancel_tasks(loop: asyncio.AbstractEventLoop) -> None:
        for task in asyncio.all_tasks(loop):
            task.cancel()

    async def _main(self, stop_event: threading.Event) -> None:
        if stop_event.is_set():
            self.set_state(ConnectionState.DISCONNECTED)
            return
        try:
            async with aiohttp.ClientSession() as session:
                await self._session_loop(session)
        except asyncio.CancelledError:
            logging.debug(f"🛑 Transport task cancelled user={self.username}")
        except Exception as e:  # noqa: BLE001
            log_error("Transport crashed", e, context={"user": self.username})
            self.events.emit(TransportEvent.CONNECTION_ERROR, e)
        finally:
            self._ws = None
            self.joined_channels.clear()
            was_online = self._was_online
            self.set_state(ConnectionState.DISCONNECTED)
            if was_online:
                self.events.emit(TransportEvent.DISCONNECTED, self.username)

    async def _session_loop(self, session: aiohttp.ClientSession) -> None:
        while True:
            self.reconnect_requested = False
            try:
                self._ws = await retry_async(
                    lambda: self._open(session),
                    f"Twitch chat connect user={self.username}",
                    max_attempts=TRANSPORT_CONNECT_MAX_ATTEMPTS,
                    max_backoff=TRANSPORT_RETRY_MAX_BACKOFF_SECONDS,
                )
            except TransportError as e:
                log_error("Twitch chat connection failed", e, context={"user": self.username})
                self.events.emit(TransportEvent.CONNECTION_ERROR, e)
                return
            await self._listen(self._ws)
            if not self.reconnect_requested or self.auth_failed:
                return
            logging.info(f"🔄 Reconnecting on server request user={self.username}")

    async def _open(self, session: aiohttp.ClientSession) -> aiohttp.ClientWebSocketResponse:
        if self.credentials is None:
            raise ConfigurationError("Transport opened before initialize()")
        self.set_state(ConnectionState.CONNECTING)
        logging.info(f"🔌 Connecting to Twitch chat user={self.username} channel={self.channel}")
        ws = await asyncio.wait_for(
            session.ws_connect(self.url), timeout=TRANSPORT_CONNECT_TIMEOUT_SECONDS
        )
        self._ws = ws
        self.set_state(ConnectionState.AUTHENTICATING)
        await self.send_line(f"PASS {self.credentials.token}")
        await self.send_line(f"NICK {self.credentials.username}")
        await self.send_line("CAP REQ :twitch.tv/tags twitch.tv/commands twitch.tv/membership")
        await self.send_line(f"JOIN #{self.channel}")
        return ws

    async def _listen(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        buffer = ""
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                buffer = await self.dispatcher.process_incoming_data(buffer, msg.data)
                if self.auth_failed or self.reconnect_requested:
                    break
            elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                logging.warning(
                    f"⚠️ Chat socket closed user={self.username} type={msg.type.name}"
                )
                break
        if not ws.closed:
            await ws.close()
        self.joined_channels.clear()

    async def send_line(self, line: str) -> None:
        ws = self._ws
        if ws is None or ws.closed:
            raise TransportError("Chat socket is not open", data={"user": self.username})
        if not line.startswith("PASS"):
            logging.debug(f"📤 IRC send user={self.username} line={line}")
        await ws.send_str(f"{line}\r\n")
        self.last_server_activity = time.monotonic()

    async def _send_privmsg(self, channel: str, text: str) -> bool:
        try:
            await self.send_line(f"PRIVMSG #{channel} :{text}")
            return True
        except (TransportError, aiohttp.ClientError, ConnectionError) as e:
            log_error("Chat send failed", e, context={"user": self.username, "channel": channel})
            return False
