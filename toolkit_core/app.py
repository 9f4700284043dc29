"""Composition root wiring one instance of every core component."""

from __future__ import annotations

import asyncio
import logging
import os

from .chat.abstract import TransportFactory
from .chat.connection_manager import ConnectionManager
from .chat.fan_out import EventFanOut
from .chat.message_log import MessageLog
from .commands.builtin import hello_world_command
from .commands.registry import CommandRegistry
from .config.core import load_settings, resolve_settings_path
from .config.model import ChannelSettings
from .config.watcher import SettingsWatcher
from .constants import DEFAULT_VIEWERS_FILE, MAIN_LOOP_TICK_SECONDS
from .logging_config import LoggerConfigurator
from .scheduler.main_loop import MainLoopDispatchQueue
from .viewers.listener import ViewerListener
from .viewers.registry import ViewerRegistry
from .viewers.store import ViewerStore
from .viewers.tracker import ViewerTracker

# Settings whose change requires a fresh connection
CONNECTION_FIELDS = frozenset({"channel_username", "bot_username", "oauth_token"})


class ToolkitApplication:
    """Holds the shared components for one process.

    Nothing here is global: hosts build one application and pass its parts
    (``fan_out`` for listeners, ``commands`` for command definitions,
    ``connection`` for chat control) to whatever needs them.
    """

    def __init__(
        self,
        settings: ChannelSettings,
        settings_file: str | None = None,
        viewers_file: str | None = None,
        transport_factory: TransportFactory | None = None,
        logger_configurator: LoggerConfigurator | None = None,
    ) -> None:
        self.settings = settings
        self.settings_file = settings_file
        self.logger_configurator = logger_configurator
        self.dispatch_queue = MainLoopDispatchQueue()
        self.fan_out = EventFanOut(settings)
        self.commands = CommandRegistry(settings.command_identifier)
        self.viewers = ViewerRegistry()
        self.tracker = ViewerTracker()
        self.message_log = MessageLog()
        self.viewer_store = ViewerStore(viewers_file) if viewers_file else None
        self.connection = ConnectionManager(
            settings=settings,
            dispatch_queue=self.dispatch_queue,
            fan_out=self.fan_out,
            commands=self.commands,
            viewers=self.viewers,
            message_log=self.message_log,
            transport_factory=transport_factory,
        )
        self.watcher: SettingsWatcher | None = None
        self._started = False

        self.fan_out.register_listener(ViewerListener(self.viewers, self.tracker))
        self.commands.register(hello_world_command(self.connection.send_chat_message))

    # ------------------------- Construction ------------------------- #
    @classmethod
    def create(
        cls,
        settings_file: str | None = None,
        viewers_file: str | None = None,
        transport_factory: TransportFactory | None = None,
        logger_configurator: LoggerConfigurator | None = None,
    ) -> ToolkitApplication:
        """Load settings from disk (plus environment) and build the application."""
        path = resolve_settings_path(settings_file)
        settings = load_settings(path)
        viewers_path = viewers_file or os.environ.get("TOOLKIT_VIEWERS_FILE", DEFAULT_VIEWERS_FILE)
        logging.debug(f"🧪 Creating application settings={path} viewers={viewers_path}")
        return cls(
            settings,
            settings_file=path,
            viewers_file=viewers_path,
            transport_factory=transport_factory,
            logger_configurator=logger_configurator,
        )

    # --------------------------- Lifecycle -------------------------- #
    def start(self, watch_settings: bool = True) -> None:
        """Load viewers, repair duplicates, watch settings and auto-connect."""
        if self._started:
            return
        self.load_viewers()
        if watch_settings and self.settings_file:
            self.watcher = SettingsWatcher(
                self.settings_file, self.settings, on_reload=self._on_settings_reloaded
            )
            self.watcher.start()
        self.connection.auto_start()
        self._started = True
        logging.info("🚀 Toolkit core started")

    def load_viewers(self) -> int:
        """Load persisted viewers and drop case-insensitive duplicates."""
        if self.viewer_store is None:
            return 0
        self.viewers.load(self.viewer_store.load())
        removed = self.viewers.remove_duplicates()
        if removed:
            self.save_viewers()
        return len(self.viewers)

    def save_viewers(self) -> bool:
        if self.viewer_store is None:
            return False
        return self.viewer_store.save(self.viewers.all())

    def tick(self, max_units: int | None = None) -> int:
        """Run pending main-loop work; hosts call this once per frame."""
        return self.dispatch_queue.tick(max_units)

    async def run(
        self, stop_event: asyncio.Event | None = None, interval: float = MAIN_LOOP_TICK_SECONDS
    ) -> None:
        """Start and pump the dispatch queue until ``stop_event`` is set."""
        stop_event = stop_event or asyncio.Event()
        self.start()
        try:
            await self.dispatch_queue.run(interval, stop_event)
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        logging.info("🔻 Toolkit core shutdown initiated")
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None
        self.connection.shutdown()
        self.dispatch_queue.tick()
        self.save_viewers()
        self._started = False
        logging.info("✅ Toolkit core shutdown complete")

    def _on_settings_reloaded(self, changed: list[str]) -> None:
        # Called on the watchdog thread; defer to the main loop
        self.dispatch_queue.enqueue("settings_reloaded", lambda: self._apply_settings(changed))

    def _apply_settings(self, changed: list[str]) -> None:
        if "debug_logging" in changed and self.logger_configurator is not None:
            self.logger_configurator.set_debug(self.settings.debug_logging)
        if "command_identifier" in changed:
            self.commands.command_identifier = self.settings.command_identifier
        if CONNECTION_FIELDS.intersection(changed) and self.connection.transport is not None:
            logging.info("🔄 Connection settings changed, reconnecting")
            self.connection.start()
