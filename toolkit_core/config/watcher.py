"""
Settings file watcher that applies edits to the live settings object
"""

import logging
import os
import threading
from collections.abc import Callable
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..errors.handling import log_error
from .core import load_settings
from .model import ChannelSettings


class SettingsFileHandler(FileSystemEventHandler):
    """Forwards events for one file to the watcher, debounced on mtime."""

    def __init__(self, settings_file: str, watcher: "SettingsWatcher"):
        super().__init__()
        self.settings_file = os.path.abspath(settings_file)
        self.watcher = watcher
        self.last_modified = 0.0

    def _should_process(self) -> bool:
        try:
            mtime = os.path.getmtime(self.settings_file)
        except FileNotFoundError:
            return False
        if self.watcher.paused:
            return False
        if mtime <= self.last_modified:
            return False
        self.last_modified = mtime
        return True

    def _handle_event(self, src_path: Any) -> None:
        if isinstance(src_path, bytes):
            src_path = os.fsdecode(src_path)
        if os.path.abspath(src_path) != self.settings_file:
            return
        if self._should_process():
            self.watcher.reload()

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle_event(event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle_event(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Atomic saves land as a rename onto the watched name
        self._handle_event(getattr(event, "dest_path", None) or event.src_path)


class SettingsWatcher:
    """Reloads the settings file on change and updates ``settings`` in place.

    Components holding the same ``ChannelSettings`` instance (the connection
    manager, the fan-out policy) see new values on their next read, so a
    reconnect picks up edited credentials without restarting.
    """

    def __init__(
        self,
        settings_file: str,
        settings: ChannelSettings,
        on_reload: Callable[[list[str]], Any] | None = None,
    ):
        self.settings_file = settings_file
        self.settings = settings
        self.on_reload = on_reload
        self.observer: Any | None = None
        self.running = False
        self.paused = False
        self._lock = threading.Lock()

    def pause(self) -> None:
        """Ignore events, e.g. while the application writes the file itself."""
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def start(self) -> bool:
        """Start watching the settings file's directory.

        Returns:
            True if the observer is running.
        """
        if self.running:
            return True
        directory = os.path.dirname(os.path.abspath(self.settings_file))
        if not os.path.isdir(directory):
            logging.warning(f"⚠️ Settings directory missing, not watching path={directory}")
            return False
        try:
            observer = Observer()
            observer.schedule(
                SettingsFileHandler(self.settings_file, self), directory, recursive=False
            )
            observer.start()
        except OSError as e:
            log_error("Settings watcher failed to start", e, context={"path": directory})
            return False
        self.observer = observer
        self.running = True
        logging.info(f"👀 Watching settings file path={self.settings_file}")
        return True

    def stop(self) -> None:
        observer = self.observer
        if not self.running or observer is None:
            return
        try:
            observer.stop()
            observer.join()
        finally:
            self.running = False
            self.observer = None
            logging.debug("👀 Settings watcher stopped")

    def reload(self) -> list[str]:
        """Reload the file and apply changed values.

        Returns:
            Names of the settings that changed.
        """
        with self._lock:
            try:
                fresh = load_settings(self.settings_file)
                changed = self.settings.update_from(fresh)
            except Exception as e:  # noqa: BLE001
                log_error("Settings reload failed", e, context={"path": self.settings_file})
                return []
        if not changed:
            logging.debug("🔧 Settings file touched, no changes")
            return changed
        logging.info(f"🔄 Settings reloaded changed={changed}")
        if self.on_reload is not None:
            try:
                self.on_reload(changed)
            except Exception as e:  # noqa: BLE001
                log_error("Settings reload callback failed", e)
        return changed
