from __future__ import annotations

import logging
import os
from typing import Any

from ..errors.handling import log_error
from ..errors.internal import PersistenceError
from .model import ChannelSettings
from .persistence import JsonDocumentStore


class SettingsRepository:
    """Loads and saves ``ChannelSettings`` as a JSON object.

    Missing keys load as defaults and unknown keys are dropped, so files
    written by older or newer versions stay readable.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self.store = JsonDocumentStore(path)

    @property
    def path(self) -> str:
        return self.store.path

    def load_raw(self) -> dict[str, Any]:
        """Return the stored mapping, or an empty dict if missing or unreadable."""
        try:
            data = self.store.load()
        except PersistenceError as e:
            log_error("Settings load failed", e, context={"path": self.path})
            return {}
        if data is None:
            return {}
        if not isinstance(data, dict):
            logging.warning(f"⚠️ Settings file is not a JSON object path={self.path}")
            return {}
        return data

    def load(self) -> ChannelSettings:
        raw = self.load_raw()
        try:
            return ChannelSettings.from_dict(raw)
        except ValueError as e:
            # pydantic.ValidationError subclasses ValueError
            log_error("Settings file rejected, using defaults", e, context={"path": self.path})
            return ChannelSettings()

    def save(self, settings: ChannelSettings) -> bool:
        """Persist ``settings``.

        Returns:
            True if written, False if unchanged or the write failed.
        """
        try:
            written = self.store.save(settings.to_dict())
        except PersistenceError as e:
            log_error("Settings save failed", e, context={"path": self.path})
            return False
        if written:
            logging.info(f"💾 Settings saved path={self.path}")
        return written
