from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from ..config.persistence import JsonDocumentStore
from ..errors.handling import log_error
from ..errors.internal import PersistenceError
from .models import Viewer


class ViewerStore:
    """Persists viewers as ``{"viewers": [...]}`` through an atomic JSON write."""

    def __init__(self, path: str | os.PathLike[str]):
        self.store = JsonDocumentStore(path)

    @property
    def path(self) -> str:
        return self.store.path

    def load(self) -> list[Viewer]:
        """Return stored viewers in file order; duplicates are preserved.

        A missing or unreadable file yields an empty list.
        """
        try:
            data = self.store.load()
        except PersistenceError as e:
            log_error("Viewer load failed", e, context={"path": self.path})
            return []
        if data is None:
            return []
        raw = data.get("viewers", []) if isinstance(data, dict) else data
        if not isinstance(raw, list):
            logging.warning(f"⚠️ Viewer file has no viewer list path={self.path}")
            return []
        viewers = [Viewer.from_dict(item) for item in raw if isinstance(item, dict)]
        viewers = [v for v in viewers if v.username]
        logging.info(f"📂 Loaded {len(viewers)} viewer(s) path={self.path}")
        return viewers

    def save(self, viewers: Iterable[Viewer]) -> bool:
        payload = {"viewers": [v.to_dict() for v in viewers]}
        try:
            written = self.store.save(payload)
        except PersistenceError as e:
            log_error("Viewer save failed", e, context={"path": self.path})
            return False
        if written:
            logging.info(f"💾 Saved {len(payload['viewers'])} viewer(s) path={self.path}")
        return written
