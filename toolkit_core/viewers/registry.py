from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from .models import Viewer


class ViewerRegistry:
    """Process-wide store of ``Viewer`` records keyed by lowercase username.

    Every lookup and mutation runs under one re-entrant lock, so
    ``get_or_create`` is a single critical section and concurrent callers
    for "Alice" and "alice" always receive the same record.

    Records are kept in insertion order in a list; ``load`` accepts data
    as-is (duplicates included) so that ``remove_duplicates`` can repair
    files written by older versions.
    """

    def __init__(self) -> None:
        self._viewers: list[Viewer] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._viewers)

    def _find(self, key: str) -> Viewer | None:
        for viewer in self._viewers:
            if viewer.key == key:
                return viewer
        return None

    def get(self, username: str) -> Viewer | None:
        if not username:
            return None
        with self._lock:
            return self._find(username.strip().lower())

    def exists(self, username: str) -> bool:
        return self.get(username) is not None

    def create(self, username: str) -> Viewer | None:
        """Create a record; None if the username is empty or already known."""
        username = (username or "").strip()
        if not username:
            return None
        with self._lock:
            if self._find(username.lower()) is not None:
                return None
            viewer = Viewer(username=username)
            self._viewers.append(viewer)
        logging.debug(f"👤 Viewer created user={username}")
        return viewer

    def get_or_create(self, username: str) -> Viewer | None:
        """Return the record for ``username``, creating it if unseen.

        Returns:
            The record, or None for an empty username.
        """
        username = (username or "").strip()
        if not username:
            return None
        with self._lock:
            existing = self._find(username.lower())
            if existing is not None:
                return existing
            viewer = Viewer(username=username)
            self._viewers.append(viewer)
        logging.debug(f"👤 Viewer created user={username}")
        return viewer

    def add(self, viewer: Viewer) -> bool:
        """Insert ``viewer`` unless a case-insensitive match already exists."""
        if not viewer.username:
            return False
        with self._lock:
            if self._find(viewer.key) is not None:
                return False
            self._viewers.append(viewer)
            return True

    def update(self, username: str, mutate: Callable[[Viewer], Any]) -> bool:
        """Apply ``mutate`` to an existing record under the registry lock."""
        with self._lock:
            viewer = self.get(username)
            if viewer is None:
                return False
            mutate(viewer)
            return True

    def remove(self, username: str) -> bool:
        with self._lock:
            viewer = self.get(username)
            if viewer is None:
                return False
            self._viewers.remove(viewer)
            return True

    def load(self, viewers: Iterable[Viewer]) -> int:
        """Replace the contents with ``viewers`` verbatim; returns the count."""
        with self._lock:
            self._viewers = [v for v in viewers if v.username]
            return len(self._viewers)

    def all(self) -> list[Viewer]:
        with self._lock:
            return list(self._viewers)

    def clear(self) -> None:
        with self._lock:
            self._viewers.clear()

    def remove_duplicates(self) -> int:
        """Keep the first record per case-insensitive username.

        Returns:
            Number of records removed.
        """
        with self._lock:
            seen: set[str] = set()
            kept: list[Viewer] = []
            removed = 0
            for viewer in self._viewers:
                if viewer.key in seen:
                    removed += 1
                    continue
                seen.add(viewer.key)
                kept.append(viewer)
            self._viewers = kept
        if removed:
            logging.warning(f"🧹 Removed {removed} duplicate viewer record(s)")
        return removed
