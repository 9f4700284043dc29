from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

from .models import Viewer


class ViewerTracker:
    """Last-activity timestamps per viewer, keyed by lowercase username.

    Kept in memory only; a restart forgets who was active.
    """

    def __init__(self) -> None:
        self._last_active: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def touch(self, viewer: Viewer) -> None:
        with self._lock:
            self._last_active[viewer.key] = datetime.now(UTC)

    def is_tracked(self, viewer: Viewer) -> bool:
        with self._lock:
            return viewer.key in self._last_active

    def last_active(self, viewer: Viewer) -> datetime | None:
        with self._lock:
            return self._last_active.get(viewer.key)

    def minutes_since_last_active(self, viewer: Viewer) -> int | None:
        """Whole minutes since ``viewer`` was last seen, None if never seen."""
        seen = self.last_active(viewer)
        if seen is None:
            return None
        return int((datetime.now(UTC) - seen).total_seconds() // 60)

    def active_usernames(self, within_minutes: int) -> list[str]:
        """Usernames seen during the last ``within_minutes`` minutes."""
        cutoff = datetime.now(UTC) - timedelta(minutes=within_minutes)
        with self._lock:
            return [name for name, seen in self._last_active.items() if seen >= cutoff]

    def forget(self, viewer: Viewer) -> bool:
        with self._lock:
            return self._last_active.pop(viewer.key, None) is not None
