"""
Main-loop dispatch queue: funnels work from background threads onto one thread
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..errors.handling import log_error


@dataclass(slots=True)
class QueuedUnit:
    """One named unit of work waiting for the next tick"""

    name: str
    callback: Callable[[], Any]
    enqueued_at: float = field(default_factory=time.monotonic)


class MainLoopDispatchQueue:
    """
    Thread-safe FIFO of callbacks executed serially on the main loop.

    Any thread may ``enqueue``; only the main loop calls ``tick``. Units run
    in enqueue order, one at a time, so code running inside a unit never
    races another unit. A unit that raises is logged and skipped.
    """

    def __init__(self) -> None:
        self._units: deque[QueuedUnit] = deque()
        self._lock = threading.Lock()
        self._owner: int | None = None
        self.processed = 0
        self.failed = 0

    def enqueue(self, name: str, callback: Callable[[], Any]) -> None:
        """Queue ``callback`` to run on the next tick. Never blocks on the main loop."""
        with self._lock:
            self._units.append(QueuedUnit(name=name, callback=callback))

    def pending(self) -> int:
        with self._lock:
            return len(self._units)

    def __len__(self) -> int:
        return self.pending()

    def is_main_thread(self) -> bool:
        """True when called from the thread that last ran ``tick``."""
        return self._owner == threading.get_ident()

    def clear(self) -> int:
        """Drop queued units without running them; returns how many were dropped."""
        with self._lock:
            dropped = len(self._units)
            self._units.clear()
        if dropped:
            logging.debug(f"🧹 Dropped {dropped} queued main-loop units")
        return dropped

    def tick(self, max_units: int | None = None) -> int:
        """Run queued units on the calling thread.

        Units enqueued while the tick runs are processed in the same tick
        unless ``max_units`` stops it first.

        Args:
            max_units: Upper bound on units run by this call, None for all.

        Returns:
            Number of units run (including failed ones).
        """
        self._owner = threading.get_ident()
        ran = 0
        while max_units is None or ran < max_units:
            with self._lock:
                if not self._units:
                    break
                unit = self._units.popleft()
            ran += 1
            try:
                unit.callback()
                self.processed += 1
            except Exception as e:  # noqa: BLE001
                self.failed += 1
                log_error("Main-loop unit failed", e, context={"unit": unit.name})
        return ran

    async def run(self, interval: float, stop_event: asyncio.Event) -> None:
        """Tick every ``interval`` seconds until ``stop_event`` is set, then drain."""
        logging.debug(f"⏱️ Main-loop pump started interval={interval}")
        while not stop_event.is_set():
            self.tick()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except TimeoutError:
                continue
        self.tick()
        logging.debug("⏱️ Main-loop pump stopped")
