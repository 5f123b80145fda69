"""Event fan-out to connected listeners.

The scheduler only sees :class:`BroadcastSink`. :class:`Broadcaster` is the
in-process implementation: each listener is an independent callable, a
listener that raises is logged and dropped, and nothing is replayed to
listeners that connect later except the current stats snapshot.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from minute_beacon.stats import ProviderStats

    Listener = Callable[[str, dict[str, Any]], None]

logger = logging.getLogger("minute_beacon")
event_logger = logging.getLogger("minute_beacon.events")


class BroadcastSink(ABC):
    """Destination for ``preview``, ``reveal`` and ``stats`` events."""

    @abstractmethod
    def emit(self, event: str, payload: dict[str, Any]) -> None:
        """Deliver *payload* under *event* to whoever is listening now.

        Must not raise for per-listener delivery problems.
        """


class Broadcaster(BroadcastSink):
    """Thread-safe in-process fan-out.

    Args:
        stats: Counters sent to each new listener as a ``state`` event.
    """

    def __init__(self, stats: ProviderStats) -> None:
        self._stats = stats
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def connect(self, listener: Listener) -> None:
        """Register *listener* and send it the current stats snapshot."""
        with self._lock:
            self._listeners.append(listener)
        logger.debug("Listener connected (%d total)", self.listener_count)
        self._deliver(listener, "state", {"stats": self._stats.snapshot()})

    def disconnect(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
        logger.debug("Listener disconnected (%d total)", self.listener_count)

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            self._deliver(listener, event, payload)

    def _deliver(self, listener: Listener, event: str, payload: dict[str, Any]) -> None:
        try:
            listener(event, payload)
        except Exception:  # Intentional: one broken listener must not affect others
            logger.warning("Dropping listener after failed %r delivery", event, exc_info=True)
            self.disconnect(listener)


class LogSink(BroadcastSink):
    """Writes each event as one JSON line on the ``minute_beacon.events`` logger."""

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        event_logger.info(json.dumps({"event": event, **payload}, sort_keys=True))
