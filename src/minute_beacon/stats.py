"""Process-wide count of rounds per primary provider.

Written only by the scheduler after each reveal, read from listener and
query threads, so every access goes through a lock.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ProviderStats:
    """Monotonic per-provider counters.

    Args:
        names: Provider names to report with a zero count before their first
            primary round.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {name: 0 for name in names}

    def record(self, name: str) -> int:
        """Credit one round to *name* and return its new count."""
        with self._lock:
            count = self._counts.get(name, 0) + 1
            self._counts[name] = count
            return count

    def snapshot(self) -> dict[str, int]:
        """Return a copy of the counters."""
        with self._lock:
            return dict(self._counts)

    @property
    def total(self) -> int:
        """Number of rounds recorded."""
        with self._lock:
            return sum(self._counts.values())
