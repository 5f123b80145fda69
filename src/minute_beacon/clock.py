"""Wall-clock helpers for minute-aligned scheduling.

All instants are timezone-aware UTC datetimes. Waiting is done in bounded
chunks against absolute targets, so a late timer or a clock step is
absorbed by recomputing the remaining time on every wake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import threading

MINUTE = timedelta(minutes=1)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)
_MINUTE_US = 60_000_000


class Clock(ABC):
    """Source of wall-clock time and interruptible waits."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current instant as an aware UTC datetime."""

    @abstractmethod
    def wait(self, seconds: float, stop: threading.Event) -> bool:
        """Block for up to *seconds*, returning early if *stop* is set.

        Returns:
            ``True`` if *stop* is set.
        """


class SystemClock(Clock):
    """Real wall clock backed by ``datetime.now`` and ``Event.wait``."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def wait(self, seconds: float, stop: threading.Event) -> bool:
        return stop.wait(max(0.0, seconds))


def next_boundary(now: datetime, epsilon_s: float = 1.0) -> datetime:
    """Return the next whole minute after *now*, ceiling from *now* + *epsilon_s*.

    The epsilon keeps a wake-up a few milliseconds after a boundary from
    selecting that same boundary again. The result is always strictly
    later than *now*.

    Example:
        ``12:00:30`` -> ``12:01:00``; ``12:00:59.5`` lands past ``12:01:00``
        once the epsilon is added, so ``12:02:00``.
    """
    basis_us = (now - _EPOCH) // _MICROSECOND + round(epsilon_s * 1_000_000)
    boundary = _EPOCH + MINUTE * -(-basis_us // _MINUTE_US)
    if boundary <= now:
        boundary += MINUTE
    return boundary


def isoformat_z(instant: datetime) -> str:
    """Format *instant* as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    utc = instant.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
