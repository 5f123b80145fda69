"""Shared pytest fixtures for minute-beacon tests.

Provides a controllable wall clock, a recording broadcast sink, test-double
entropy sources, and a configuration that never touches the network.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from minute_beacon.broadcast import BroadcastSink
from minute_beacon.clock import Clock
from minute_beacon.config import BeaconConfig
from minute_beacon.entropy.base import EntropySource
from minute_beacon.entropy.types import SourceKind
from minute_beacon.exceptions import EntropyUnavailableError, FatalEntropyError


class FakeClock(Clock):
    """Clock whose waits advance time instantly.

    Every ``wait`` is recorded so tests can see how the scheduler slept.
    """

    def __init__(self, start: datetime) -> None:
        self._now = start
        self.waits: list[float] = []

    def now(self) -> datetime:
        return self._now

    def wait(self, seconds: float, stop: threading.Event) -> bool:
        self.waits.append(seconds)
        self._now += timedelta(seconds=seconds)
        return stop.is_set()

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)

    def set(self, instant: datetime) -> None:
        self._now = instant


class RecordingSink(BroadcastSink):
    """Broadcast sink that keeps every event with the clock time it was emitted."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.times: list[datetime | None] = []

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self.events.append((event, dict(payload)))
        self.times.append(self._clock.now() if self._clock is not None else None)

    def of(self, event: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.events if name == event]

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


class FixedSource(EntropySource):
    """Test double: returns a fixed payload and counts calls."""

    def __init__(
        self,
        name: str,
        kind: SourceKind = SourceKind.LOCAL_PRNG_STATE,
        payload: bytes | str = b"\xaa" * 8,
    ) -> None:
        self._name = name
        self._kind = kind
        self._payload = payload
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> SourceKind:
        return self._kind

    def fetch(self) -> bytes | str:
        self.calls += 1
        return self._payload


class UnavailableSource(FixedSource):
    """Test double: always fails softly."""

    def fetch(self) -> bytes | str:
        self.calls += 1
        raise EntropyUnavailableError(f"{self._name} is down")


class BrokenOsSource(FixedSource):
    """Test double: a local CSPRNG whose OS source has failed."""

    def __init__(self, name: str = "csprng") -> None:
        super().__init__(name, SourceKind.LOCAL_CSPRNG)
        self.broken = True

    def fetch(self) -> bytes | str:
        self.calls += 1
        if self.broken:
            raise FatalEntropyError("OS entropy source failed")
        return b"\x01" * 32

    def health_check(self) -> dict[str, Any]:
        if self.broken:
            raise FatalEntropyError("OS entropy source failed")
        return super().health_check()


class SlowSource(FixedSource):
    """Test double: advances a fake clock while 'fetching'."""

    def __init__(self, name: str, clock: FakeClock, seconds: float) -> None:
        super().__init__(name, SourceKind.LOCAL_PRNG_STATE)
        self._clock = clock
        self._seconds = seconds

    def fetch(self) -> bytes | str:
        self._clock.advance(self._seconds)
        return super().fetch()


@pytest.fixture
def start_time() -> datetime:
    """12:00:10 UTC, well before the 12:01:00 preview window opens."""
    return datetime(2024, 1, 1, 12, 0, 10, tzinfo=timezone.utc)


@pytest.fixture
def fake_clock(start_time: datetime) -> FakeClock:
    return FakeClock(start_time)


@pytest.fixture
def sink(fake_clock: FakeClock) -> RecordingSink:
    return RecordingSink(fake_clock)


@pytest.fixture
def local_config() -> BeaconConfig:
    """Default settings with remote beacons switched off and quiet logging."""
    return BeaconConfig(remote_sources_enabled=False, log_level="none", _env_file=None)


@pytest.fixture
def fixed_source_cls() -> type[FixedSource]:
    return FixedSource


@pytest.fixture
def unavailable_source_cls() -> type[UnavailableSource]:
    return UnavailableSource


@pytest.fixture
def broken_os_source() -> BrokenOsSource:
    return BrokenOsSource()


@pytest.fixture
def slow_source_cls() -> type[SlowSource]:
    return SlowSource


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep BEACON_* variables from the developer's shell out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("BEACON_"):
            monkeypatch.delenv(key, raising=False)
