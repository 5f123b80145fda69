"""minute-beacon: mix several entropy sources into one committed digit per minute.

A preview of the digit and its proof hash is broadcast a fixed offset before
every wall-clock minute boundary; the identical digit and proof are revealed
exactly at the boundary. Remote randomness beacons are best-effort, local
generators keep every round alive.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("minute-beacon")
except PackageNotFoundError:
    __version__ = "0.0.0"

from minute_beacon.broadcast import Broadcaster, BroadcastSink, LogSink
from minute_beacon.config import BeaconConfig
from minute_beacon.entropy import ProviderSet, build_provider_set
from minute_beacon.exceptions import (
    ConfigValidationError,
    EntropyUnavailableError,
    FatalEntropyError,
    MinuteBeaconError,
)
from minute_beacon.mixer import MixResult, digest_tags, mix
from minute_beacon.scheduler import Round, RoundScheduler, SchedulerState
from minute_beacon.stats import ProviderStats

__all__ = [
    "BeaconConfig",
    "BroadcastSink",
    "Broadcaster",
    "ConfigValidationError",
    "EntropyUnavailableError",
    "FatalEntropyError",
    "LogSink",
    "MinuteBeaconError",
    "MixResult",
    "ProviderSet",
    "ProviderStats",
    "Round",
    "RoundScheduler",
    "SchedulerState",
    "__version__",
    "build_provider_set",
    "digest_tags",
    "mix",
]
