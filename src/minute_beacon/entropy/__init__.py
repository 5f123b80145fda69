"""Entropy provider subsystem for minute-beacon.

Re-exports the ABC, registry, typed results, provider set and all built-in
source implementations for convenient access::

    from minute_beacon.entropy import EntropySource, ProviderSet
    from minute_beacon.entropy import SystemEntropySource, FortunaSource
"""

from minute_beacon.entropy.base import EntropySource
from minute_beacon.entropy.chacha import ChaCha20Source
from minute_beacon.entropy.fortuna import FortunaSource
from minute_beacon.entropy.mock import MockSource
from minute_beacon.entropy.provider_set import ProviderSet, build_provider_set
from minute_beacon.entropy.registry import EntropySourceRegistry, register_entropy_source
from minute_beacon.entropy.remote import DrandSource, HttpBeaconSource, NistBeaconSource
from minute_beacon.entropy.system import SystemEntropySource
from minute_beacon.entropy.types import Contribution, SourceKind

__all__ = [
    "ChaCha20Source",
    "Contribution",
    "DrandSource",
    "EntropySource",
    "EntropySourceRegistry",
    "FortunaSource",
    "HttpBeaconSource",
    "MockSource",
    "NistBeaconSource",
    "ProviderSet",
    "SourceKind",
    "SystemEntropySource",
    "build_provider_set",
    "register_entropy_source",
]
