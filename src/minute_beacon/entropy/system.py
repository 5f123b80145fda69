"""System entropy source using ``os.urandom()``.

This is the liveness anchor of every round: when every remote beacon is
down, the OS CSPRNG still contributes. A failure here is not recoverable.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from minute_beacon.entropy.base import EntropySource
from minute_beacon.entropy.registry import register_entropy_source
from minute_beacon.entropy.types import SourceKind
from minute_beacon.exceptions import FatalEntropyError

if TYPE_CHECKING:
    from minute_beacon.config import BeaconConfig


def os_random(n: int) -> bytes:
    """Return *n* bytes from the OS CSPRNG.

    Raises:
        FatalEntropyError: If the operating system cannot supply randomness.
    """
    try:
        return os.urandom(n)
    except (OSError, NotImplementedError) as exc:
        raise FatalEntropyError(f"OS entropy source failed: {exc}") from exc


@register_entropy_source("csprng")
class SystemEntropySource(EntropySource):
    """``os.urandom()`` wrapper, always available, cryptographically secure.

    Args:
        n_bytes: Bytes returned per call.
    """

    def __init__(self, n_bytes: int = 32) -> None:
        self._n_bytes = n_bytes

    @classmethod
    def from_config(cls, config: BeaconConfig) -> SystemEntropySource:
        return cls(n_bytes=config.csprng_bytes)

    @property
    def name(self) -> str:
        """Return ``'csprng'``."""
        return "csprng"

    @property
    def kind(self) -> SourceKind:
        return SourceKind.LOCAL_CSPRNG

    def fetch(self) -> bytes:
        """Return ``n_bytes`` bytes from the OS CSPRNG.

        Raises:
            FatalEntropyError: If ``os.urandom()`` fails.
        """
        return os_random(self._n_bytes)

    def health_check(self) -> dict[str, Any]:
        """Probe the OS CSPRNG with a one-byte read.

        Raises:
            FatalEntropyError: If the probe fails.
        """
        os_random(1)
        return {"source": self.name, "kind": self.kind.value, "healthy": True}
