"""Seeded mock entropy source for testing and offline runs.

Generates bytes from a ``numpy`` generator, allowing deterministic tests
(via seed). The category is configurable so a mock can stand in for a
remote beacon in scheduling tests.
"""

from __future__ import annotations

import numpy as np

from minute_beacon.entropy.base import EntropySource
from minute_beacon.entropy.registry import register_entropy_source
from minute_beacon.entropy.types import SourceKind


@register_entropy_source("mock", priority=30)
class MockSource(EntropySource):
    """Configurable mock entropy source.

    Args:
        seed: Optional RNG seed for reproducible output.
        n_bytes: Bytes returned per call.
        name: Provider name to report.
        kind: Provider category to report.
    """

    def __init__(
        self,
        seed: int | None = None,
        n_bytes: int = 32,
        name: str = "mock",
        kind: SourceKind = SourceKind.LOCAL_PRNG_STATE,
    ) -> None:
        self._rng = np.random.default_rng(seed)
        self._n_bytes = n_bytes
        self._name = name
        self._kind = kind

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> SourceKind:
        return self._kind

    def fetch(self) -> bytes:
        """Return ``n_bytes`` uniformly distributed bytes."""
        return self._rng.integers(0, 256, size=self._n_bytes, dtype=np.uint8).tobytes()
