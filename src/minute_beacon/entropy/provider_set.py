"""Ordered, process-owned collection of entropy providers.

The mixing order is fixed: remote beacons first (in configured order), then
the local CSPRNG, then the stream-counter generator, then the stream-cipher
block generator. Providers sort by ``(kind.rank, priority)``; the sort is
stable, so equal keys keep their configured order.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from minute_beacon.entropy.registry import EntropySourceRegistry
from minute_beacon.entropy.types import SourceKind
from minute_beacon.exceptions import FatalEntropyError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from minute_beacon.config import BeaconConfig
    from minute_beacon.entropy.base import EntropySource
    from minute_beacon.entropy.types import Contribution

logger = logging.getLogger("minute_beacon")


class ProviderSet:
    """Providers in mixing priority order.

    Args:
        sources: Providers to own. Reordered stably by kind, then by
            registered priority.

    Raises:
        ValueError: If two providers share a name.
    """

    def __init__(self, sources: Iterable[EntropySource]) -> None:
        ordered = sorted(sources, key=lambda s: (s.kind.rank, s.priority))
        names = [s.name for s in ordered]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate provider names: {', '.join(duplicates)}")
        self._sources: tuple[EntropySource, ...] = tuple(ordered)

    def __iter__(self) -> Iterator[EntropySource]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    @property
    def names(self) -> list[str]:
        """Provider names in priority order."""
        return [s.name for s in self._sources]

    def produce_all(self) -> list[Contribution]:
        """Call every provider once, in priority order.

        Soft failures come back as unavailable contributions.
        ``FatalEntropyError`` propagates.
        """
        return [source.produce() for source in self._sources]

    def ensure_local_entropy(self) -> None:
        """Verify that the OS CSPRNG answers.

        Raises:
            FatalEntropyError: If no local CSPRNG is configured or it fails.
        """
        local = [s for s in self._sources if s.kind is SourceKind.LOCAL_CSPRNG]
        if not local:
            raise FatalEntropyError("No local CSPRNG provider configured")
        for source in local:
            source.health_check()

    def close(self) -> None:
        for source in self._sources:
            source.close()

    def health_check(self) -> list[dict[str, Any]]:
        return [source.health_check() for source in self._sources]


def build_provider_set(config: BeaconConfig) -> ProviderSet:
    """Build the configured providers and check local entropy.

    Remote beacons are skipped when ``remote_sources_enabled`` is off.

    Raises:
        ConfigValidationError: If a source name is not registered.
        FatalEntropyError: If the OS CSPRNG is unusable (refuse to start).
    """
    sources: list[EntropySource] = []
    for name in config.sources:
        source = EntropySourceRegistry.build(name, config)
        if source.kind is SourceKind.REMOTE_BEACON and not config.remote_sources_enabled:
            source.close()
            logger.info("Remote source %r disabled by configuration", name)
            continue
        sources.append(source)

    providers = ProviderSet(sources)
    providers.ensure_local_entropy()
    logger.info("Entropy providers: %s", ", ".join(providers.names))
    return providers
