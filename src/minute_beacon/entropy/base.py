"""Abstract base class for all entropy providers.

Every provider (OS randomness, a local stream generator, a remote beacon, a
test double) implements this interface. Subclasses implement ``fetch()``,
which raises :class:`~minute_beacon.exceptions.EntropyUnavailableError` on a
soft failure. The concrete ``produce()`` turns that into an explicit
``Unavailable`` contribution so callers never see the exception.
:class:`~minute_beacon.exceptions.FatalEntropyError` is not caught here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from minute_beacon.entropy.types import Contribution, SourceKind
from minute_beacon.exceptions import EntropyUnavailableError

if TYPE_CHECKING:
    from minute_beacon.config import BeaconConfig

logger = logging.getLogger("minute_beacon")


class EntropySource(ABC):
    """Abstract base for all entropy providers.

    From the caller's perspective a provider is stateless: each ``produce()``
    yields a fresh contribution. Generators that carry a key and counter
    forward between rounds keep that state private.

    Attributes:
        priority: Mixing position among providers of the same kind, lower
            first. Providers sharing a priority keep their configured order.
    """

    priority: ClassVar[int] = 100

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique provider identifier (e.g., ``'csprng'``, ``'drand'``)."""

    @property
    @abstractmethod
    def kind(self) -> SourceKind:
        """Provider category; the primary key of the mixing order."""

    @abstractmethod
    def fetch(self) -> bytes | str:
        """Return this round's raw payload.

        Returns:
            Bytes for local generators, a normalized text token for remote
            beacons.

        Raises:
            EntropyUnavailableError: On a recoverable failure.
            FatalEntropyError: If the local OS entropy source is broken.
        """

    @classmethod
    def from_config(cls, config: BeaconConfig) -> EntropySource:
        """Build an instance from configuration.

        The default ignores *config*; sources with tunables override this.
        """
        return cls()

    def produce(self) -> Contribution:
        """Call ``fetch()`` and wrap the outcome as a typed contribution."""
        try:
            payload = self.fetch()
        except EntropyUnavailableError as exc:
            logger.debug("Entropy source %r unavailable: %s", self.name, exc)
            return Contribution.unavailable(self.name, self.kind, str(exc))
        return Contribution(name=self.name, kind=self.kind, payload=payload)

    def close(self) -> None:  # noqa: B027
        """Release resources (HTTP clients, file handles)."""

    def health_check(self) -> dict[str, Any]:
        """Return a status dictionary for this source.

        Returns:
            Dictionary with at least ``'source'`` and ``'kind'`` keys.
        """
        return {"source": self.name, "kind": self.kind.value}
