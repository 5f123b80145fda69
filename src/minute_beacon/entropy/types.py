"""Typed results for entropy providers."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class SourceKind(enum.Enum):
    """Provider category. Declaration order is mixing priority."""

    REMOTE_BEACON = "remote-beacon"
    LOCAL_CSPRNG = "local-csprng"
    LOCAL_PRNG_STATE = "local-prng-state"

    @property
    def rank(self) -> int:
        """Position in the mixing priority order (0 = highest)."""
        return list(SourceKind).index(self)


@dataclass(frozen=True, slots=True)
class Contribution:
    """Outcome of one provider call within a round.

    Attributes:
        name: Provider name.
        kind: Provider category.
        payload: Raw bytes (local sources) or a normalized text token
            (remote beacons). ``None`` when the provider was unavailable.
        reason: Why the provider was unavailable; empty on success.
    """

    name: str
    kind: SourceKind
    payload: bytes | str | None
    reason: str = ""

    @classmethod
    def unavailable(cls, name: str, kind: SourceKind, reason: str) -> Contribution:
        """Build the explicit ``Unavailable`` result for a provider."""
        return cls(name=name, kind=kind, payload=None, reason=reason)

    @property
    def success(self) -> bool:
        return self.payload is not None

    def tag(self, cap: int = 64) -> str:
        """Render as ``"<name>:<payload>"`` with the payload capped to *cap* chars.

        Raises:
            ValueError: If called on an unavailable contribution.
        """
        if self.payload is None:
            raise ValueError(f"Provider {self.name!r} did not contribute: {self.reason}")
        text = self.payload.hex() if isinstance(self.payload, bytes) else self.payload
        return f"{self.name}:{text[:cap]}"
