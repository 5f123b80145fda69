"""Data types for the round diagnostics subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RoundRecord:
    """Immutable record of one revealed round.

    Attributes:
        timestamp_ns: Wall-clock time of the reveal (nanoseconds since epoch).
        boundary: Minute boundary, ISO 8601.
        digit: Committed digit.
        proof: SHA-256 hex digest of the mixed tags.
        primary: Highest-priority provider that contributed.
        contributors: Providers that contributed, in priority order.
        unavailable: Providers that failed softly this round.
        remote_contributed: True if at least one remote beacon contributed.
        mix_ms: Time spent mixing (milliseconds).
        preview_lag_ms: Preview emission delay past its scheduled instant.
        reveal_lag_ms: Reveal emission delay past the boundary.
    """

    timestamp_ns: int
    boundary: str
    digit: int
    proof: str
    primary: str
    contributors: tuple[str, ...]
    unavailable: tuple[str, ...]
    remote_contributed: bool
    mix_ms: float
    preview_lag_ms: float
    reveal_lag_ms: float
