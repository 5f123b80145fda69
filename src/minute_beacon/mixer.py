"""Combine one round of provider contributions into a single digit.

Pipeline::

    providers (priority order) -> tagged contributions + "ts:<boundary>"
        -> "|".join -> SHA-256 -> hex prefix as integer -> mod 10

The full digest hex is the round's proof. Folding the boundary instant into
the hashed input makes every round's input distinct even if every provider
degenerately repeated itself.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from minute_beacon.clock import isoformat_z
from minute_beacon.exceptions import FatalEntropyError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from minute_beacon.entropy.provider_set import ProviderSet
    from minute_beacon.entropy.types import Contribution

logger = logging.getLogger("minute_beacon")

TAG_SEPARATOR = "|"
_DEFAULT_PAYLOAD_CAP = 64
_DEFAULT_DIGIT_PREFIX = 16


@dataclass(frozen=True, slots=True)
class MixResult:
    """Committed output of one mixing step.

    Attributes:
        digit: Integer in ``[0, 9]``.
        proof: Full SHA-256 hex digest of the joined tags.
        tags: The exact strings that were hashed, in order, ``ts:`` last.
        attempts: Every provider outcome, successful or not, in priority order.
        mix_ms: Wall time spent calling providers and hashing.
    """

    digit: int
    proof: str
    tags: tuple[str, ...]
    attempts: tuple[Contribution, ...]
    mix_ms: float = 0.0

    @property
    def contributions(self) -> tuple[Contribution, ...]:
        """Successful contributions only, in priority order."""
        return tuple(c for c in self.attempts if c.success)

    @property
    def primary(self) -> str:
        """Name of the highest-priority provider that contributed."""
        return self.contributions[0].name


def boundary_tag(boundary: datetime) -> str:
    return f"ts:{isoformat_z(boundary)}"


def digest_tags(
    tags: Sequence[str],
    digit_prefix_hex: int = _DEFAULT_DIGIT_PREFIX,
) -> tuple[int, str]:
    """Hash joined *tags* and reduce the digest to a decimal digit.

    Pure function: identical tags always give the identical result.

    Returns:
        ``(digit, proof)`` where *proof* is the SHA-256 hex digest.
    """
    proof = hashlib.sha256(TAG_SEPARATOR.join(tags).encode("utf-8")).hexdigest()
    return int(proof[:digit_prefix_hex], 16) % 10, proof


def mix(
    boundary: datetime,
    providers: ProviderSet,
    *,
    payload_cap_hex: int = _DEFAULT_PAYLOAD_CAP,
    digit_prefix_hex: int = _DEFAULT_DIGIT_PREFIX,
) -> MixResult:
    """Run every provider once and commit a digit for *boundary*.

    Args:
        boundary: The minute boundary this digit will be revealed at.
        providers: Providers to call, already in priority order.
        payload_cap_hex: Maximum payload characters per tag.
        digit_prefix_hex: Digest hex characters used for the digit.

    Returns:
        The committed :class:`MixResult`.

    Raises:
        FatalEntropyError: If no provider contributed, or the local CSPRNG
            failed outright.
    """
    t0 = time.perf_counter()
    attempts = providers.produce_all()
    succeeded = [c for c in attempts if c.success]
    if not succeeded:
        raise FatalEntropyError(f"No entropy provider contributed for {isoformat_z(boundary)}")

    tags = [c.tag(payload_cap_hex) for c in succeeded]
    tags.append(boundary_tag(boundary))
    digit, proof = digest_tags(tags, digit_prefix_hex)
    mix_ms = (time.perf_counter() - t0) * 1000.0

    skipped = [c.name for c in attempts if not c.success]
    if skipped:
        logger.info("Round %s mixed without: %s", isoformat_z(boundary), ", ".join(skipped))
    return MixResult(
        digit=digit,
        proof=proof,
        tags=tuple(tags),
        attempts=tuple(attempts),
        mix_ms=mix_ms,
    )
