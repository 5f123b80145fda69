"""Fortuna-like stream-counter generator built on AES-256 in CTR mode.

State is a 256-bit key and a 128-bit big-endian counter, both carried
forward for the life of the process. Each call encrypts zero bytes under
the key starting at the current counter, then advances the counter by the
number of cipher blocks consumed (wrapping at 2**128), so a key+counter
pair is never used twice. Every ``reseed_interval`` calls the key is
replaced by ``HMAC-SHA256(key, os_random(32))``: an attacker holding the
current key learns neither the next key (without the reseed input) nor any
earlier output.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import TYPE_CHECKING, Any

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from minute_beacon.entropy.base import EntropySource
from minute_beacon.entropy.registry import register_entropy_source
from minute_beacon.entropy.system import os_random
from minute_beacon.entropy.types import SourceKind

if TYPE_CHECKING:
    from minute_beacon.config import BeaconConfig

logger = logging.getLogger("minute_beacon")

_BLOCK_BYTES = 16
_KEY_BYTES = 32
_COUNTER_MODULUS = 1 << 128


@register_entropy_source("fortuna", priority=10)
class FortunaSource(EntropySource):
    """AES-256-CTR keystream generator with periodic HMAC rekeying.

    Args:
        output_bytes: Keystream bytes per call. Must be a whole number of
            16-byte blocks.
        reseed_interval: Calls between rekeys.
        key: Initial key. Drawn from the OS CSPRNG when omitted.
        counter: Initial counter value. Drawn from the OS CSPRNG when omitted.

    Raises:
        ValueError: If *output_bytes* or *key* have the wrong size.
        FatalEntropyError: If initial state cannot be drawn from the OS.
    """

    def __init__(
        self,
        output_bytes: int = 32,
        reseed_interval: int = 100,
        key: bytes | None = None,
        counter: int | None = None,
    ) -> None:
        if output_bytes <= 0 or output_bytes % _BLOCK_BYTES:
            raise ValueError(f"output_bytes must be a positive multiple of {_BLOCK_BYTES}")
        if key is not None and len(key) != _KEY_BYTES:
            raise ValueError(f"key must be {_KEY_BYTES} bytes, got {len(key)}")
        self._output_bytes = output_bytes
        self._reseed_interval = reseed_interval
        self._key = key if key is not None else os_random(_KEY_BYTES)
        if counter is None:
            counter = int.from_bytes(os_random(_BLOCK_BYTES), "big")
        self._counter = counter % _COUNTER_MODULUS
        self._calls = 0
        self._generation = 0

    @classmethod
    def from_config(cls, config: BeaconConfig) -> FortunaSource:
        return cls(
            output_bytes=config.fortuna_output_bytes,
            reseed_interval=config.fortuna_reseed_interval,
        )

    @property
    def name(self) -> str:
        """Return ``'fortuna'``."""
        return "fortuna"

    @property
    def kind(self) -> SourceKind:
        return SourceKind.LOCAL_PRNG_STATE

    @property
    def calls(self) -> int:
        """Number of ``fetch()`` calls served so far."""
        return self._calls

    @property
    def counter(self) -> int:
        """Counter value the next call will start from."""
        return self._counter

    @property
    def generation(self) -> int:
        """Number of rekeys performed so far."""
        return self._generation

    def fetch(self) -> bytes:
        """Return the next ``output_bytes`` of keystream.

        Raises:
            FatalEntropyError: If a due rekey cannot read the OS CSPRNG.
        """
        encryptor = Cipher(
            algorithms.AES(self._key),
            modes.CTR(self._counter.to_bytes(_BLOCK_BYTES, "big")),
        ).encryptor()
        block = encryptor.update(bytes(self._output_bytes)) + encryptor.finalize()
        self._counter = (self._counter + self._output_bytes // _BLOCK_BYTES) % _COUNTER_MODULUS

        self._calls += 1
        if self._calls % self._reseed_interval == 0:
            self._reseed()
        return block

    def _reseed(self) -> None:
        self._key = hmac.new(self._key, os_random(_KEY_BYTES), hashlib.sha256).digest()
        self._generation += 1
        logger.debug("fortuna rekeyed: generation=%d calls=%d", self._generation, self._calls)

    def health_check(self) -> dict[str, Any]:
        return {
            "source": self.name,
            "kind": self.kind.value,
            "calls": self._calls,
            "generation": self._generation,
        }
