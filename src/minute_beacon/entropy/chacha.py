"""ChaCha20 block generator (20 rounds, RFC 8439 state layout).

State is a 256-bit key, a 96-bit nonce and a 32-bit block counter. Each
call returns one 64-byte keystream block and advances the counter by one,
wrapping at 2**32.
"""

from __future__ import annotations

from typing import Any

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from minute_beacon.entropy.base import EntropySource
from minute_beacon.entropy.registry import register_entropy_source
from minute_beacon.entropy.system import os_random
from minute_beacon.entropy.types import SourceKind

_MASK32 = 0xFFFFFFFF
_KEY_BYTES = 32
_NONCE_BYTES = 12
_BLOCK_BYTES = 64


def chacha20_block(key: bytes, counter: int, nonce: bytes) -> bytes:
    """Compute one 64-byte ChaCha20 keystream block.

    Args:
        key: 32-byte key.
        counter: 32-bit block counter.
        nonce: 12-byte nonce.

    Returns:
        The block for ``(key, counter, nonce)``, i.e. the keystream that
        would encrypt 64 zero bytes starting at *counter*.
    """
    if len(key) != _KEY_BYTES or len(nonce) != _NONCE_BYTES:
        raise ValueError("ChaCha20 needs a 32-byte key and a 12-byte nonce")

    # The library takes the RFC 8439 counter word and nonce as one 16-byte value.
    initial = (counter & _MASK32).to_bytes(4, "little") + nonce
    encryptor = Cipher(algorithms.ChaCha20(key, initial), mode=None).encryptor()
    return encryptor.update(bytes(_BLOCK_BYTES))


@register_entropy_source("chacha20", priority=20)
class ChaCha20Source(EntropySource):
    """Stateful ChaCha20 block source.

    Args:
        key: 32-byte key. Drawn from the OS CSPRNG when omitted.
        nonce: 12-byte nonce. Drawn from the OS CSPRNG when omitted.
        counter: Initial block counter.

    Raises:
        FatalEntropyError: If initial state cannot be drawn from the OS.
    """

    def __init__(
        self,
        key: bytes | None = None,
        nonce: bytes | None = None,
        counter: int = 1,
    ) -> None:
        self._key = key if key is not None else os_random(_KEY_BYTES)
        self._nonce = nonce if nonce is not None else os_random(_NONCE_BYTES)
        if len(self._key) != _KEY_BYTES or len(self._nonce) != _NONCE_BYTES:
            raise ValueError("ChaCha20 needs a 32-byte key and a 12-byte nonce")
        self._counter = counter & _MASK32

    @property
    def name(self) -> str:
        """Return ``'chacha20'``."""
        return "chacha20"

    @property
    def kind(self) -> SourceKind:
        return SourceKind.LOCAL_PRNG_STATE

    @property
    def counter(self) -> int:
        """Block counter the next call will use."""
        return self._counter

    def fetch(self) -> bytes:
        """Return the next 64-byte block and advance the counter."""
        block = chacha20_block(self._key, self._counter, self._nonce)
        self._counter = (self._counter + 1) & _MASK32
        return block

    def health_check(self) -> dict[str, Any]:
        return {"source": self.name, "kind": self.kind.value, "counter": self._counter}
