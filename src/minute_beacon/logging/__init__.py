"""Diagnostic logging subsystem for minute-beacon.

Provides immutable per-round records and a configurable logger that
supports none/summary/full verbosity and in-memory diagnostic mode.
"""

from minute_beacon.logging.logger import RoundLogger
from minute_beacon.logging.types import RoundRecord

__all__ = [
    "RoundLogger",
    "RoundRecord",
]
