"""Exception hierarchy for minute-beacon.

All exceptions derive from MinuteBeaconError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.
"""


class MinuteBeaconError(Exception):
    """Base exception for all minute-beacon errors."""


class EntropyUnavailableError(MinuteBeaconError):
    """A single entropy provider could not contribute this round.

    Soft failure: raised inside a provider's ``fetch()`` (timeout, bad
    status, malformed body) and converted to an ``Unavailable`` contribution
    by ``produce()``. It never escapes a round.
    """


class FatalEntropyError(MinuteBeaconError):
    """Local entropy is gone and no digit can be produced safely.

    Raised when the operating system CSPRNG fails, or when the mixer is
    left with zero successful contributions. At startup this refuses to
    start the process; during a round it skips that boundary only.
    """


class ConfigValidationError(MinuteBeaconError):
    """Configuration field validation failed.

    Raised when the configured source list names an unknown provider or
    a field combination cannot be honoured.
    """
