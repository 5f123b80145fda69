"""Minute-aligned preview/reveal round scheduler.

One explicit loop drives every round through::

    IDLE -> AWAITING_PREVIEW -> (mix) -> AWAITING_REVEAL -> IDLE

For boundary ``B`` the loop waits until ``B - preview_offset``, mixes once,
emits ``preview``, waits until ``B``, emits ``reveal`` with the same digit
and proof, credits the primary provider in the stats, emits a ``stats``
snapshot and moves on to ``B + 1 minute``. Waits target absolute wall-clock
instants and re-read the clock on every wake. A wait that is already due
fires immediately, so a late start or a slow mix delays an emission but
never skips or reorders it. A fatal local entropy failure skips that one
boundary without emitting anything.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from minute_beacon.clock import MINUTE, SystemClock, isoformat_z, next_boundary
from minute_beacon.config import BeaconConfig
from minute_beacon.entropy.types import SourceKind
from minute_beacon.exceptions import FatalEntropyError
from minute_beacon.logging.types import RoundRecord
from minute_beacon.mixer import mix
from minute_beacon.stats import ProviderStats

if TYPE_CHECKING:
    from minute_beacon.broadcast import BroadcastSink
    from minute_beacon.clock import Clock
    from minute_beacon.entropy.provider_set import ProviderSet
    from minute_beacon.entropy.types import Contribution
    from minute_beacon.logging.logger import RoundLogger
    from minute_beacon.mixer import MixResult

logger = logging.getLogger("minute_beacon")

# Preview emitted later than this past its instant is reported as an overrun.
_OVERRUN_WARN = timedelta(seconds=1)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    AWAITING_PREVIEW = "awaiting_preview"
    AWAITING_REVEAL = "awaiting_reveal"


@dataclass(slots=True)
class Round:
    """Work for one minute boundary.

    ``result`` is committed exactly once, before the preview is emitted.
    """

    boundary: datetime
    preview_at: datetime
    result: MixResult | None = field(default=None)

    def commit(self, result: MixResult) -> None:
        """Assign the mixed result.

        Raises:
            RuntimeError: If a result was already committed.
        """
        if self.result is not None:
            raise RuntimeError(f"Round {isoformat_z(self.boundary)} already committed")
        self.result = result

    @property
    def digit(self) -> int | None:
        return None if self.result is None else self.result.digit

    @property
    def proof(self) -> str | None:
        return None if self.result is None else self.result.proof

    @property
    def contributions(self) -> tuple[Contribution, ...]:
        return () if self.result is None else self.result.contributions


class RoundScheduler:
    """Drive preview/reveal rounds for successive minute boundaries.

    Args:
        providers: Entropy providers, owned for the life of the scheduler.
        sink: Destination for ``preview``, ``reveal`` and ``stats`` events.
        stats: Primary-provider counters. A fresh set is created when omitted.
        config: Scheduling and mixing settings. Defaults to ``BeaconConfig()``.
        clock: Wall clock. Defaults to :class:`SystemClock`.
        round_logger: Optional per-round diagnostics.
    """

    def __init__(
        self,
        providers: ProviderSet,
        sink: BroadcastSink,
        stats: ProviderStats | None = None,
        config: BeaconConfig | None = None,
        clock: Clock | None = None,
        round_logger: RoundLogger | None = None,
    ) -> None:
        self._providers = providers
        self._sink = sink
        self._stats = stats if stats is not None else ProviderStats(providers.names)
        self._config = config or BeaconConfig()
        self._clock = clock or SystemClock()
        self._round_logger = round_logger

        self._offset = timedelta(seconds=self._config.preview_offset_s)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._state = SchedulerState.IDLE
        self._active: Round | None = None
        self._rounds_completed = 0
        self._rounds_skipped = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def active_round(self) -> Round | None:
        """The round in flight, or ``None`` between rounds."""
        return self._active

    @property
    def stats(self) -> ProviderStats:
        return self._stats

    @property
    def preview_offset(self) -> timedelta:
        return self._offset

    @property
    def rounds_completed(self) -> int:
        return self._rounds_completed

    @property
    def rounds_skipped(self) -> int:
        return self._rounds_skipped

    def plan_round(self, boundary: datetime) -> Round:
        """Create the round for *boundary* with its preview instant."""
        return Round(boundary=boundary, preview_at=boundary - self._offset)

    def run_round(self, boundary: datetime) -> Round | None:
        """Run one full round for *boundary*.

        Returns:
            The revealed round, or ``None`` if it was skipped after a fatal
            entropy failure or interrupted by :meth:`stop`.

        Raises:
            RuntimeError: If another round is still active.
        """
        if self._active is not None:
            raise RuntimeError(
                f"Round {isoformat_z(self._active.boundary)} is still active"
            )
        current = self.plan_round(boundary)
        self._active = current
        try:
            return self._drive(current)
        finally:
            self._active = None
            self._state = SchedulerState.IDLE

    def _drive(self, current: Round) -> Round | None:
        boundary_iso = isoformat_z(current.boundary)

        self._state = SchedulerState.AWAITING_PREVIEW
        if self._wait_until(current.preview_at):
            return None

        try:
            result = mix(
                current.boundary,
                self._providers,
                payload_cap_hex=self._config.payload_cap_hex,
                digit_prefix_hex=self._config.digit_prefix_hex,
            )
        except FatalEntropyError:
            self._rounds_skipped += 1
            logger.error("Skipping round %s: local entropy failure", boundary_iso, exc_info=True)
            return None
        current.commit(result)

        preview_time = self._clock.now()
        preview_lag = preview_time - current.preview_at
        if preview_lag > _OVERRUN_WARN:
            logger.warning(
                "Preview for %s is %.1fs late (mixing took %.0fms)",
                boundary_iso,
                preview_lag.total_seconds(),
                result.mix_ms,
            )
        self._sink.emit(
            "preview",
            {
                "minuteBoundary": boundary_iso,
                "previewAt": isoformat_z(current.preview_at),
                "digit": result.digit,
                "hash": result.proof,
                "provider": result.primary,
            },
        )
        logger.debug("Preview: %d provider=%s for %s", result.digit, result.primary, boundary_iso)

        self._state = SchedulerState.AWAITING_REVEAL
        if self._wait_until(current.boundary):
            logger.warning(
                "Stopped before reveal of %s: digit %d (hash %s) was previewed "
                "but never revealed",
                boundary_iso,
                result.digit,
                result.proof,
            )
            return None

        reveal_time = self._clock.now()
        self._sink.emit(
            "reveal",
            {
                "minuteBoundary": boundary_iso,
                "revealAt": isoformat_z(reveal_time),
                "digit": result.digit,
                "hash": result.proof,
                "provider": result.primary,
            },
        )
        logger.debug("Reveal: %d provider=%s for %s", result.digit, result.primary, boundary_iso)

        self._stats.record(result.primary)
        self._sink.emit("stats", self._stats.snapshot())
        self._rounds_completed += 1

        if self._round_logger is not None:
            self._round_logger.log_round(
                self._make_record(current, result, preview_lag, reveal_time - current.boundary)
            )
        return current

    @staticmethod
    def _make_record(
        current: Round,
        result: MixResult,
        preview_lag: timedelta,
        reveal_lag: timedelta,
    ) -> RoundRecord:
        return RoundRecord(
            timestamp_ns=time.time_ns(),
            boundary=isoformat_z(current.boundary),
            digit=result.digit,
            proof=result.proof,
            primary=result.primary,
            contributors=tuple(c.name for c in result.contributions),
            unavailable=tuple(c.name for c in result.attempts if not c.success),
            remote_contributed=any(
                c.kind is SourceKind.REMOTE_BEACON for c in result.contributions
            ),
            mix_ms=result.mix_ms,
            preview_lag_ms=max(0.0, preview_lag.total_seconds() * 1000.0),
            reveal_lag_ms=max(0.0, reveal_lag.total_seconds() * 1000.0),
        )

    def _wait_until(self, target: datetime) -> bool:
        """Sleep until *target* on the wall clock.

        Returns:
            ``True`` if :meth:`stop` was requested before *target*.
        """
        while not self._stop.is_set():
            remaining = (target - self._clock.now()).total_seconds()
            if remaining <= 0:
                return False
            if self._clock.wait(min(remaining, self._config.max_sleep_chunk_s), self._stop):
                return True
        return True

    def run(self, max_rounds: int | None = None) -> None:
        """Run rounds back to back until stopped or *max_rounds* boundaries pass.

        Raises:
            FatalEntropyError: If the local CSPRNG is unusable at start.
        """
        self._providers.ensure_local_entropy()
        boundary = next_boundary(self._clock.now(), self._config.boundary_epsilon_s)
        logger.info(
            "Scheduler started: first boundary %s, preview offset %.1fs",
            isoformat_z(boundary),
            self._offset.total_seconds(),
        )
        attempted = 0
        while not self._stop.is_set() and (max_rounds is None or attempted < max_rounds):
            self.run_round(boundary)
            attempted += 1
            boundary += MINUTE
        logger.info(
            "Scheduler stopped: %d rounds revealed, %d skipped",
            self._rounds_completed,
            self._rounds_skipped,
        )

    def start(self) -> None:
        """Run the loop on a background daemon thread.

        Raises:
            RuntimeError: If the scheduler is already running.
            FatalEntropyError: If the local CSPRNG is unusable.
        """
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Scheduler already running")
        self._providers.ensure_local_entropy()
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name="minute-beacon-scheduler",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Request the loop to stop and wait for the thread to exit."""
        self._stop.set()
        self.join(timeout)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def health_check(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "active_boundary": None if self._active is None else isoformat_z(self._active.boundary),
            "preview_offset_s": self._offset.total_seconds(),
            "rounds_completed": self._rounds_completed,
            "rounds_skipped": self._rounds_skipped,
            "stats": self._stats.snapshot(),
            "providers": self._providers.health_check(),
        }
