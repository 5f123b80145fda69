"""Diagnostic logger for per-round events.

Uses the standard ``logging`` module with the ``"minute_beacon"`` logger.
No ``print()`` statements. Supports three verbosity levels and an
in-memory diagnostic mode for post-hoc analysis.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from minute_beacon.config import BeaconConfig
    from minute_beacon.logging.types import RoundRecord

logger = logging.getLogger("minute_beacon")


class RoundLogger:
    """Per-round diagnostic logger.

    Log levels:
        ``"none"``: No logging output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One line per round with digit, primary provider,
        contributor count and timing.

        ``"full"``: Full JSON dump of all record fields.
    """

    def __init__(self, config: BeaconConfig) -> None:
        self._log_level = config.log_level
        self._diagnostic_mode = config.diagnostic_mode
        self._records: list[RoundRecord] = []

    def log_round(self, record: RoundRecord) -> None:
        """Log a single revealed round."""
        if self._diagnostic_mode:
            self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            logger.info(
                "round=%s digit=%d primary=%s sources=%d/%d%s mix=%.2fms "
                "preview_lag=%.1fms reveal_lag=%.1fms",
                record.boundary,
                record.digit,
                record.primary,
                len(record.contributors),
                len(record.contributors) + len(record.unavailable),
                "" if record.remote_contributed else " [LOCAL-ONLY]",
                record.mix_ms,
                record.preview_lag_ms,
                record.reveal_lag_ms,
            )
        elif self._log_level == "full":
            logger.info("round_record: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[RoundRecord]:
        """Return all stored records (requires ``diagnostic_mode=True``)."""
        return list(self._records)

    def get_summary_stats(self) -> dict[str, Any]:
        """Compute summary statistics over all stored records.

        Returns:
            Dictionary with aggregate stats, or empty dict if no records.
        """
        if not self._records:
            return {}

        n = len(self._records)
        digit_counts = [0] * 10
        for r in self._records:
            digit_counts[r.digit] += 1
        mix_times = [r.mix_ms for r in self._records]
        local_only = sum(1 for r in self._records if not r.remote_contributed)
        return {
            "total_rounds": n,
            "digit_counts": digit_counts,
            "mean_mix_ms": sum(mix_times) / n,
            "max_mix_ms": max(mix_times),
            "mean_preview_lag_ms": sum(r.preview_lag_ms for r in self._records) / n,
            "max_reveal_lag_ms": max(r.reveal_lag_ms for r in self._records),
            "local_only_count": local_only,
            "local_only_rate": local_only / n,
        }
