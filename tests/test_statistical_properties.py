"""Statistical property tests for the digit derivation.

These tests validate distributional invariants rather than code paths:

1. **Uniformity of the digest reduction**: varying tag lists reduced by
   ``digest_tags`` give digits indistinguishable from uniform on 0..9.
2. **Uniformity end to end**: rounds mixed from the real local providers
   over successive boundaries are uniform too.

Both use the chi-square goodness-of-fit test.

Dependencies:
    scipy (chi-square test), listed in [project.optional-dependencies] test.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import numpy as np
from scipy import stats

from minute_beacon.clock import MINUTE
from minute_beacon.entropy.provider_set import build_provider_set
from minute_beacon.mixer import boundary_tag, digest_tags, mix

# Number of rounds for the pure reduction test.
_NUM_DIGESTS: int = 20_000

# End-to-end rounds through the real providers.
_NUM_ROUNDS: int = 3_000

# Generous significance level: only a grossly biased reduction should fail.
_CHI2_ALPHA: float = 0.001

_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _chi2_pvalue(digits: list[int]) -> float:
    counts = np.bincount(np.asarray(digits), minlength=10)
    return float(stats.chisquare(counts).pvalue)


class TestDigitUniformity:
    def test_digest_reduction_is_uniform(self) -> None:
        digits = []
        for i in range(_NUM_DIGESTS):
            tags = [f"csprng:{os.urandom(32).hex()}", boundary_tag(_START + i * MINUTE)]
            digit, _ = digest_tags(tags)
            digits.append(digit)
        assert set(digits) == set(range(10))
        assert _chi2_pvalue(digits) > _CHI2_ALPHA

    def test_boundary_alone_spreads_digits(self) -> None:
        """Even a degenerate constant provider yields varied digits."""
        digits = [
            digest_tags(["stuck:00", boundary_tag(_START + i * MINUTE)])[0]
            for i in range(_NUM_DIGESTS)
        ]
        assert _chi2_pvalue(digits) > _CHI2_ALPHA

    def test_mixed_rounds_are_uniform(self, local_config) -> None:
        providers = build_provider_set(local_config)
        digits = [
            mix(_START + timedelta(minutes=i), providers).digit for i in range(_NUM_ROUNDS)
        ]
        assert all(0 <= d <= 9 for d in digits)
        assert _chi2_pvalue(digits) > _CHI2_ALPHA
