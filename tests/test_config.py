"""Tests for minute_beacon.config.

Covers:
- Default values
- Environment variable loading (monkeypatch)
- Field constraint validation
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from minute_beacon.config import DEFAULT_SOURCES, BeaconConfig


def _config(**kwargs: object) -> BeaconConfig:
    return BeaconConfig(_env_file=None, **kwargs)  # type: ignore[arg-type]


class TestBeaconConfigDefaults:
    def test_scheduling_defaults(self) -> None:
        cfg = _config()
        assert cfg.preview_offset_s == 30.0
        assert cfg.boundary_epsilon_s == 1.0
        assert cfg.max_sleep_chunk_s == 1.0

    def test_provider_defaults(self) -> None:
        cfg = _config()
        assert cfg.sources == list(DEFAULT_SOURCES)
        assert cfg.remote_sources_enabled is True
        assert cfg.remote_timeout_s == 4.5
        assert len(cfg.drand_urls) == 3
        assert cfg.csprng_bytes == 32
        assert cfg.fortuna_output_bytes == 32
        assert cfg.fortuna_reseed_interval == 100

    def test_mixing_defaults(self) -> None:
        cfg = _config()
        assert cfg.payload_cap_hex == 64
        assert cfg.digit_prefix_hex == 16

    def test_logging_defaults(self) -> None:
        cfg = _config()
        assert cfg.log_level == "summary"
        assert cfg.diagnostic_mode is False


class TestEnvironmentLoading:
    def test_scalar_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BEACON_PREVIEW_OFFSET_S", "34")
        monkeypatch.setenv("BEACON_REMOTE_SOURCES_ENABLED", "false")
        cfg = _config()
        assert cfg.preview_offset_s == 34.0
        assert cfg.remote_sources_enabled is False

    def test_list_override_is_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BEACON_DRAND_URLS", '["https://a.test/latest", "https://b.test/latest"]')
        assert _config().drand_urls == ["https://a.test/latest", "https://b.test/latest"]

    def test_init_kwargs_beat_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BEACON_PREVIEW_OFFSET_S", "40")
        assert _config(preview_offset_s=30.0).preview_offset_s == 30.0


class TestValidation:
    @pytest.mark.parametrize("offset", [0.0, -5.0, 60.0, 90.0])
    def test_offset_must_fit_inside_a_minute(self, offset: float) -> None:
        with pytest.raises(ValidationError):
            _config(preview_offset_s=offset)

    def test_remote_timeout_bounded(self) -> None:
        with pytest.raises(ValidationError):
            _config(remote_timeout_s=30.0)

    def test_fortuna_output_whole_blocks(self) -> None:
        with pytest.raises(ValidationError, match="multiple of 16"):
            _config(fortuna_output_bytes=20)

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            _config(log_level="verbose")

    def test_empty_sources(self) -> None:
        with pytest.raises(ValidationError):
            _config(sources=[])

    def test_prefix_within_digest(self) -> None:
        with pytest.raises(ValidationError):
            _config(digit_prefix_hex=65)
