"""Configuration system for minute-beacon.

Uses pydantic-settings for declarative, layered configuration:
init kwargs -> environment variables (BEACON_*) -> .env file -> field defaults.

The configuration is loaded once at process start and held for the life of
the process. In particular the preview offset never changes between rounds.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Canonical provider line-up, highest priority first.
DEFAULT_SOURCES: tuple[str, ...] = ("nist_beacon", "drand", "csprng", "fortuna", "chacha20")

_AES_BLOCK_BYTES = 16


class BeaconConfig(BaseSettings):
    """Configuration for minute-beacon.

    Resolution order: init kwargs -> env vars (BEACON_*) -> .env file -> defaults.

    Fields are grouped by the component that reads them:
    - **Scheduling**: preview offset and wall-clock wait granularity.
    - **Providers**: which sources run, remote endpoints and timeouts,
      local generator sizing.
    - **Mixing**: payload and digest prefix lengths.
    - **Logging**: per-round diagnostic verbosity.
    """

    model_config = SettingsConfigDict(
        env_prefix="BEACON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Scheduling ---

    preview_offset_s: float = Field(
        default=30.0,
        gt=0.0,
        lt=60.0,
        description="Seconds before each minute boundary at which the preview is emitted",
    )
    boundary_epsilon_s: float = Field(
        default=1.0,
        ge=0.0,
        lt=60.0,
        description="Forward epsilon added to 'now' before ceiling to the next minute",
    )
    max_sleep_chunk_s: float = Field(
        default=1.0,
        gt=0.0,
        description="Longest single sleep before the wall clock is re-read",
    )

    # --- Providers ---

    sources: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SOURCES),
        min_length=1,
        description="Registered entropy source names to build",
    )
    remote_sources_enabled: bool = Field(
        default=True,
        description="Build remote beacon sources listed in 'sources'",
    )
    remote_timeout_s: float = Field(
        default=4.5,
        gt=0.0,
        le=5.0,
        description="Per-request HTTP timeout for remote beacons",
    )
    nist_beacon_url: str = Field(
        default="https://beacon.nist.gov/beacon/2.0/pulse/last",
        description="Randomness beacon endpoint returning pulse.outputValue",
    )
    drand_urls: list[str] = Field(
        default_factory=lambda: [
            "https://api.drand.sh/public/latest",
            "https://api2.drand.sh/public/latest",
            "https://drand.cloudflare.com/public/latest",
        ],
        min_length=1,
        description="Distributed-randomness endpoints, primary first then mirrors",
    )
    csprng_bytes: int = Field(
        default=32,
        gt=0,
        description="Bytes drawn from the OS CSPRNG per round",
    )
    fortuna_output_bytes: int = Field(
        default=32,
        gt=0,
        description="Keystream bytes produced by the stream-counter source per call",
    )
    fortuna_reseed_interval: int = Field(
        default=100,
        gt=0,
        description="Stream-counter calls between HMAC rekeys",
    )

    # --- Mixing ---

    payload_cap_hex: int = Field(
        default=64,
        gt=0,
        description="Maximum payload characters kept per contribution tag",
    )
    digit_prefix_hex: int = Field(
        default=16,
        gt=0,
        le=64,
        description="Digest hex prefix interpreted as the integer reduced mod 10",
    )

    # --- Logging ---

    log_level: Literal["none", "summary", "full"] = Field(
        default="summary",
        description="Per-round logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Store all round records in memory for analysis",
    )

    @field_validator("fortuna_output_bytes")
    @classmethod
    def _whole_cipher_blocks(cls, value: int) -> int:
        if value % _AES_BLOCK_BYTES:
            raise ValueError(f"fortuna_output_bytes must be a multiple of {_AES_BLOCK_BYTES}")
        return value
