"""Remote randomness beacons fetched over HTTP.

Each beacon issues a GET and extracts one field from the JSON body.
Endpoints are tried in their fixed priority order and the first success
wins; there are no retries within a round. ``timeout_s`` is a deadline for
the whole exchange with one endpoint (connect, headers and body together),
enforced on the caller's side, so a server trickling its response cannot
hold a round past it. Every failure mode (timeout, connection error, non-2xx
status, malformed JSON, missing field, a closed client) surfaces as
:class:`~minute_beacon.exceptions.EntropyUnavailableError`, which
``produce()`` turns into an ``Unavailable`` contribution.
"""

from __future__ import annotations

import concurrent.futures
import json
import logging
import time
from abc import abstractmethod
from typing import TYPE_CHECKING, Any

import httpx

from minute_beacon.entropy.base import EntropySource
from minute_beacon.entropy.registry import register_entropy_source
from minute_beacon.entropy.types import SourceKind
from minute_beacon.exceptions import EntropyUnavailableError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from minute_beacon.config import BeaconConfig

logger = logging.getLogger("minute_beacon")

_TOKEN_MAX_CHARS = 128
_MAX_BODY_BYTES = 64 * 1024
_MAX_WORKERS = 4


def normalize_token(value: Any, max_chars: int = _TOKEN_MAX_CHARS) -> str:
    """Turn an extracted JSON value into a bounded, lowercase token.

    Raises:
        EntropyUnavailableError: If the value is not a non-empty string.
    """
    if not isinstance(value, str):
        raise EntropyUnavailableError(f"expected a string field, got {type(value).__name__}")
    token = value.strip().lower()
    if not token:
        raise EntropyUnavailableError("beacon field is empty")
    return token[:max_chars]


class HttpBeaconSource(EntropySource):
    """Base for JSON-over-HTTP beacons with ordered mirror fallback.

    Args:
        urls: Endpoints in priority order.
        timeout_s: Deadline in seconds for each endpoint, start to full body.
        client: Optional pre-built ``httpx.Client`` (e.g. with a mock
            transport). When omitted the source owns its own client.
    """

    def __init__(
        self,
        urls: Sequence[str],
        timeout_s: float = 4.5,
        client: httpx.Client | None = None,
    ) -> None:
        if not urls:
            raise ValueError("at least one beacon URL is required")
        self._urls = tuple(urls)
        self._timeout_s = timeout_s
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(timeout_s),
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )
        # Requests run on workers so the caller can give up at the deadline
        # even while a worker is still blocked on the socket.
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=_MAX_WORKERS,
            thread_name_prefix="minute-beacon-http",
        )
        self._failures = 0

    @property
    def kind(self) -> SourceKind:
        return SourceKind.REMOTE_BEACON

    @property
    def urls(self) -> tuple[str, ...]:
        return self._urls

    @abstractmethod
    def extract(self, body: Any) -> Any:
        """Pull the designated output field out of a decoded JSON body.

        May raise ``KeyError``/``TypeError``/``IndexError`` on shape mismatch;
        the caller treats those as an unavailable endpoint.
        """

    def fetch(self) -> str:
        """Return a normalized token from the first endpoint that answers.

        Raises:
            EntropyUnavailableError: If every endpoint failed.
        """
        errors: list[str] = []
        for url in self._urls:
            try:
                return self._fetch_one(url)
            except EntropyUnavailableError as exc:
                errors.append(f"{url}: {exc}")
                logger.debug("Beacon %r endpoint %s unavailable: %s", self.name, url, exc)

        self._failures += 1
        raise EntropyUnavailableError("; ".join(errors))

    def _fetch_one(self, url: str) -> str:
        deadline = time.monotonic() + self._timeout_s
        try:
            future = self._executor.submit(self._download, url, deadline)
        except RuntimeError as exc:
            raise EntropyUnavailableError(f"source is closed: {exc}") from exc

        try:
            raw = future.result(timeout=self._timeout_s)
        except concurrent.futures.TimeoutError as exc:
            future.cancel()
            raise EntropyUnavailableError(
                f"no complete response within {self._timeout_s:g}s"
            ) from exc
        except EntropyUnavailableError:
            raise
        except httpx.HTTPError as exc:
            raise EntropyUnavailableError(f"{type(exc).__name__}: {exc}") from exc
        except Exception as exc:
            raise EntropyUnavailableError(f"request failed: {exc!r}") from exc

        try:
            body = json.loads(raw)
            value = self.extract(body)
        except (ValueError, KeyError, TypeError, IndexError) as exc:
            raise EntropyUnavailableError(f"malformed body: {exc!r}") from exc
        return normalize_token(value)

    def _download(self, url: str, deadline: float) -> bytes:
        """Read the full response body, giving up once *deadline* passes."""
        with self._client.stream("GET", url, timeout=self._timeout_s) as response:
            if not response.is_success:
                raise EntropyUnavailableError(f"HTTP {response.status_code}")
            body = bytearray()
            for chunk in response.iter_bytes():
                body += chunk
                if len(body) > _MAX_BODY_BYTES:
                    raise EntropyUnavailableError("response body too large")
                if time.monotonic() > deadline:
                    raise EntropyUnavailableError(
                        f"response still incomplete after {self._timeout_s:g}s"
                    )
        return bytes(body)

    def close(self) -> None:
        """Stop the request workers and close the client if this source created it."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        if self._owns_client:
            self._client.close()

    def health_check(self) -> dict[str, Any]:
        return {
            "source": self.name,
            "kind": self.kind.value,
            "urls": list(self._urls),
            "timeout_s": self._timeout_s,
            "failures": self._failures,
        }


@register_entropy_source("nist_beacon")
class NistBeaconSource(HttpBeaconSource):
    """Public randomness beacon: ``pulse.outputValue`` (512-bit hex)."""

    @classmethod
    def from_config(cls, config: BeaconConfig) -> NistBeaconSource:
        return cls(urls=[config.nist_beacon_url], timeout_s=config.remote_timeout_s)

    @property
    def name(self) -> str:
        """Return ``'nist_beacon'``."""
        return "nist_beacon"

    def extract(self, body: Any) -> Any:
        return body["pulse"]["outputValue"]


@register_entropy_source("drand")
class DrandSource(HttpBeaconSource):
    """Distributed randomness network: ``randomness``, else ``signature``.

    The primary endpoint is tried first, then each mirror in order.
    """

    @classmethod
    def from_config(cls, config: BeaconConfig) -> DrandSource:
        return cls(urls=config.drand_urls, timeout_s=config.remote_timeout_s)

    @property
    def name(self) -> str:
        """Return ``'drand'``."""
        return "drand"

    def extract(self, body: Any) -> Any:
        if not isinstance(body, dict):
            raise TypeError(f"expected a JSON object, got {type(body).__name__}")
        if "round" not in body:
            raise KeyError("round")
        return body.get("randomness") or body["signature"]
