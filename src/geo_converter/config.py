"""
Geo Converter — Configuration
==============================
Bundles provider and pacing settings, with environment-variable
overrides and factories for the objects the batch processor needs.

Environment variables (all optional)::

    GEO_CONVERTER_BASE_URL      Nominatim search endpoint
    GEO_CONVERTER_USER_AGENT    User-Agent header sent with each request
    GEO_CONVERTER_TIMEOUT       Per-request timeout, seconds
    GEO_CONVERTER_RATE_LIMIT    Delay after each row, seconds
    GEO_CONVERTER_MAX_RETRIES   Retries for transport failures
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

from geo_converter.client import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    NominatimClient,
)
from geo_converter.exceptions import InputValidationError
from geo_converter.pacing import (
    DEFAULT_DELAY_SECONDS,
    ExponentialBackoff,
    FixedDelay,
    NoRetry,
    RateLimiter,
    RetryPolicy,
)
from geo_converter.validators import Validators

ENV_PREFIX = "GEO_CONVERTER_"


@dataclass(frozen=True)
class GeocoderConfig:
    """Configuration bundle for the geocoding client and batch pacing.

    Attributes:
        base_url: Nominatim search endpoint.
                  <!-- PLACEHOLDER: point at a self-hosted Nominatim for
                       large batches, e.g. "http://localhost:8080/search" -->
        user_agent: Descriptive User-Agent required by the Nominatim
                    usage policy.
                    <!-- PLACEHOLDER: replace with your application name,
                         e.g. "acme-store-locator/2.1" -->
        timeout: Per-request timeout in seconds.
        rate_limit_delay: Seconds to pause after every row.  Keep at
                          ``>= 1.0`` for the public Nominatim service.
        max_retries: Retries for transport failures.  ``0`` disables
                     retrying.
        backoff_base: Wait before the first retry, doubled each time.
    """

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    rate_limit_delay: float = DEFAULT_DELAY_SECONDS
    max_retries: int = 0
    backoff_base: float = 1.0

    def __post_init__(self) -> None:
        Validators.assert_positive(self.timeout, "timeout")
        Validators.assert_non_negative(self.rate_limit_delay, "rate_limit_delay")
        Validators.assert_non_negative(self.max_retries, "max_retries")
        Validators.assert_non_negative(self.backoff_base, "backoff_base")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GeocoderConfig":
        """Build a config from ``GEO_CONVERTER_*`` environment variables.

        Args:
            environ: Mapping to read instead of :data:`os.environ`.

        Raises:
            InputValidationError: If a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        fields: dict[str, Any] = {}
        casts = {
            "BASE_URL": ("base_url", str),
            "USER_AGENT": ("user_agent", str),
            "TIMEOUT": ("timeout", float),
            "RATE_LIMIT": ("rate_limit_delay", float),
            "MAX_RETRIES": ("max_retries", int),
        }
        for suffix, (name, cast) in casts.items():
            raw = env.get(ENV_PREFIX + suffix)
            if raw is None or raw == "":
                continue
            try:
                fields[name] = cast(raw)
            except ValueError as exc:
                raise InputValidationError(
                    f"Invalid value for {ENV_PREFIX + suffix}: {raw!r}"
                ) from exc
        return cls(**fields)

    def with_overrides(self, **overrides: Any) -> "GeocoderConfig":
        """Return a copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def build_client(self) -> NominatimClient:
        return NominatimClient(
            base_url=self.base_url,
            user_agent=self.user_agent,
            timeout=self.timeout,
        )

    def build_rate_limiter(self) -> RateLimiter:
        return FixedDelay(self.rate_limit_delay)

    def build_retry_policy(self) -> RetryPolicy:
        if self.max_retries == 0:
            return NoRetry()
        return ExponentialBackoff(max_retries=self.max_retries, base_delay=self.backoff_base)
