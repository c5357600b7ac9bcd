"""
Geo Converter — Geocoding Client
=================================
Issues one geocoding lookup per free-text query and normalises the
provider's response into a :class:`~geo_converter.models.Coordinate`.

Architecture:
    ``GeocodeClient`` is an abstract strategy — swap providers without
    changing the batch processor.  ``NominatimClient`` talks to the
    OpenStreetMap Nominatim search endpoint.

The client does not retry and does not cache: two identical queries
perform two independent requests.  Retries, if any, are the caller's
responsibility (see :mod:`geo_converter.pacing`).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import requests

from geo_converter.exceptions import (
    GeocodingRateLimitError,
    NotFoundError,
    TransportError,
)
from geo_converter.models import Coordinate

logger = logging.getLogger("geo_converter.client")

DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "geo-converter/1.0"
DEFAULT_TIMEOUT = 10.0


class GeocodeClient(ABC):
    """Abstract strategy for a geocoding provider.

    Subclass this and implement :meth:`lookup` to add a new provider.
    """

    @abstractmethod
    def lookup(self, query: str) -> Coordinate:
        """Geocode a single free-text query.

        Args:
            query: The search string, e.g. ``"Downtown, Austin, TX"``.

        Returns:
            The provider's top-ranked match as a :class:`Coordinate`.

        Raises:
            NotFoundError: If the provider returned zero matches.
            TransportError: If the request did not complete successfully.
        """


class NominatimClient(GeocodeClient):
    """Geocoding client for OpenStreetMap's Nominatim search API.

    **Free to use** — no API key required.  The Nominatim usage policy
    asks for a descriptive ``User-Agent`` and at most one request per
    second; pacing is handled by the batch processor, not here.

    Args:
        base_url: Search endpoint URL.  Override to use a self-hosted
                  Nominatim instance.
        user_agent: Identifies your application to Nominatim.
        timeout: Per-request timeout in seconds.
        session: Optional pre-configured :class:`requests.Session`.

    Reference:
        https://nominatim.org/release-docs/develop/api/Search/
    """

    PROVIDER = "Nominatim"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = self.user_agent

    def lookup(self, query: str) -> Coordinate:
        """Geocode *query* via Nominatim and return the first match.

        Raises:
            NotFoundError: On an empty result array.
            GeocodingRateLimitError: On HTTP 429.
            TransportError: On network failure, any other non-success
                status, or a body that is not a usable JSON array.
        """
        logger.debug("Nominatim lookup: %s", query)
        params = {"format": "json", "q": query}
        try:
            response = self._session.get(
                self.base_url, params=params, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TransportError(f"Failed to fetch coordinates: {exc}") from exc

        if response.status_code == 429:
            raise GeocodingRateLimitError(
                self.PROVIDER, retry_after=_retry_after(response)
            )
        if not response.ok:
            raise TransportError(
                f"Failed to fetch coordinates: {self.PROVIDER} returned "
                f"HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(
                f"{self.PROVIDER} returned a non-JSON response"
            ) from exc

        if not isinstance(data, list):
            raise TransportError(
                f"{self.PROVIDER} returned an unexpected payload: expected a JSON array"
            )
        if not data:
            raise NotFoundError()

        return self._to_coordinate(data[0])

    def _to_coordinate(self, hit: dict) -> Coordinate:
        """Map the first result element to a :class:`Coordinate`."""
        try:
            return Coordinate(
                latitude=float(hit["lat"]),
                longitude=float(hit["lon"]),
                resolved_name=str(hit.get("display_name", "")),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise TransportError(
                f"{self.PROVIDER} returned a malformed result: {exc}"
            ) from exc

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._session.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self.base_url!r}, timeout={self.timeout!r})"


def _retry_after(response: requests.Response) -> int | None:
    """Parse a numeric ``Retry-After`` header, or return ``None``."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
