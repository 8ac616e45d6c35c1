"""
Geocoding Service

This service interfaces with a Nominatim-compatible search API to turn
address strings into coordinates.

API Endpoint: https://nominatim.openstreetmap.org/search
Documentation: https://nominatim.org/release-docs/latest/api/Search/
"""

import logging
import threading
from typing import Any, List, Optional

import httpx

from geonear.core.config import settings
from geonear.geo.lookups import Lookup, register_lookup
from geonear.schemas.geo import GeoPoint
from geonear.schemas.health import ServiceHealth

logger = logging.getLogger(__name__)


class GeocodingServiceError(Exception):
    """Base exception for geocoding service errors."""


class GeocodingAPIError(GeocodingServiceError):
    """Raised when the geocoding API returns an error."""


class GeocodingNetworkError(GeocodingServiceError):
    """Raised when network communication fails."""


class GeocodingDataError(GeocodingServiceError):
    """Raised when response data cannot be parsed."""


class GeocodingService(Lookup):
    """
    Service for resolving addresses through a Nominatim search endpoint.

    Calls are blocking and are never retried here.
    """

    name = "nominatim"

    def __init__(self):
        """
        Initialize the geocoding service with configuration.
        """
        self._api_url = settings.GEOCODER_API_URL
        self._timeout = settings.GEOCODER_TIMEOUT
        self._user_agent = settings.GEOCODER_USER_AGENT
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        """
        Get or create the HTTP client for the geocoding API.
        """
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        base_url=self._api_url,
                        timeout=self._timeout,
                        headers={"User-Agent": self._user_agent},
                    )
        return self._client

    def search(self, query: str) -> Optional[GeoPoint]:
        """
        Geocode an address string.

        Args:
            query: Free-form address

        Returns:
            GeoPoint of the best match, or None if nothing matched

        Raises:
            GeocodingNetworkError: If the request times out or cannot be sent
            GeocodingAPIError: If the API answers with an error status
            GeocodingDataError: If the response cannot be parsed
        """
        if not query or not query.strip():
            return None

        try:
            client = self._get_client()
            response = client.get(
                "/search", params={"q": query.strip(), "format": "jsonv2", "limit": 1}
            )
            response.raise_for_status()
            return self._parse_results(response.json())

        except httpx.TimeoutException as e:
            logger.error("Request to geocoding API timed out")
            raise GeocodingNetworkError("Request timed out") from e

        except httpx.HTTPStatusError as e:
            logger.error("Geocoding API returned an error: %s", str(e))
            raise GeocodingAPIError(f"Geocoding API error: {str(e)}") from e

        except httpx.HTTPError as e:
            logger.error("Network error while contacting geocoding API: %s", str(e))
            raise GeocodingNetworkError(f"Network error: {str(e)}") from e

        except (KeyError, IndexError, ValueError, TypeError) as e:
            logger.error("Failed to parse geocoding API response: %s", str(e))
            raise GeocodingDataError(f"Invalid response data: {str(e)}") from e

    def _parse_results(self, data: List[Any]) -> Optional[GeoPoint]:
        """
        Parse the first search hit into a GeoPoint.
        """
        if not data:
            return None
        first = data[0]
        return GeoPoint(latitude=float(first["lat"]), longitude=float(first["lon"]))

    def health_check(self) -> ServiceHealth:
        """
        Perform a health check of the geocoding API.
        """
        try:
            client = self._get_client()
            response = client.get("/status", params={"format": "json"})

            if response.status_code == 200:
                return ServiceHealth(
                    healthy=True,
                    message="Geocoding API is responding",
                )
            return ServiceHealth(
                healthy=False,
                message=f"Geocoding API returned status code: {response.status_code}",
            )

        except httpx.TimeoutException:
            return ServiceHealth(
                healthy=False,
                message="Geocoding API request timed out",
            )
        except Exception as e:  # pylint: disable=broad-except
            return ServiceHealth(
                healthy=False,
                message=f"Geocoding API check failed: {str(e)}",
            )

    def close(self):
        """
        Close the HTTP client.
        """
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None


# Singleton instance for dependency injection
geocoding_service = GeocodingService()
register_lookup(geocoding_service.name, geocoding_service)
