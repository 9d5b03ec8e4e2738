################################################################################
# File Name: provider.py
# Purpose/Description: Reverse/forward geocoding over the Nominatim HTTP API
# Author: Mileage Core Team
# Creation Date: 2026-10-05
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-05    | Core Team    | Initial implementation
# 2026-10-11    | Core Team    | Optional retry for transient failures
# ================================================================================
################################################################################

"""
Geocoding providers.

GeocodingProvider is the collaborator contract:
- reverseGeocode(coords) -> display address, or None when nothing was found
- forwardGeocode(address) -> Coordinates, or None when nothing was found
Transport failures (offline, timeout, HTTP error, bad JSON) raise
GeocodingError.

NominatimGeocoder implements it over HTTP with a short timeout. Retries are
off by default so trip capture degrades to the offline fallback at once.

Usage:
    geocoder = NominatimGeocoder(config)
    address = geocoder.reverseGeocode(Coordinates(40.7128, -74.0060))
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from common.error_handler import retry

from ..types import Coordinates
from .types import (
    DEFAULT_REVERSE_ZOOM,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    NOMINATIM_BASE_URL,
    GeocoderStats,
    GeocodingError,
)

logger = logging.getLogger(__name__)


class GeocodingProvider(ABC):
    """Reverse/forward geocoding collaborator."""

    @abstractmethod
    def reverseGeocode(self, coords: Coordinates) -> str | None:
        """Display address for coords, or None if the provider found nothing."""

    @abstractmethod
    def forwardGeocode(self, address: str) -> Coordinates | None:
        """Coordinates for an address, or None if the provider found nothing."""


class NominatimGeocoder(GeocodingProvider):
    """
    OpenStreetMap Nominatim client.

    Attributes:
        config: Configuration dictionary with 'geocoding' section

    Example:
        geocoder = NominatimGeocoder({'geocoding': {'timeoutSeconds': 3}})
        try:
            address = geocoder.reverseGeocode(coords)
        except GeocodingError:
            address = None
    """

    def __init__(self, config: dict[str, Any] | None = None):
        geoConfig = (config or {}).get('geocoding', {})
        self._baseUrl = geoConfig.get('baseUrl', NOMINATIM_BASE_URL).rstrip('/')
        self._userAgent = geoConfig.get('userAgent', DEFAULT_USER_AGENT)
        self._timeout = float(geoConfig.get('timeoutSeconds', DEFAULT_TIMEOUT_SECONDS))
        self._zoom = int(geoConfig.get('reverseZoom', DEFAULT_REVERSE_ZOOM))
        self._maxRetries = int(geoConfig.get('maxRetries', 0))
        self._retryDelay = float(geoConfig.get('retryDelaySeconds', 1.0))
        self._stats = GeocoderStats()

        self._get = retry(
            maxRetries=self._maxRetries,
            initialDelay=self._retryDelay,
            retryableExceptions=[GeocodingError]
        )(self._request)

    def reverseGeocode(self, coords: Coordinates) -> str | None:
        """
        Look up a display address.

        Raises:
            GeocodingError: On transport failure
        """
        self._stats.reverseRequests += 1
        data = self._get('reverse', {
            'lat': coords.lat,
            'lon': coords.lng,
            'format': 'json',
            'zoom': self._zoom,
            'addressdetails': 1,
        })

        address = data.get('display_name') if isinstance(data, dict) else None
        if not address:
            self._stats.emptyResults += 1
            logger.debug("Reverse geocode returned no address")
            return None
        return address

    def forwardGeocode(self, address: str) -> Coordinates | None:
        """
        Look up coordinates for a free-text address.

        Raises:
            GeocodingError: On transport failure or malformed coordinates
        """
        self._stats.forwardRequests += 1
        data = self._get('search', {'q': address, 'format': 'json', 'limit': 1})

        if not isinstance(data, list) or not data:
            self._stats.emptyResults += 1
            return None

        try:
            return Coordinates(lat=float(data[0]['lat']), lng=float(data[0]['lon']))
        except (KeyError, TypeError, ValueError) as e:
            self._stats.errors += 1
            raise GeocodingError(
                "Malformed search result",
                details={'address': address, 'error': str(e)}
            ) from e

    def getStats(self) -> dict[str, Any]:
        return self._stats.toDict()

    def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        url = f"{self._baseUrl}/{endpoint}?{urlencode(params)}"
        request = Request(
            url,
            headers={
                'User-Agent': self._userAgent,
                'Accept': 'application/json'
            }
        )

        try:
            with urlopen(request, timeout=self._timeout) as response:
                return json.loads(response.read().decode('utf-8'))

        except HTTPError as e:
            self._stats.errors += 1
            raise GeocodingError(
                f"HTTP error {e.code}: {e.reason}",
                details={'endpoint': endpoint, 'status': e.code}
            ) from e
        except URLError as e:
            self._stats.errors += 1
            raise GeocodingError(
                f"Geocoder unreachable: {e.reason}",
                details={'endpoint': endpoint, 'timeout': self._timeout}
            ) from e
        except TimeoutError as e:
            self._stats.errors += 1
            raise GeocodingError(
                f"Geocoder timed out after {self._timeout}s",
                details={'endpoint': endpoint, 'timeout': self._timeout}
            ) from e
        except json.JSONDecodeError as e:
            self._stats.errors += 1
            raise GeocodingError(
                f"Invalid JSON response: {e}",
                details={'endpoint': endpoint}
            ) from e
