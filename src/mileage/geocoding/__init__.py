################################################################################
# File Name: __init__.py
# Purpose/Description: Address resolution package
# Author: Mileage Core Team
# Creation Date: 2026-10-05
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-05    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Address resolution package.

Usage:
    from mileage.geocoding import AddressResolver, createGeocoderFromConfig

    resolver = AddressResolver(store.trips, createGeocoderFromConfig(config))
"""

from typing import Any

from ..addresses import OFFLINE_MARKER, formatFallbackAddress, isFallback
from .provider import GeocodingProvider, NominatimGeocoder
from .resolver import AddressResolver
from .types import GeocoderStats, GeocodingError, ResolutionSummary


def createGeocoderFromConfig(config: dict[str, Any]) -> GeocodingProvider:
    """Build the configured geocoding provider."""
    return NominatimGeocoder(config)


__all__ = [
    'AddressResolver',
    'GeocodingProvider',
    'NominatimGeocoder',
    'GeocodingError',
    'GeocoderStats',
    'ResolutionSummary',
    'OFFLINE_MARKER',
    'formatFallbackAddress',
    'isFallback',
    'createGeocoderFromConfig',
]
