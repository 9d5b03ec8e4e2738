################################################################################
# File Name: addresses.py
# Purpose/Description: Offline fallback address encoding and detection
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Offline fallback addresses.

When live geocoding fails, an address field holds the coordinate pair at
five decimals followed by the offline marker, e.g.
"40.71280, -74.00600 (offline)". Both the store (needs_lookup evaluation)
and the address resolver depend on this encoding.
"""

from .types import Coordinates

OFFLINE_MARKER = '(offline)'
FALLBACK_PRECISION = 5


def formatFallbackAddress(coords: Coordinates) -> str:
    """Encode a coordinate pair as a fallback address."""
    return f"{coords.lat:.{FALLBACK_PRECISION}f}, {coords.lng:.{FALLBACK_PRECISION}f} {OFFLINE_MARKER}"


def isFallback(address: str | None) -> bool:
    """True iff address is present and carries the offline marker."""
    if not address:
        return False
    return OFFLINE_MARKER in address


def needsLookup(*addresses: str | None) -> bool:
    """True iff any present address is fallback-encoded."""
    return any(isFallback(address) for address in addresses)


def parseFallbackAddress(address: str | None) -> Coordinates | None:
    """
    Recover the coordinate pair from a fallback address.

    Returns:
        Coordinates, or None if address is not a parseable fallback
    """
    if not isFallback(address):
        return None
    pair = address.replace(OFFLINE_MARKER, '').strip()
    try:
        lat, lng = (float(part) for part in pair.split(','))
    except ValueError:
        return None
    return Coordinates(lat=lat, lng=lng)
