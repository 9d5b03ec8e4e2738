################################################################################
# File Name: types.py
# Purpose/Description: Geocoding result types and errors
# Author: Mileage Core Team
# Creation Date: 2026-10-05
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-05    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Error category from common base class
# ================================================================================
################################################################################

"""
Type definitions for address resolution.

- GeocodingError: transport failure talking to the provider
- ResolutionSummary: outcome of a resolvePending() batch
- GeocoderStats: request counters kept by a provider
"""

from dataclasses import dataclass
from typing import Any

from common.error_handler import RetryableError

from ..exceptions import MileageError

# Default provider settings
NOMINATIM_BASE_URL = 'https://nominatim.openstreetmap.org'
DEFAULT_USER_AGENT = 'AuditproofMileage/1.0'
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_REVERSE_ZOOM = 18


class GeocodingError(MileageError, RetryableError):
    """
    Provider could not be reached or returned an unusable response.

    Distinct from "no result", which providers report by returning None.
    Callers on capture paths map both to the offline fallback.
    """


@dataclass
class ResolutionSummary:
    """
    Outcome of one address backfill pass.

    Attributes:
        total: Trips that were flagged at the start of the pass
        resolved: Trips whose every fallback field resolved (flag cleared)
        failed: Trips still flagged after the pass
    """
    total: int = 0
    resolved: int = 0
    failed: int = 0

    def toDict(self) -> dict[str, Any]:
        return {
            'total': self.total,
            'resolved': self.resolved,
            'failed': self.failed,
        }


@dataclass
class GeocoderStats:
    """Request counters for a geocoding provider."""
    reverseRequests: int = 0
    forwardRequests: int = 0
    emptyResults: int = 0
    errors: int = 0

    def toDict(self) -> dict[str, Any]:
        return {
            'reverseRequests': self.reverseRequests,
            'forwardRequests': self.forwardRequests,
            'emptyResults': self.emptyResults,
            'errors': self.errors,
        }
