################################################################################
# File Name: resolver.py
# Purpose/Description: Capture-time address resolution and deferred backfill
# Author: Mileage Core Team
# Creation Date: 2026-10-05
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-05    | Core Team    | Initial implementation
# 2026-10-09    | Core Team    | Single-trip resolve and forward lookup
# ================================================================================
################################################################################

"""
Address resolution service.

Capture paths never wait for the network: resolveOnCapture() returns either
a real address or the offline fallback immediately. Trips holding a
fallback are flagged needs_lookup and backfilled later by resolvePending(),
which clears the flag only when every fallback field of a trip resolved in
the same pass.
"""

import logging
from typing import Any

from common.error_handler import ErrorCollector

from ..addresses import formatFallbackAddress, isFallback, parseFallbackAddress
from ..store.trips import TripStore
from ..types import Coordinates, Trip
from .provider import GeocodingProvider
from .types import ResolutionSummary

logger = logging.getLogger(__name__)


class AddressResolver:
    """
    Best-effort address resolution with offline fallback.

    Attributes:
        tripStore: Store used to read flagged trips and persist addresses
        provider: Geocoding collaborator

    Example:
        resolver = AddressResolver(store.trips, NominatimGeocoder(config))
        address = resolver.resolveOnCapture(coords)
        summary = resolver.resolvePending()
    """

    def __init__(self, tripStore: TripStore, provider: GeocodingProvider):
        self.tripStore = tripStore
        self.provider = provider

    @staticmethod
    def isFallback(address: str | None) -> bool:
        return isFallback(address)

    def resolveOnCapture(self, coords: Coordinates) -> str:
        """
        Resolve an address now or fall back immediately.

        Args:
            coords: Position to describe

        Returns:
            Provider address, or the fallback encoding of coords on any
            failure or empty result
        """
        address = self._lookup(coords)
        if address is None:
            fallback = formatFallbackAddress(coords)
            logger.info("Address unavailable, using offline fallback")
            return fallback
        return address

    def resolvePending(self) -> ResolutionSummary:
        """
        Re-attempt every trip flagged needs_lookup.

        Returns:
            ResolutionSummary with total, resolved and failed trip counts
        """
        trips = self.tripStore.listTripsNeedingLookup()
        summary = ResolutionSummary(total=len(trips))
        collector = ErrorCollector()

        for trip in trips:
            try:
                if self._resolveTrip(trip):
                    summary.resolved += 1
                else:
                    summary.failed += 1
            except Exception as e:
                summary.failed += 1
                collector.add(e, tripId=trip.id)

        if collector.hasErrors():
            collector.report()

        logger.info(
            f"Address backfill complete | total={summary.total} "
            f"| resolved={summary.resolved} | failed={summary.failed}"
        )
        return summary

    def resolveTrip(self, tripId: str) -> bool:
        """
        Resolve the fallback addresses of one trip.

        Returns:
            True if the trip no longer needs lookup, False otherwise
            (including unknown trip ids)
        """
        trip = self.tripStore.getTrip(tripId)
        if trip is None:
            return False
        return self._resolveTrip(trip)

    def getPendingCount(self) -> int:
        return len(self.tripStore.listTripsNeedingLookup())

    def lookupCoordinates(self, address: str) -> Coordinates | None:
        """
        Forward-geocode a free-text address.

        Returns:
            Coordinates, or None on failure or empty result
        """
        try:
            return self.provider.forwardGeocode(address)
        except Exception as e:
            logger.warning(f"Forward geocode failed | error={e}")
            return None

    def _resolveTrip(self, trip: Trip) -> bool:
        updates: dict[str, str] = {}
        allResolved = True

        for field, address, coords in (
            ('startAddress', trip.startAddress, trip.startCoords),
            ('endAddress', trip.endAddress, trip.endCoords),
        ):
            if not isFallback(address):
                continue

            resolved = self._lookup(coords or parseFallbackAddress(address))
            if resolved is None:
                allResolved = False
            else:
                updates[field] = resolved

        # Changed addresses must reach the remote copy again
        fields: dict[str, Any] = dict(updates)
        if updates:
            fields['syncedToCloud'] = False

        if allResolved:
            self.tripStore.updateTrip(trip.id, needsLookup=False, **fields)
            logger.info(f"Trip addresses resolved | tripId={trip.id}")
        elif updates:
            self.tripStore.updateTrip(trip.id, **fields)

        return allResolved

    def _lookup(self, coords: Coordinates | None) -> str | None:
        if coords is None:
            return None
        try:
            return self.provider.reverseGeocode(coords)
        except Exception as e:
            logger.warning(f"Reverse geocode failed | error={e}")
            return None
