################################################################################
# File Name: finalizer.py
# Purpose/Description: Trip completion shared by manual stop and auto-detection
# Author: Mileage Core Team
# Creation Date: 2026-10-05
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-05    | Core Team    | Initial implementation
# 2026-10-08    | Core Team    | Route map rendering at completion
# ================================================================================
################################################################################

"""
Trip finalization.

Completion work, in order:
1. optionally append the final position to the point sequence;
2. recompute distance in both units from the full sequence;
3. resolve the end address (falls back offline, never blocks);
4. hash the finalized fields;
5. optionally render the route map (failures are logged, never fatal);
6. persist end time, end coordinates, points, distance, address, map, hash
   and status=completed in one update.

The caller must cancel any sampling subscription for the trip first.
"""

import logging
from dataclasses import replace

from ..exceptions import InvalidTripStateError
from ..geocoding.resolver import AddressResolver
from ..geometry import UNIT_KM, UNIT_MILES, totalDistance
from ..integrity import hashTrip
from ..mapimage import RouteMapRenderer
from ..store.trips import TripStore
from ..types import Coordinates, Trip, TripStatus, utcNow

logger = logging.getLogger(__name__)


class TripFinalizer:
    """
    Moves an active trip to completed.

    Attributes:
        tripStore: Trip persistence
        resolver: End-address resolution
        mapRenderer: Optional route renderer; None disables map images
    """

    def __init__(
        self,
        tripStore: TripStore,
        resolver: AddressResolver,
        mapRenderer: RouteMapRenderer | None = None
    ):
        self.tripStore = tripStore
        self.resolver = resolver
        self.mapRenderer = mapRenderer

    def finalize(
        self,
        tripId: str,
        endCoords: Coordinates | None = None,
        appendEnd: bool = True
    ) -> Trip:
        """
        Complete an active trip.

        Args:
            tripId: Trip to complete
            endCoords: Final position; defaults to the last recorded point
            appendEnd: Append endCoords to the point sequence first

        Returns:
            The completed trip

        Raises:
            NotFoundError: If the trip does not exist
            InvalidTripStateError: If the trip is not active
        """
        trip = self.tripStore.requireTrip(tripId)
        if trip.status != TripStatus.ACTIVE:
            raise InvalidTripStateError(
                "Only an active trip can be completed",
                details={'tripId': tripId, 'status': trip.status.value}
            )

        points = list(trip.points)
        if endCoords is None:
            endCoords = points[-1]
        elif appendEnd:
            points.append(endCoords)

        finalized = replace(
            trip,
            points=points,
            endCoords=endCoords,
            endTime=utcNow(),
            distanceMiles=totalDistance(points, UNIT_MILES),
            distanceKm=totalDistance(points, UNIT_KM),
            endAddress=self.resolver.resolveOnCapture(endCoords),
            status=TripStatus.COMPLETED,
        )
        finalized.hash = hashTrip(finalized)
        finalized.mapImageUri = self._renderMap(finalized)

        completed = self.tripStore.updateTrip(
            tripId,
            endTime=finalized.endTime,
            endCoords=finalized.endCoords,
            points=finalized.points,
            distanceMiles=finalized.distanceMiles,
            distanceKm=finalized.distanceKm,
            endAddress=finalized.endAddress,
            mapImageUri=finalized.mapImageUri,
            hash=finalized.hash,
            status=TripStatus.COMPLETED,
        )

        logger.info(
            f"TRIP COMPLETED | tripId={tripId} | miles={completed.distanceMiles:.2f} "
            f"| points={len(completed.points)} | autoDetected={completed.autoDetected} "
            f"| needsLookup={completed.needsLookup}"
        )
        return completed

    def _renderMap(self, trip: Trip) -> str | None:
        if self.mapRenderer is None:
            return None
        try:
            return self.mapRenderer.renderTrip(trip).path
        except Exception as e:
            logger.warning(f"Route map rendering failed | tripId={trip.id} | error={e}")
            return None
