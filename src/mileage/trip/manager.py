################################################################################
# File Name: manager.py
# Purpose/Description: Manual trip lifecycle: start, track, stop, classify
# Author: Mileage Core Team
# Creation Date: 2026-10-05
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-05    | Core Team    | Initial implementation
# 2026-10-10    | Core Team    | Trip detail edits and delete with sampler teardown
# ================================================================================
################################################################################

"""
Trip lifecycle manager.

Per-trip state machine: none -> active -> completed. The local store is the
ground truth; nothing here touches the network except address resolution,
which degrades to the offline fallback.

While a manually started trip is active, a background sampling
subscription appends positions through addPoint(). stop() cancels that
subscription before reading the final position, so no sample can land after
finalization. A sample that still arrives for a trip that is no longer
active is ignored.

Usage:
    manager = TripLifecycleManager(store, resolver, provider, sampler, finalizer)
    trip = manager.start(vehicle.id, purpose='client visit')
    ...
    completed = manager.stop(trip.id)
"""

import logging
import threading
from decimal import Decimal
from typing import Any

from ..exceptions import (
    InvalidTripStateError,
    PermissionDeniedError,
    TripConflictError,
)
from ..geocoding.resolver import AddressResolver
from ..location.provider import LocationProvider
from ..location.sampler import LocationSampler, Subscription
from ..location.types import LocationSample
from ..store import LocalStore, calculateReimbursement
from ..types import Coordinates, Trip, TripClassification, TripStatus
from .finalizer import TripFinalizer

logger = logging.getLogger(__name__)

DEFAULT_TRACKING_INTERVAL_SECONDS = 10.0


class TripLifecycleManager:
    """
    Orchestrates manually started trips.

    Attributes:
        store: Local store bundle
        resolver: Address resolution service
        locationProvider: Position and permission source
        sampler: Background sampler; None disables continuous tracking
        finalizer: Shared completion logic

    Example:
        manager = TripLifecycleManager(store, resolver, provider, LocationSampler(provider))
        trip = manager.start(vehicleId, purpose='client visit')
        manager.classify(trip.id, TripClassification.BUSINESS)
        completed = manager.stop(trip.id)
        value = manager.reimbursement(completed.distanceMiles)
    """

    def __init__(
        self,
        store: LocalStore,
        resolver: AddressResolver,
        locationProvider: LocationProvider,
        sampler: LocationSampler | None = None,
        finalizer: TripFinalizer | None = None,
        config: dict[str, Any] | None = None
    ):
        self.store = store
        self.resolver = resolver
        self.locationProvider = locationProvider
        self.sampler = sampler
        self.finalizer = finalizer or TripFinalizer(store.trips, resolver)

        trackingConfig = (config or {}).get('tracking', {})
        self._intervalSeconds = float(
            trackingConfig.get('intervalSeconds', DEFAULT_TRACKING_INTERVAL_SECONDS)
        )

        self._subscription: Subscription | None = None
        self._trackedTripId: str | None = None
        self._lock = threading.Lock()

    # ================================================================================
    # Lifecycle
    # ================================================================================

    def start(self, vehicleId: str, purpose: str = '', notes: str = '') -> Trip:
        """
        Start a manual trip at the current position.

        Args:
            vehicleId: Vehicle being driven
            purpose: Free-text trip purpose
            notes: Free-text notes

        Returns:
            The new active trip (classification 'business')

        Raises:
            PermissionDeniedError: If location permission is missing
            TripConflictError: If a trip is already active
            NotFoundError: If the vehicle does not exist
            LocationError: If no position can be acquired
        """
        with self._lock:
            self._checkPermissions()

            active = self.store.trips.getActiveTrip()
            if active is not None:
                raise TripConflictError(
                    "A trip is already in progress",
                    details={'activeTripId': active.id, 'autoDetected': active.autoDetected}
                )

            self.store.vehicles.requireVehicle(vehicleId)

            coords = self.locationProvider.getCurrentPosition()
            startAddress = self.resolver.resolveOnCapture(coords)

            trip = self.store.trips.createTrip(
                vehicleId=vehicleId,
                startCoords=coords,
                startAddress=startAddress,
                purpose=purpose,
                notes=notes,
                autoDetected=False,
            )

            self._startTracking(trip.id)

        logger.info(f"TRIP STARTED | tripId={trip.id} | vehicleId={vehicleId} | manual=True")
        return trip

    def stop(self, tripId: str) -> Trip:
        """
        Stop an active trip and seal it.

        Returns:
            The completed trip

        Raises:
            NotFoundError: If the trip does not exist
            InvalidTripStateError: If the trip is not active
        """
        with self._lock:
            trip = self.store.trips.requireTrip(tripId)
            if trip.status != TripStatus.ACTIVE:
                raise InvalidTripStateError(
                    "Trip is not active",
                    details={'tripId': tripId, 'status': trip.status.value}
                )

            self._stopTracking(tripId)

            endCoords = self._acquireFinalPosition(trip)
            return self.finalizer.finalize(tripId, endCoords, appendEnd=endCoords is not None)

    def addPoint(self, tripId: str, coords: Coordinates) -> Trip | None:
        """
        Append a position to an active trip.

        Returns:
            Updated trip, or None if the trip is gone or no longer active
        """
        return self.store.trips.appendPoint(tripId, coords)

    def classify(self, tripId: str, classification: TripClassification | str) -> Trip:
        """
        Set a trip's classification. Legal in any status; the hash is unaffected
        and the trip is queued for the next sync.

        Raises:
            NotFoundError: If the trip does not exist
            ValueError: If the classification is unknown
        """
        value = TripClassification(classification)
        trip = self.store.trips.updateTrip(tripId, classification=value, syncedToCloud=False)
        logger.info(f"Trip classified | tripId={tripId} | classification={value.value}")
        return trip

    def updateDetails(
        self,
        tripId: str,
        purpose: str | None = None,
        notes: str | None = None
    ) -> Trip:
        """
        Edit purpose and notes.

        The trip hash is a completion-time seal and is not recomputed. The
        trip is queued for the next sync.

        Raises:
            NotFoundError: If the trip does not exist
            InvalidTripStateError: If the trip has been exported
        """
        trip = self.store.trips.requireTrip(tripId)
        if trip.status == TripStatus.EXPORTED:
            raise InvalidTripStateError(
                "Exported trips cannot be edited",
                details={'tripId': tripId}
            )

        fields: dict[str, str] = {}
        if purpose is not None:
            fields['purpose'] = purpose
        if notes is not None:
            fields['notes'] = notes
        if not fields:
            return trip
        return self.store.trips.updateTrip(tripId, syncedToCloud=False, **fields)

    def deleteTrip(self, tripId: str) -> None:
        """
        Delete a trip, stopping its tracking first if it is being tracked.

        Raises:
            NotFoundError: If the trip does not exist
        """
        with self._lock:
            self._stopTracking(tripId)
            self.store.trips.deleteTrip(tripId)

    def getActiveTrip(self) -> Trip | None:
        return self.store.trips.getActiveTrip()

    def reimbursement(self, distanceMiles: float) -> Decimal:
        """
        Reimbursement value for a distance at the configured rate.

        Returns:
            Amount rounded to cents
        """
        return calculateReimbursement(distanceMiles, self.store.settings.getRatePerMile())

    def shutdown(self) -> None:
        """Cancel tracking without finalizing; the trip stays active for resume."""
        with self._lock:
            self._stopTracking(self._trackedTripId)

    # ================================================================================
    # Internals
    # ================================================================================

    def _checkPermissions(self) -> None:
        foreground = self.locationProvider.hasForegroundPermission()
        background = self.locationProvider.hasBackgroundPermission()
        if not (foreground and background):
            raise PermissionDeniedError(
                "Location permission is required to record a trip",
                details={'foreground': foreground, 'background': background}
            )

    def _startTracking(self, tripId: str) -> None:
        if self.sampler is None:
            return

        def onSample(sample: LocationSample) -> None:
            self.addPoint(tripId, sample.coords)

        self._subscription = self.sampler.subscribe(
            onSample,
            intervalSeconds=self._intervalSeconds,
            name=f'trip-{tripId[:8]}'
        )
        self._trackedTripId = tripId

    def _stopTracking(self, tripId: str | None) -> None:
        if self._subscription is None or tripId is None or tripId != self._trackedTripId:
            return
        self._subscription.cancel()
        self._subscription = None
        self._trackedTripId = None

    def _acquireFinalPosition(self, trip: Trip) -> Coordinates | None:
        try:
            return self.locationProvider.getCurrentPosition()
        except Exception as e:
            logger.warning(
                f"Final position unavailable, ending at last point | tripId={trip.id} | error={e}"
            )
            return None
