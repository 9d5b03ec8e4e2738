################################################################################
# File Name: detector.py
# Purpose/Description: Speed-threshold state machine that starts and stops trips
# Author: Mileage Core Team
# Creation Date: 2026-10-06
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-06    | Core Team    | Initial implementation
# 2026-10-09    | Core Team    | Periodic full distance recompute, trip adoption
# 2026-10-12    | Core Team    | Yield to an active manual trip instead of failing
# 2026-10-16    | Core Team    | Finalize outside the state lock
# ================================================================================
################################################################################

"""
Automatic trip detection.

Consumes location samples (from its own background subscription or fed
directly through processSample()) and drives this state machine:

    IDLE --speed >= start--> ACCELERATING --held for start dwell--> TRIP_ACTIVE
    ACCELERATING --speed < start--> IDLE                     (false start)
    TRIP_ACTIVE --speed < stop--> DECELERATING
    DECELERATING --speed >= stop--> TRIP_ACTIVE              (traffic light)
    DECELERATING --below stop for idle dwell--> IDLE         (trip finalized)

Dwell clocks run on sample timestamps, not wall time, so replayed or
delayed samples behave the same as live ones. The trip is seeded at the
sample that confirms driving; every later sample is appended, and the
sample that completes the idle dwell becomes the trip's end point.

If a trip is already active when driving is confirmed (for example a
manually started one), the detector records nothing and returns to IDLE.
Disabling the detector mid-trip finalizes the trip first.

A finished trip is released under the state lock and finalized after the
lock is dropped, so address lookup and map rendering never block
getStatus() or the sampler thread.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from ..exceptions import InvalidTripStateError, MileageError, NotFoundError, TripConflictError
from ..geocoding.resolver import AddressResolver
from ..location.provider import LocationProvider
from ..location.sampler import LocationSampler, Subscription
from ..location.types import LocationSample
from ..store import LocalStore
from ..trip.finalizer import TripFinalizer
from ..types import Trip
from .types import (
    AutoDetectionConfig,
    AutoDetectionState,
    DetectorStats,
    DetectorStatus,
    speedToMph,
)

logger = logging.getLogger(__name__)

_RECORDING_STATES = (AutoDetectionState.TRIP_ACTIVE, AutoDetectionState.DECELERATING)


class AutoTripDetector:
    """
    Starts and stops trips from vehicle speed.

    Attributes:
        store: Local store bundle
        finalizer: Completion logic shared with the manual lifecycle
        resolver: Start-address resolution
        locationProvider: Permission source (and position source for the sampler)
        sampler: Background sampler; None means samples are fed by the caller

    Example:
        detector = AutoTripDetector(store, finalizer, resolver, provider, sampler)
        if not detector.enable():
            promptForPermissions()

        # Later
        detector.disable()
    """

    def __init__(
        self,
        store: LocalStore,
        finalizer: TripFinalizer,
        resolver: AddressResolver,
        locationProvider: LocationProvider,
        sampler: LocationSampler | None = None,
        config: AutoDetectionConfig | None = None
    ):
        self.store = store
        self.finalizer = finalizer
        self.resolver = resolver
        self.locationProvider = locationProvider
        self.sampler = sampler
        self._config = config or AutoDetectionConfig()

        # State tracking
        self._enabled = False
        self._state = AutoDetectionState.IDLE
        self._vehicleId: str | None = None
        self._activeTripId: str | None = None
        self._subscription: Subscription | None = None

        # Dwell timing, epoch millis of the sample that started the condition
        self._aboveThresholdSince: int | None = None
        self._belowThresholdSince: int | None = None
        self._lastSpeedMph = 0.0
        self._pointsSinceRecompute = 0

        self._stats = DetectorStats()

        # Callbacks
        self._onTripStart: Callable[[Trip], None] | None = None
        self._onTripEnd: Callable[[Trip], None] | None = None
        self._onStateChange: Callable[[AutoDetectionState, AutoDetectionState], None] | None = None

        self._lock = threading.Lock()

    # ================================================================================
    # Callbacks
    # ================================================================================

    def registerCallbacks(
        self,
        onTripStart: Callable[[Trip], None] | None = None,
        onTripEnd: Callable[[Trip], None] | None = None,
        onStateChange: Callable[[AutoDetectionState, AutoDetectionState], None] | None = None
    ) -> None:
        """
        Register callbacks for detector events.

        Args:
            onTripStart: Called with the new trip when driving is confirmed
            onTripEnd: Called with the completed trip after idle dwell or disable
            onStateChange: Called on state change (oldState, newState)
        """
        self._onTripStart = onTripStart
        self._onTripEnd = onTripEnd
        self._onStateChange = onStateChange

    # ================================================================================
    # Lifecycle
    # ================================================================================

    def enable(self, vehicleId: str | None = None) -> bool:
        """
        Start detecting trips.

        Requires foreground and background location permission and at least
        one vehicle. An active auto-detected trip left over from a previous
        run is adopted and continues recording.

        Args:
            vehicleId: Vehicle for detected trips; defaults to the configured
                vehicle, then the most recently added one

        Returns:
            True if enabled (or already enabled), False if a precondition
            is not met
        """
        with self._lock:
            if self._enabled:
                return True

            if not (self.locationProvider.hasForegroundPermission()
                    and self.locationProvider.hasBackgroundPermission()):
                logger.warning("Auto-detection not enabled | reason=location permission missing")
                return False

            resolvedVehicleId = self._resolveVehicleId(vehicleId)
            if resolvedVehicleId is None:
                logger.warning("Auto-detection not enabled | reason=no vehicle")
                return False

            self._vehicleId = resolvedVehicleId
            self._resetTimers()
            self._adoptActiveTrip()
            self._enabled = True

            logger.info(
                f"Auto-detection enabled | vehicleId={self._vehicleId} "
                f"| startSpeed={self._config.startSpeedMph}mph "
                f"| startDwell={self._config.startDwellSeconds}s "
                f"| stopSpeed={self._config.stopSpeedMph}mph "
                f"| idleDwell={self._config.idleDwellSeconds}s"
            )

        if self.sampler is not None:
            subscription = self.sampler.subscribe(
                self.processSample,
                intervalSeconds=self._config.sampleIntervalSeconds,
                name='auto-detect'
            )
            with self._lock:
                self._subscription = subscription

        return True

    def disable(self) -> None:
        """
        Stop detecting trips, finalizing any trip in progress first.

        Raises:
            DatabaseError: If the in-progress trip cannot be persisted
        """
        with self._lock:
            if not self._enabled:
                return
            self._enabled = False
            subscription, self._subscription = self._subscription, None

        # Cancel outside the lock; a sample callback may be waiting for it
        if subscription is not None:
            subscription.cancel()

        finishingTripId = None
        with self._lock:
            if self._state in _RECORDING_STATES and self._activeTripId:
                logger.info(f"Finalizing trip before disable | tripId={self._activeTripId}")
                finishingTripId = self._takeTrip()
            self._resetTimers()
            self._transitionState(AutoDetectionState.IDLE)

        if finishingTripId:
            self._finalizeTrip(finishingTripId)

        logger.info("Auto-detection disabled")

    @property
    def isEnabled(self) -> bool:
        return self._enabled

    def getStatus(self) -> DetectorStatus:
        with self._lock:
            return DetectorStatus(
                enabled=self._enabled,
                state=self._state,
                activeTripId=self._activeTripId,
                vehicleId=self._vehicleId,
                lastSpeedMph=self._lastSpeedMph,
            )

    def getStats(self) -> DetectorStats:
        with self._lock:
            return DetectorStats(**vars(self._stats))

    def getConfig(self) -> AutoDetectionConfig:
        return self._config

    # ================================================================================
    # Sample Processing
    # ================================================================================

    def processSample(self, sample: LocationSample) -> AutoDetectionState:
        """
        Feed one location sample through the state machine.

        Args:
            sample: Position with speed in m/s (None or negative reads as 0)

        Returns:
            State after processing
        """
        finishingTripId = None
        with self._lock:
            if not self._enabled:
                return self._state

            self._stats.samplesProcessed += 1
            speedMph = speedToMph(sample.speedMps)
            self._lastSpeedMph = speedMph
            nowMs = sample.timestampMs

            if self._state == AutoDetectionState.IDLE:
                if speedMph >= self._config.startSpeedMph:
                    self._aboveThresholdSince = nowMs
                    self._transitionState(AutoDetectionState.ACCELERATING)
                    self._checkStartDwell(sample, nowMs)

            elif self._state == AutoDetectionState.ACCELERATING:
                if speedMph >= self._config.startSpeedMph:
                    self._checkStartDwell(sample, nowMs)
                else:
                    self._stats.falseStarts += 1
                    self._aboveThresholdSince = None
                    self._transitionState(AutoDetectionState.IDLE)
                    logger.debug(f"False start discarded | speed={speedMph:.1f}mph")

            elif self._state == AutoDetectionState.TRIP_ACTIVE:
                if not self._recordPoint(sample):
                    return self._state
                if speedMph < self._config.stopSpeedMph:
                    self._belowThresholdSince = nowMs
                    self._transitionState(AutoDetectionState.DECELERATING)
                    finishingTripId = self._checkIdleDwell(nowMs)

            elif self._state == AutoDetectionState.DECELERATING:
                if not self._recordPoint(sample):
                    return self._state
                if speedMph >= self._config.stopSpeedMph:
                    self._belowThresholdSince = None
                    self._transitionState(AutoDetectionState.TRIP_ACTIVE)
                else:
                    finishingTripId = self._checkIdleDwell(nowMs)

            state = self._state

        if finishingTripId:
            self._finalizeTrip(finishingTripId)
        return state

    def _checkStartDwell(self, sample: LocationSample, nowMs: int) -> None:
        if self._aboveThresholdSince is None:
            return
        elapsedSeconds = (nowMs - self._aboveThresholdSince) / 1000.0
        if elapsedSeconds >= self._config.startDwellSeconds:
            self._startTrip(sample)

    def _checkIdleDwell(self, nowMs: int) -> str | None:
        """Trip id to finalize once the idle dwell is complete."""
        if self._belowThresholdSince is None:
            return None
        elapsedSeconds = (nowMs - self._belowThresholdSince) / 1000.0
        if elapsedSeconds >= self._config.idleDwellSeconds:
            return self._takeTrip()
        return None

    def _startTrip(self, sample: LocationSample) -> None:
        self._aboveThresholdSince = None

        active = self.store.trips.getActiveTrip()
        if active is not None:
            self._skipStart(active.id)
            return

        try:
            startAddress = self.resolver.resolveOnCapture(sample.coords)
            trip = self.store.trips.createTrip(
                vehicleId=self._vehicleId,
                startCoords=sample.coords,
                startAddress=startAddress,
                autoDetected=True,
            )
        except TripConflictError as e:
            self._skipStart(e.details.get('activeTripId'))
            return
        except MileageError as e:
            logger.error(f"Auto trip could not be created | error={e}")
            self._transitionState(AutoDetectionState.IDLE)
            return

        self._activeTripId = trip.id
        self._pointsSinceRecompute = 0
        self._stats.tripsStarted += 1
        self._stats.lastTripStart = datetime.now()
        self._transitionState(AutoDetectionState.TRIP_ACTIVE)

        logger.info(f"TRIP STARTED | tripId={trip.id} | vehicleId={self._vehicleId} | auto=True")

        if self._onTripStart:
            try:
                self._onTripStart(trip)
            except Exception as e:
                logger.error(f"onTripStart callback error: {e}")

    def _skipStart(self, activeTripId: str | None) -> None:
        self._stats.skippedStarts += 1
        self._transitionState(AutoDetectionState.IDLE)
        logger.info(f"Auto start skipped, another trip is active | activeTripId={activeTripId}")

    def _recordPoint(self, sample: LocationSample) -> bool:
        """Append to the detector's trip; False if the trip was stopped elsewhere."""
        self._pointsSinceRecompute += 1
        fullRecompute = self._pointsSinceRecompute >= self._config.recomputeEveryPoints

        trip = self.store.trips.appendPoint(
            self._activeTripId,
            sample.coords,
            incremental=not fullRecompute
        )
        if fullRecompute:
            self._pointsSinceRecompute = 0

        if trip is None:
            logger.warning(
                f"Detector trip no longer active, releasing | tripId={self._activeTripId}"
            )
            self._releaseTrip()
            return False
        return True

    def _takeTrip(self) -> str | None:
        """Release the detector's trip under the lock, returning it for finalizing."""
        tripId = self._activeTripId
        self._releaseTrip()
        return tripId

    def _finalizeTrip(self, tripId: str) -> None:
        # Called without the lock; geocoding and map rendering may be slow
        try:
            completed = self.finalizer.finalize(tripId, endCoords=None, appendEnd=False)
        except (NotFoundError, InvalidTripStateError) as e:
            logger.warning(f"Detector trip already closed | tripId={tripId} | error={e}")
            return

        with self._lock:
            self._stats.tripsCompleted += 1
            self._stats.lastTripEnd = datetime.now()

        if self._onTripEnd:
            try:
                self._onTripEnd(completed)
            except Exception as e:
                logger.error(f"onTripEnd callback error: {e}")

    def _releaseTrip(self) -> None:
        self._activeTripId = None
        self._resetTimers()
        self._transitionState(AutoDetectionState.IDLE)

    def _transitionState(self, newState: AutoDetectionState) -> None:
        oldState = self._state
        if oldState == newState:
            return

        self._state = newState
        logger.debug(f"Auto-detection state: {oldState.value} -> {newState.value}")

        if self._onStateChange:
            try:
                self._onStateChange(oldState, newState)
            except Exception as e:
                logger.error(f"onStateChange callback error: {e}")

    # ================================================================================
    # Internals
    # ================================================================================

    def _resetTimers(self) -> None:
        self._aboveThresholdSince = None
        self._belowThresholdSince = None
        self._pointsSinceRecompute = 0

    def _resolveVehicleId(self, vehicleId: str | None) -> str | None:
        candidate = vehicleId or self._config.vehicleId
        if candidate:
            return candidate if self.store.vehicles.getVehicle(candidate) else None

        vehicles = self.store.vehicles.listVehicles()
        return vehicles[0].id if vehicles else None

    def _adoptActiveTrip(self) -> None:
        active = self.store.trips.getActiveTrip()
        if active is not None and active.autoDetected:
            self._activeTripId = active.id
            self._state = AutoDetectionState.TRIP_ACTIVE
            logger.info(f"Resuming auto-detected trip | tripId={active.id}")
        else:
            self._activeTripId = None
            self._state = AutoDetectionState.IDLE
