################################################################################
# File Name: test_drive_detector.py
# Purpose/Description: Tests for automatic trip detection
# Author: Mileage Core Team
# Creation Date: 2026-10-12
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-12    | Core Team    | Initial implementation
# 2026-10-14    | Core Team    | Manual/auto interplay and recompute cadence
# 2026-10-16    | Core Team    | Finalizer runs outside the detector lock
# ================================================================================
################################################################################

"""
Tests for mileage.drive.

Samples are fed straight into processSample(); dwell clocks run on sample
timestamps, so no test waits on wall time except the sampler test.

Run with:
    pytest tests/test_drive_detector.py -v
"""

from typing import Any
from unittest.mock import MagicMock

import pytest

from mileage.drive import (
    DEFAULT_RECOMPUTE_EVERY_POINTS,
    MPS_PER_MPH,
    AutoDetectionConfig,
    AutoDetectionState,
    AutoTripDetector,
    createAutoTripDetectorFromConfig,
    getAutoDetectionConfig,
    isAutoDetectionEnabled,
    speedToMph,
)
from mileage.geocoding import AddressResolver
from mileage.geometry import totalDistance
from mileage.location import LocationSampler, SimulatedLocationProvider
from mileage.store import LocalStore
from mileage.trip import TripFinalizer, TripLifecycleManager
from mileage.types import TripClassification, TripStatus, Vehicle

from tests.test_utils import driveSamples, makeSample, waitForCondition


@pytest.fixture
def detector(
    store: LocalStore,
    finalizer: TripFinalizer,
    resolver: AddressResolver,
    provider: SimulatedLocationProvider,
    vehicle: Vehicle
) -> AutoTripDetector:
    """Enabled detector with default thresholds and no background sampler."""
    autoDetector = AutoTripDetector(store, finalizer, resolver, provider)
    assert autoDetector.enable() is True
    return autoDetector


def _feed(detector: AutoTripDetector, samples) -> list[AutoDetectionState]:
    return [detector.processSample(sample) for sample in samples]


def _startTrip(detector: AutoTripDetector) -> None:
    """Drive at 15 mph long enough to confirm a trip (t=0..10s)."""
    _feed(detector, driveSamples(0, 12, 15))
    assert detector.getStatus().state == AutoDetectionState.TRIP_ACTIVE


# ================================================================================
# Conversion and Config Tests
# ================================================================================

@pytest.mark.unit
class TestHelpers:
    """Tests for speed conversion and config helpers."""

    def test_speedToMph_convertsMetresPerSecond(self):
        assert speedToMph(10 * MPS_PER_MPH) == pytest.approx(10.0)

    @pytest.mark.parametrize('speed', [None, -1.0])
    def test_speedToMph_unknownSpeed_readsAsStationary(self, speed):
        assert speedToMph(speed) == 0.0

    def test_getAutoDetectionConfig_defaults(self):
        config = getAutoDetectionConfig({})
        assert config == AutoDetectionConfig()
        assert config.recomputeEveryPoints == DEFAULT_RECOMPUTE_EVERY_POINTS

    def test_getAutoDetectionConfig_readsSection(self):
        config = getAutoDetectionConfig({'autoDetection': {
            'startSpeedMph': 12, 'idleDwellSeconds': 60, 'vehicleId': 'v9',
            'recomputeEveryPoints': '5',
        }})
        assert config.startSpeedMph == 12.0
        assert config.idleDwellSeconds == 60.0
        assert config.vehicleId == 'v9'
        assert config.recomputeEveryPoints == 5

    def test_isAutoDetectionEnabled_readsFlag(self):
        assert isAutoDetectionEnabled({'autoDetection': {'enabled': True}}) is True
        assert isAutoDetectionEnabled({}) is False


# ================================================================================
# Enable / Disable Tests
# ================================================================================

@pytest.mark.unit
class TestEnable:
    """Tests for enable() and disable()."""

    def test_enable_missingBackgroundPermission_returnsFalse(
        self, store, finalizer, resolver, vehicle
    ):
        provider = SimulatedLocationProvider(backgroundGranted=False)
        detector = AutoTripDetector(store, finalizer, resolver, provider)
        assert detector.enable() is False
        assert detector.isEnabled is False

    def test_enable_noVehicle_returnsFalse(self, store, finalizer, resolver, provider):
        detector = AutoTripDetector(store, finalizer, resolver, provider)
        assert detector.enable() is False

    def test_enable_unknownVehicleId_returnsFalse(
        self, store, finalizer, resolver, provider, vehicle
    ):
        detector = AutoTripDetector(store, finalizer, resolver, provider)
        assert detector.enable('missing') is False

    def test_enable_defaultsToNewestVehicle(self, detector: AutoTripDetector, vehicle: Vehicle):
        assert detector.getStatus().vehicleId == vehicle.id
        assert detector.enable() is True

    def test_enable_adoptsLeftoverAutoTrip(
        self, store, finalizer, resolver, provider, vehicle
    ):
        """
        Given: An auto-detected trip left active by a previous run
        When: The detector is enabled
        Then: It resumes recording that trip
        """
        leftover = store.trips.createTrip(vehicle.id, makeSample(0, 0).coords, autoDetected=True)
        detector = AutoTripDetector(store, finalizer, resolver, provider)
        detector.enable()

        status = detector.getStatus()
        assert status.state == AutoDetectionState.TRIP_ACTIVE
        assert status.activeTripId == leftover.id

    def test_enable_ignoresLeftoverManualTrip(
        self, store, finalizer, resolver, provider, vehicle
    ):
        store.trips.createTrip(vehicle.id, makeSample(0, 0).coords)
        detector = AutoTripDetector(store, finalizer, resolver, provider)
        detector.enable()
        assert detector.getStatus().activeTripId is None

    def test_processSample_whileDisabled_isIgnored(self, store, finalizer, resolver, provider):
        detector = AutoTripDetector(store, finalizer, resolver, provider)
        assert detector.processSample(makeSample(0, 30)) == AutoDetectionState.IDLE
        assert detector.getStats().samplesProcessed == 0

    def test_disable_midTrip_finalizesTrip(self, detector: AutoTripDetector, store: LocalStore):
        """
        Given: A trip being recorded by the detector
        When: The detector is disabled
        Then: The trip is completed and the detector is idle
        """
        _startTrip(detector)
        tripId = detector.getStatus().activeTripId

        detector.disable()

        assert store.trips.requireTrip(tripId).status == TripStatus.COMPLETED
        status = detector.getStatus()
        assert status.enabled is False
        assert status.state == AutoDetectionState.IDLE
        assert status.activeTripId is None


# ================================================================================
# State Machine Tests
# ================================================================================

@pytest.mark.unit
class TestStateMachine:
    """Tests for processSample() transitions."""

    def test_autoTrip_startsAfterDwellAndEndsAfterIdle(
        self, detector: AutoTripDetector, store: LocalStore
    ):
        """
        Given: 15 mph for 12 s (samples every 5 s), then 1 mph for 4 minutes
        When: The samples are processed
        Then: A trip starts at t=10 s, auto-detected and unclassified, and is
            finalized after 180 s below the stop speed, ending at the sample
            that completed the idle dwell
        """
        fast = driveSamples(0, 12, 15)
        states = _feed(detector, fast)
        assert states == [
            AutoDetectionState.ACCELERATING,
            AutoDetectionState.ACCELERATING,
            AutoDetectionState.TRIP_ACTIVE,
        ]

        trip = store.trips.getActiveTrip()
        assert trip.autoDetected is True
        assert trip.classification == TripClassification.UNCLASSIFIED
        assert trip.startCoords == fast[-1].coords

        endingSample = None
        for sample in driveSamples(15, 240, 1, startMiles=15 * 10 / 3600.0):
            if detector.processSample(sample) == AutoDetectionState.IDLE:
                endingSample = sample
                break

        assert endingSample is not None
        assert endingSample.timestampMs - fast[-1].timestampMs == 185_000
        completed = store.trips.requireTrip(trip.id)
        assert completed.status == TripStatus.COMPLETED
        assert completed.endCoords == endingSample.coords
        assert completed.points[-1] == endingSample.coords
        assert completed.hash is not None
        assert detector.getStats().tripsCompleted == 1

    def test_falseStart_returnsToIdle(self, detector: AutoTripDetector, store: LocalStore):
        states = _feed(detector, [makeSample(0, 15), makeSample(5, 5)])
        assert states == [AutoDetectionState.ACCELERATING, AutoDetectionState.IDLE]
        assert detector.getStats().falseStarts == 1
        assert store.trips.getActiveTrip() is None

    def test_trafficLight_resumesTrip(self, detector: AutoTripDetector, store: LocalStore):
        """
        Given: An active detected trip
        When: Speed drops below the stop threshold for 60 s then recovers
        Then: The trip continues and is not finalized
        """
        _startTrip(detector)
        tripId = detector.getStatus().activeTripId

        states = _feed(detector, driveSamples(15, 60, 0) + driveSamples(80, 10, 25))

        assert AutoDetectionState.DECELERATING in states
        assert states[-1] == AutoDetectionState.TRIP_ACTIVE
        assert store.trips.requireTrip(tripId).status == TripStatus.ACTIVE

    def test_unknownSpeed_countsAsStopped(self, detector: AutoTripDetector):
        _startTrip(detector)
        assert detector.processSample(makeSample(15, None)) == AutoDetectionState.DECELERATING

    def test_callbacks_receiveTripsAndTransitions(self, detector: AutoTripDetector):
        started, ended, transitions = [], [], []
        detector.registerCallbacks(
            onTripStart=started.append,
            onTripEnd=ended.append,
            onStateChange=lambda old, new: transitions.append((old, new)),
        )

        _startTrip(detector)
        _feed(detector, driveSamples(15, 180, 0))

        assert len(started) == 1
        assert len(ended) == 1
        assert ended[0].id == started[0].id
        assert transitions[0] == (AutoDetectionState.IDLE, AutoDetectionState.ACCELERATING)
        assert transitions[-1] == (AutoDetectionState.DECELERATING, AutoDetectionState.IDLE)

    def test_idleDwell_finalizesWithoutHoldingLock(self, detector: AutoTripDetector):
        """
        Given: A detected trip whose finalizer records the detector's lock state
        When: The idle dwell completes
        Then: The finalizer runs with the lock free and status stays readable
        """
        realFinalize = detector.finalizer.finalize
        observed = []

        def finalizeAndObserve(tripId, **kwargs):
            observed.append((detector._lock.locked(), detector.getStatus().state))
            return realFinalize(tripId, **kwargs)

        detector.finalizer.finalize = finalizeAndObserve
        _startTrip(detector)
        _feed(detector, driveSamples(15, 180, 0))

        assert observed == [(False, AutoDetectionState.IDLE)]
        assert detector.getStats().tripsCompleted == 1

    def test_disable_finalizesWithoutHoldingLock(self, detector: AutoTripDetector):
        realFinalize = detector.finalizer.finalize
        lockHeld = []

        def finalizeAndObserve(tripId, **kwargs):
            lockHeld.append(detector._lock.locked())
            return realFinalize(tripId, **kwargs)

        detector.finalizer.finalize = finalizeAndObserve
        _startTrip(detector)
        detector.disable()

        assert lockHeld == [False]

    def test_callbackError_doesNotBreakDetection(self, detector: AutoTripDetector):
        detector.registerCallbacks(onTripStart=MagicMock(side_effect=RuntimeError("boom")))
        _startTrip(detector)
        assert detector.getStats().tripsStarted == 1


# ================================================================================
# Manual / Auto Interplay
# ================================================================================

@pytest.mark.integration
class TestManualInterplay:
    """A manual trip and the detector sharing one store."""

    def test_confirmedStart_duringManualTrip_isSkipped(
        self, detector: AutoTripDetector, manager: TripLifecycleManager,
        store: LocalStore, vehicle: Vehicle
    ):
        """
        Given: A manually started trip
        When: The detector confirms driving
        Then: No second trip is created and the detector returns to idle
        """
        manual = manager.start(vehicle.id)

        states = _feed(detector, driveSamples(0, 12, 15))

        assert states[-1] == AutoDetectionState.IDLE
        assert detector.getStats().skippedStarts == 1
        assert store.trips.countActiveTrips() == 1
        assert store.trips.getActiveTrip().id == manual.id

    def test_detectorTrip_stoppedManually_isReleased(
        self, detector: AutoTripDetector, manager: TripLifecycleManager, store: LocalStore
    ):
        """
        Given: A trip started by the detector
        When: The user stops it through the lifecycle manager
        Then: The next sample releases the detector to idle without error
        """
        _startTrip(detector)
        tripId = detector.getStatus().activeTripId

        completed = manager.stop(tripId)
        state = detector.processSample(makeSample(20, 20))

        assert state == AutoDetectionState.IDLE
        assert detector.getStatus().activeTripId is None
        assert store.trips.requireTrip(tripId).points == completed.points


# ================================================================================
# Distance Recompute Tests
# ================================================================================

@pytest.mark.unit
class TestRecomputeCadence:
    """Tests for the incremental distance path."""

    @pytest.mark.parametrize('recomputeEvery', [1, 3, 1000])
    def test_distance_matchesFullRecompute(
        self, store, finalizer, resolver, provider, vehicle, recomputeEvery
    ):
        """
        Given: A detector with a given full-recompute cadence
        When: A trip is recorded over many samples
        Then: The stored distance matches a full recompute of the points
        """
        detector = AutoTripDetector(
            store, finalizer, resolver, provider,
            config=AutoDetectionConfig(recomputeEveryPoints=recomputeEvery)
        )
        detector.enable()
        _startTrip(detector)
        _feed(detector, driveSamples(15, 120, 40, startMiles=0.05))

        trip = store.trips.getActiveTrip()
        assert len(trip.points) > 10
        assert trip.distanceMiles == pytest.approx(totalDistance(trip.points), rel=1e-9)


# ================================================================================
# Background Sampling and Factory
# ================================================================================

@pytest.mark.integration
class TestBackgroundSampling:
    """Tests for the detector's own sampling subscription."""

    def test_enable_withSampler_consumesProviderSamples(
        self, store, finalizer, resolver, vehicle
    ):
        provider = SimulatedLocationProvider(driveSamples(0, 30, 20))
        detector = AutoTripDetector(
            store, finalizer, resolver, provider,
            sampler=LocationSampler(provider),
            config=AutoDetectionConfig(sampleIntervalSeconds=0.01)
        )
        detector.enable()
        try:
            waitForCondition(lambda: store.trips.getActiveTrip() is not None)
        finally:
            detector.disable()

        assert store.trips.getActiveTrip() is None
        assert detector.getStats().tripsCompleted == 1

    def test_createFromConfig_appliesThresholds(
        self, store, finalizer, resolver, provider, mileageConfig: dict[str, Any]
    ):
        mileageConfig['autoDetection'].update({'startSpeedMph': 20, 'stopSpeedMph': 4})
        detector = createAutoTripDetectorFromConfig(
            mileageConfig, store, finalizer, resolver, provider
        )
        assert detector.getConfig().startSpeedMph == 20.0
        assert detector.getConfig().stopSpeedMph == 4.0
        assert detector.sampler is None
