################################################################################
# File Name: orchestrator.py
# Purpose/Description: Builds and owns the mileage core components
# Author: Mileage Core Team
# Creation Date: 2026-10-11
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-11    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Mileage core orchestrator.

Wires the components together from one configuration dictionary.

Initialization order:
1. database (schema created if missing)
2. store
3. geocoder and address resolver
4. route map renderer (when maps.enabled)
5. trip finalizer
6. lifecycle manager and auto-detector (only with a location provider)
7. report, photo and statistics services
8. sync service (when sync.enabled or a remote is supplied)

Shutdown disables auto-detection (finalizing its trip) and stops manual
tracking without finalizing, so an interrupted manual trip stays active
and can be stopped after restart.

Usage:
    core = MileageCore(config, locationProvider=provider)
    core.start()
    try:
        trip = core.tripManager.start(vehicleId)
    finally:
        core.stop()
"""

import logging
import time
from typing import Any

from .config.helpers import isMapsEnabled, isSyncEnabled
from .database import MileageDatabase, initializeDatabase
from .drive import AutoTripDetector, createAutoTripDetectorFromConfig, isAutoDetectionEnabled
from .geocoding import AddressResolver, GeocodingProvider, createGeocoderFromConfig
from .location import LocationProvider, LocationSampler
from .mapimage import RouteMapRenderer
from .photos import OdometerPhotoService
from .report import ReportService
from .statistics import StatisticsService
from .store import LocalStore
from .sync import RemoteStore, SyncService, createSyncServiceFromConfig
from .trip import TripFinalizer, TripLifecycleManager

logger = logging.getLogger(__name__)


class OrchestratorError(Exception):
    """A component could not be created or started."""

    def __init__(self, message: str, component: str | None = None):
        super().__init__(message)
        self.message = message
        self.component = component


class MileageCore:
    """
    Owns the mileage core components.

    Attributes:
        config: Validated configuration dictionary
    """

    def __init__(
        self,
        config: dict[str, Any],
        locationProvider: LocationProvider | None = None,
        geocoder: GeocodingProvider | None = None,
        remote: RemoteStore | None = None
    ):
        self.config = config
        self._locationProvider = locationProvider
        self._geocoder = geocoder
        self._remote = remote
        self._running = False

        self.database: MileageDatabase | None = None
        self.store: LocalStore | None = None
        self.resolver: AddressResolver | None = None
        self.finalizer: TripFinalizer | None = None
        self.tripManager: TripLifecycleManager | None = None
        self.autoDetector: AutoTripDetector | None = None
        self.reportService: ReportService | None = None
        self.photoService: OdometerPhotoService | None = None
        self.statisticsService: StatisticsService | None = None
        self.syncService: SyncService | None = None

    @property
    def isRunning(self) -> bool:
        return self._running

    def start(self) -> None:
        """
        Create every component and enable auto-detection if configured.

        Raises:
            OrchestratorError: If a component fails to initialize
        """
        logger.info("Starting mileage core...")
        startTime = time.time()

        try:
            self._initializeComponents()
        except Exception as e:
            logger.error(f"Failed to start mileage core: {e}")
            raise OrchestratorError(f"Failed to start: {e}") from e

        self._running = True

        if self.autoDetector is not None and isAutoDetectionEnabled(self.config):
            if not self.autoDetector.enable():
                logger.warning("Auto-detection configured but could not be enabled")

        logger.info(f"Mileage core started | startup_time={time.time() - startTime:.2f}s")

    def stop(self) -> None:
        if not self._running:
            return

        logger.info("Stopping mileage core...")
        if self.autoDetector is not None:
            try:
                self.autoDetector.disable()
            except Exception as e:
                logger.error(f"Auto-detector shutdown error: {e}")
        if self.tripManager is not None:
            self.tripManager.shutdown()

        self._running = False
        logger.info("Mileage core stopped")

    def getStatus(self) -> dict[str, Any]:
        status: dict[str, Any] = {
            'running': self._running,
            'database': self.database.getStats() if self.database else None,
            'autoDetection': (
                self.autoDetector.getStatus().toDict() if self.autoDetector else None
            ),
            'syncConfigured': self.syncService is not None,
        }
        if self.store is not None:
            activeTrip = self.store.trips.getActiveTrip()
            status['activeTripId'] = activeTrip.id if activeTrip else None
            status['pendingLookups'] = len(self.store.trips.listTripsNeedingLookup())
            status['unsyncedTrips'] = len(self.store.trips.listUnsyncedCompletedTrips())
        return status

    def _initializeComponents(self) -> None:
        self.database = initializeDatabase(self.config)
        self.store = LocalStore(self.database)

        geocoder = self._geocoder or createGeocoderFromConfig(self.config)
        self.resolver = AddressResolver(self.store.trips, geocoder)

        mapRenderer = RouteMapRenderer(self.config) if isMapsEnabled(self.config) else None
        self.finalizer = TripFinalizer(self.store.trips, self.resolver, mapRenderer)

        if self._locationProvider is not None:
            sampler = LocationSampler(self._locationProvider)
            self.tripManager = TripLifecycleManager(
                self.store,
                self.resolver,
                self._locationProvider,
                sampler=sampler,
                finalizer=self.finalizer,
                config=self.config,
            )
            self.autoDetector = createAutoTripDetectorFromConfig(
                self.config,
                self.store,
                self.finalizer,
                self.resolver,
                self._locationProvider,
                sampler=sampler,
            )

        self.photoService = OdometerPhotoService(self.store, self.config)
        self.reportService = ReportService(self.store)
        self.statisticsService = StatisticsService(self.store, self.photoService)

        if self._remote is not None or isSyncEnabled(self.config):
            self.syncService = createSyncServiceFromConfig(self.config, self.store, self._remote)


def createMileageCoreFromConfig(
    config: dict[str, Any],
    locationProvider: LocationProvider | None = None,
    geocoder: GeocodingProvider | None = None,
    remote: RemoteStore | None = None
) -> MileageCore:
    """Create a MileageCore; call start() to build the components."""
    return MileageCore(config, locationProvider=locationProvider, geocoder=geocoder, remote=remote)
