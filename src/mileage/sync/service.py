################################################################################
# File Name: service.py
# Purpose/Description: One-way, idempotent push of local records to the remote store
# Author: Mileage Core Team
# Creation Date: 2026-10-08
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-08    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Trips edited mid-push stay unsynced
# ================================================================================
################################################################################

"""
Sync reconciliation.

The local store is the source of truth; sync is an optional side channel.
Every pass:
1. Checks connectivity first. Offline raises NetworkUnavailableError
   before anything is written, locally or remotely.
2. Upserts each eligible record keyed by its local id. Trips are eligible
   when completed and not yet synced; vehicles are always pushed.
3. Marks a trip synced only after the remote store accepted it, and only
   if the local row still equals the pushed snapshot. A failed or edited
   record stays unsynced for the next pass and the batch continues.

Re-running with no local writes in between pushes nothing, and upsert
semantics make a repeated push of the same record harmless.
"""

import logging
from collections.abc import Callable
from typing import Any

from common.error_handler import ErrorCollector

from ..exceptions import NetworkUnavailableError
from ..network import isNetworkAvailable
from ..store import LocalStore
from ..types import Trip
from .remote import RemoteStore
from .types import (
    LOCAL_ONLY_TRIP_FIELDS,
    TABLE_TRIPS,
    TABLE_VEHICLES,
    SyncResult,
    SyncSummary,
)

logger = logging.getLogger(__name__)


def tripToRemoteRecord(trip: Trip) -> dict[str, Any]:
    """Remote row for a trip, without local-only bookkeeping columns."""
    return {
        key: value for key, value in trip.toDict().items()
        if key not in LOCAL_ONLY_TRIP_FIELDS
    }


class SyncService:
    """
    Pushes completed trips and vehicles to a remote store.

    Attributes:
        store: Local store bundle
        remote: Remote store client
        networkCheck: Zero-argument connectivity check

    Example:
        service = SyncService(store, RestRemoteStore(syncConfig))
        try:
            summary = service.syncAll()
        except NetworkUnavailableError:
            showOfflineNotice()
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteStore,
        networkCheck: Callable[[], bool] | None = None
    ):
        self.store = store
        self.remote = remote
        self.networkCheck = networkCheck or isNetworkAvailable

    def syncTrips(self) -> SyncResult:
        """
        Push completed, unsynced trips.

        Returns:
            Synced and failed counts

        Raises:
            NetworkUnavailableError: If offline; nothing was written
        """
        self._requireNetwork(TABLE_TRIPS)
        return self._pushTrips()

    def syncVehicles(self) -> SyncResult:
        """
        Push every vehicle.

        Raises:
            NetworkUnavailableError: If offline; nothing was written
        """
        self._requireNetwork(TABLE_VEHICLES)
        return self._pushVehicles()

    def syncAll(self) -> SyncSummary:
        """
        Push vehicles, then trips.

        Vehicles go first so remote trip rows always reference a known vehicle.

        Raises:
            NetworkUnavailableError: If offline; nothing was written
        """
        self._requireNetwork('all')
        summary = SyncSummary(vehicles=self._pushVehicles(), trips=self._pushTrips())
        logger.info(
            f"SYNC COMPLETE | vehicles={summary.vehicles.synced}/{summary.vehicles.attempted} "
            f"| trips={summary.trips.synced}/{summary.trips.attempted}"
        )
        return summary

    def getUnsyncedCount(self) -> int:
        """Completed trips still waiting to be pushed."""
        return len(self.store.trips.listUnsyncedCompletedTrips())

    # ================================================================================
    # Internals
    # ================================================================================

    def _requireNetwork(self, category: str) -> None:
        if not self.networkCheck():
            logger.warning(f"Sync skipped, no connectivity | category={category}")
            raise NetworkUnavailableError(
                "No internet connection",
                details={'category': category}
            )

    def _pushTrips(self) -> SyncResult:
        result = SyncResult(category=TABLE_TRIPS)
        collector = ErrorCollector()

        for trip in self.store.trips.listUnsyncedCompletedTrips():
            try:
                self.remote.upsert(TABLE_TRIPS, tripToRemoteRecord(trip))
                result.synced += 1
                if not self.store.trips.markSynced(trip):
                    logger.info(f"Trip changed during sync, left unsynced | tripId={trip.id}")
            except Exception as e:
                result.failed += 1
                collector.add(e, tripId=trip.id)

        return self._finish(result, collector)

    def _pushVehicles(self) -> SyncResult:
        result = SyncResult(category=TABLE_VEHICLES)
        collector = ErrorCollector()

        for vehicle in self.store.vehicles.listVehicles():
            try:
                self.remote.upsert(TABLE_VEHICLES, vehicle.toDict())
                result.synced += 1
            except Exception as e:
                result.failed += 1
                collector.add(e, vehicleId=vehicle.id)

        return self._finish(result, collector)

    def _finish(self, result: SyncResult, collector: ErrorCollector) -> SyncResult:
        if collector.hasErrors():
            collector.report()
            result.errors = [collected.toDict() for collected in collector.errors]

        logger.info(
            f"Sync pass finished | category={result.category} "
            f"| synced={result.synced} | failed={result.failed}"
        )
        return result
