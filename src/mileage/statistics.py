################################################################################
# File Name: statistics.py
# Purpose/Description: Mileage totals by classification and photo audit completeness
# Author: Mileage Core Team
# Creation Date: 2026-10-10
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-10    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Mileage statistics.

Totals count finished (completed or exported) trips only and are split by
classification for three periods: the current month, year to date and all
time. Periods are selected by the trip's UTC start time.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .photos import OdometerPhotoService
from .store import LocalStore
from .types import Trip, TripClassification, TripStatus

logger = logging.getLogger(__name__)

_FINISHED = (TripStatus.COMPLETED, TripStatus.EXPORTED)


@dataclass
class ClassificationTotals:
    """Miles per classification for one period."""
    miles: dict[str, float] = field(
        default_factory=lambda: {c.value: 0.0 for c in TripClassification}
    )
    tripCount: int = 0

    @property
    def total(self) -> float:
        return sum(self.miles.values())

    def add(self, trip: Trip) -> None:
        self.miles[trip.classification.value] += trip.distanceMiles
        self.tripCount += 1

    def toDict(self) -> dict[str, Any]:
        return {**self.miles, 'total': self.total, 'tripCount': self.tripCount}


@dataclass
class AuditCompleteness:
    """Odometer photo coverage over months that have any photo."""
    totalMonths: int = 0
    completeMonths: int = 0
    missingStartPhotos: int = 0
    missingEndPhotos: int = 0

    @property
    def completenessPercentage(self) -> int:
        if self.totalMonths == 0:
            return 0
        return round(self.completeMonths * 100 / self.totalMonths)

    def toDict(self) -> dict[str, Any]:
        return {
            'totalMonths': self.totalMonths,
            'completeMonths': self.completeMonths,
            'missingStartPhotos': self.missingStartPhotos,
            'missingEndPhotos': self.missingEndPhotos,
            'completenessPercentage': self.completenessPercentage,
        }


@dataclass
class VehicleStatistics:
    vehicleId: str
    vehicleName: str
    monthly: ClassificationTotals
    ytd: ClassificationTotals
    allTime: ClassificationTotals
    auditCompleteness: AuditCompleteness

    def toDict(self) -> dict[str, Any]:
        return {
            'vehicleId': self.vehicleId,
            'vehicleName': self.vehicleName,
            'monthly': self.monthly.toDict(),
            'ytd': self.ytd.toDict(),
            'allTime': self.allTime.toDict(),
            'auditCompleteness': self.auditCompleteness.toDict(),
        }


@dataclass
class OverallStatistics:
    monthly: ClassificationTotals
    ytd: ClassificationTotals
    allTime: ClassificationTotals
    vehicleCount: int
    totalTrips: int

    def toDict(self) -> dict[str, Any]:
        return {
            'monthly': self.monthly.toDict(),
            'ytd': self.ytd.toDict(),
            'allTime': self.allTime.toDict(),
            'vehicleCount': self.vehicleCount,
            'totalTrips': self.totalTrips,
        }


class StatisticsService:
    """
    Computes mileage statistics from the local store.

    Example:
        stats = StatisticsService(store, photoService).getOverallStatistics()
        print(stats.ytd.miles['business'])
    """

    def __init__(self, store: LocalStore, photoService: OdometerPhotoService | None = None):
        self.store = store
        self.photoService = photoService or OdometerPhotoService(store)

    def getVehicleStatistics(
        self,
        vehicleId: str,
        now: datetime | None = None
    ) -> VehicleStatistics:
        """
        Statistics for one vehicle.

        Raises:
            NotFoundError: If the vehicle does not exist
        """
        vehicle = self.store.vehicles.requireVehicle(vehicleId)
        monthly, ytd, allTime = self._periodTotals(self.store.trips.listTrips(vehicleId), now)

        return VehicleStatistics(
            vehicleId=vehicle.id,
            vehicleName=f"{vehicle.year} {vehicle.make} {vehicle.model}",
            monthly=monthly,
            ytd=ytd,
            allTime=allTime,
            auditCompleteness=self._auditCompleteness(vehicle.id),
        )

    def getAllVehiclesStatistics(self, now: datetime | None = None) -> list[VehicleStatistics]:
        return [
            self.getVehicleStatistics(vehicle.id, now)
            for vehicle in self.store.vehicles.listVehicles()
        ]

    def getOverallStatistics(self, now: datetime | None = None) -> OverallStatistics:
        monthly, ytd, allTime = self._periodTotals(self.store.trips.listTrips(), now)
        return OverallStatistics(
            monthly=monthly,
            ytd=ytd,
            allTime=allTime,
            vehicleCount=self.store.vehicles.countVehicles(),
            totalTrips=allTime.tripCount,
        )

    def _periodTotals(
        self,
        trips: list[Trip],
        now: datetime | None
    ) -> tuple[ClassificationTotals, ClassificationTotals, ClassificationTotals]:
        now = now or datetime.now(timezone.utc)
        monthPrefix = now.strftime('%Y-%m')
        yearPrefix = now.strftime('%Y')

        monthly = ClassificationTotals()
        ytd = ClassificationTotals()
        allTime = ClassificationTotals()

        for trip in trips:
            if trip.status not in _FINISHED:
                continue
            allTime.add(trip)
            if trip.startTime.startswith(yearPrefix):
                ytd.add(trip)
                if trip.startTime.startswith(monthPrefix):
                    monthly.add(trip)

        return monthly, ytd, allTime

    def _auditCompleteness(self, vehicleId: str) -> AuditCompleteness:
        audit = AuditCompleteness()
        for record in self.photoService.getMonthlyRecords(vehicleId):
            audit.totalMonths += 1
            if record.start is None:
                audit.missingStartPhotos += 1
            if record.end is None:
                audit.missingEndPhotos += 1
            if record.isComplete:
                audit.completeMonths += 1
        return audit
