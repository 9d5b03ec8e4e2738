################################################################################
# File Name: builder.py
# Purpose/Description: Signed monthly mileage reports
# Author: Mileage Core Team
# Creation Date: 2026-10-09
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-09    | Core Team    | Initial implementation
# 2026-10-12    | Core Team    | Map image hashes recorded in metadata
# 2026-10-16    | Core Team    | Photo hashes from monthly rows only
# ================================================================================
################################################################################

"""
Monthly report builder.

buildMonthlyReport() gathers one vehicle's finished trips for a month,
hashes them together with the vehicle, totals, odometer photo hashes and
route map hashes, signs the digest and records a Report row. Every call
records a new row; earlier reports are never touched.

The report hash covers:
    trips        trips.json entries
    vehicle      trips.json vehicle block
    monthYear    metadata 'month'
    totalMiles   metadata 'totalMiles'
    photoHashes  metadata 'photos'
    mapHashes    metadata 'mapHashes'
so verification can recompute it from the two exported JSON files alone.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

from ..database import generateId
from ..integrity import formatSignature, hashFile, hashReport
from ..store import LocalStore, calculateReimbursement
from ..types import PhotoType, Report, Trip, TripClassification, TripStatus, Vehicle, utcNow
from .export import generateCsv, tripPayload, vehiclePayload
from .types import EmptyReportError, ReportBundle

logger = logging.getLogger(__name__)


class ReportService:
    """
    Builds and records signed monthly reports.

    Example:
        service = ReportService(store)
        bundle = service.buildMonthlyReport(vehicle.id, '2026-09')
        for name, text in bundle.files().items():
            writer.write(name, text)
    """

    def __init__(self, store: LocalStore):
        self.store = store

    def buildMonthlyReport(
        self,
        vehicleId: str,
        monthYear: str,
        classification: TripClassification | str | None = TripClassification.BUSINESS,
        exportUri: str | None = None,
        markExported: bool = True
    ) -> ReportBundle:
        """
        Build, sign and record a monthly report.

        Args:
            vehicleId: Vehicle to report on
            monthYear: Month label YYYY-MM
            classification: Only trips of this classification; None for all
            exportUri: Where the collaborator will write the files
            markExported: Move the included completed trips to 'exported'

        Returns:
            ReportBundle with payload, metadata, signature and CSV

        Raises:
            NotFoundError: If the vehicle does not exist
            EmptyReportError: If no trips match
            ValueError: If monthYear is not YYYY-MM
        """
        vehicle = self.store.vehicles.requireVehicle(vehicleId)
        classificationFilter = (
            TripClassification(classification) if classification is not None else None
        )
        trips = self.store.trips.listTripsByMonth(vehicleId, monthYear, classificationFilter)
        if not trips:
            raise EmptyReportError(
                "No trips found for this period",
                details={
                    'vehicleId': vehicleId,
                    'monthYear': monthYear,
                    'classification': classificationFilter.value if classificationFilter else None,
                }
            )

        rate = self.store.settings.getRatePerMile()
        tripEntries = [tripPayload(trip, rate) for trip in trips]
        vehicleEntry = vehiclePayload(vehicle)

        totalMiles = 0.0
        totalKm = 0.0
        totalValue = Decimal('0')
        for trip in trips:
            totalMiles += trip.distanceMiles
            totalKm += trip.distanceKm
            totalValue += calculateReimbursement(trip.distanceMiles, rate)

        photoHashes = self._photoHashes(vehicle, monthYear)
        mapPaths, mapHashes = self._mapHashes(trips)

        reportHash = hashReport({
            'trips': tripEntries,
            'vehicle': vehicleEntry,
            'monthYear': monthYear,
            'totalMiles': totalMiles,
            'photoHashes': photoHashes,
            'mapHashes': mapHashes,
        })
        signedAt = utcNow()
        signature = formatSignature(reportHash, signedAt)

        payload = {
            'vehicle': vehicleEntry,
            'monthYear': monthYear,
            'trips': tripEntries,
            'summary': {
                'totalTrips': len(trips),
                'totalMiles': totalMiles,
                'totalKm': totalKm,
                'totalReimbursement': float(totalValue),
            },
        }
        metadata = {
            'vehicle': f"{vehicle.year} {vehicle.make} {vehicle.model}",
            'month': monthYear,
            'tripCount': len(trips),
            'totalMiles': totalMiles,
            'totalKm': totalKm,
            'totalValue': float(totalValue),
            'ratePerMile': str(rate),
            'hash': reportHash,
            'signatureCreatedAt': signedAt,
            'mapImages': len(mapHashes),
            'mapHashes': mapHashes,
            'photos': photoHashes,
        }

        report = self.store.reports.insertReport(Report(
            id=generateId(),
            vehicleId=vehicleId,
            monthYear=monthYear,
            totalMiles=totalMiles,
            totalKm=totalKm,
            totalValue=float(totalValue),
            tripCount=len(trips),
            reportHash=reportHash,
            signature=signature,
            signedAt=signedAt,
            exportUri=exportUri,
            createdAt=signedAt,
        ))

        if markExported:
            self._markExported(trips)

        logger.info(
            f"REPORT SIGNED | reportId={report.id} | vehicleId={vehicleId} | month={monthYear} "
            f"| trips={len(trips)} | miles={totalMiles:.2f} | hash={reportHash[:12]}"
        )

        return ReportBundle(
            report=report,
            payload=payload,
            metadata=metadata,
            signature=signature,
            csv=generateCsv(trips, rate),
            mapImagePaths=mapPaths,
        )

    def _photoHashes(self, vehicle: Vehicle, monthYear: str) -> dict[str, Any]:
        # Per-month photo rows only; the vehicle mirror may belong to another month
        hashes: dict[str, Any] = {}
        for photoType in PhotoType:
            photo = self.store.photos.getPhoto(vehicle.id, monthYear, photoType)
            hashes[photoType.value] = photo.photoHash if photo else None
        return hashes

    def _mapHashes(self, trips: list[Trip]) -> tuple[list[str], list[str]]:
        paths: list[str] = []
        hashes: list[str] = []
        for trip in trips:
            if not trip.mapImageUri:
                continue
            path = Path(trip.mapImageUri)
            if not path.is_file():
                logger.warning(f"Map image missing, left out of report | tripId={trip.id}")
                continue
            paths.append(str(path))
            hashes.append(hashFile(path))
        return paths, hashes

    def _markExported(self, trips: list[Trip]) -> None:
        for trip in trips:
            if trip.status == TripStatus.COMPLETED:
                self.store.trips.updateTrip(
                    trip.id, status=TripStatus.EXPORTED, syncedToCloud=False
                )
