################################################################################
# File Name: export.py
# Purpose/Description: Report payload entries and CSV text for monthly reports
# Author: Mileage Core Team
# Creation Date: 2026-10-09
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-09    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Report content builders.

The payload entries produced here are exactly what the report hash covers,
so they must be reproducible from the exported JSON: plain str/int/float
values and nested dicts only.
"""

import csv
import io
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..store import calculateReimbursement
from ..types import Trip, Vehicle

CSV_HEADERS = [
    'Trip ID',
    'Date',
    'Start Time',
    'End Time',
    'Start Location',
    'End Location',
    'Distance (miles)',
    'Distance (km)',
    'Classification',
    'Purpose',
    'Notes',
    'Reimbursement',
]


def _parseTimestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


def _location(address: str | None, coords: Any) -> Any:
    if address:
        return address
    return coords.toDict() if coords is not None else None


def _locationText(address: str | None, coords: Any) -> str:
    if address:
        return address
    return f"{coords.lat}, {coords.lng}" if coords is not None else ''


def vehiclePayload(vehicle: Vehicle) -> dict[str, Any]:
    return {
        'id': vehicle.id,
        'make': vehicle.make,
        'model': vehicle.model,
        'year': vehicle.year,
        'licensePlate': vehicle.licensePlate,
    }


def tripPayload(trip: Trip, ratePerMile: Decimal) -> dict[str, Any]:
    """
    One trip as it appears in trips.json.

    Locations fall back to raw coordinates when no address was recorded.
    """
    return {
        'id': trip.id,
        'date': trip.startTime[:10],
        'startTime': trip.startTime,
        'endTime': trip.endTime,
        'startLocation': _location(trip.startAddress, trip.startCoords),
        'endLocation': _location(trip.endAddress, trip.endCoords),
        'distanceMiles': trip.distanceMiles,
        'distanceKm': trip.distanceKm,
        'classification': trip.classification.value,
        'purpose': trip.purpose,
        'notes': trip.notes,
        'reimbursement': float(calculateReimbursement(trip.distanceMiles, ratePerMile)),
        'hash': trip.hash,
    }


def generateCsv(trips: list[Trip], ratePerMile: Decimal) -> str:
    """
    CSV text for a list of trips.

    Args:
        trips: Trips in output order
        ratePerMile: Rate used for the reimbursement column

    Returns:
        CSV with a header row and one row per trip
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(CSV_HEADERS)

    for trip in trips:
        started = _parseTimestamp(trip.startTime)
        ended = _parseTimestamp(trip.endTime) if trip.endTime else None
        reimbursement = calculateReimbursement(trip.distanceMiles, ratePerMile)

        writer.writerow([
            trip.id,
            started.date().isoformat(),
            started.strftime('%H:%M:%S'),
            ended.strftime('%H:%M:%S') if ended else '',
            _locationText(trip.startAddress, trip.startCoords),
            _locationText(trip.endAddress, trip.endCoords),
            f"{trip.distanceMiles:.2f}",
            f"{trip.distanceKm:.2f}",
            trip.classification.value,
            trip.purpose,
            trip.notes,
            f"${reimbursement}",
        ])

    return buffer.getvalue()
