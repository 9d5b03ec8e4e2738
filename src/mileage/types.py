################################################################################
# File Name: types.py
# Purpose/Description: Data model for vehicles, trips, reports and photos
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# 2026-10-07    | Core Team    | Added VehiclePhoto and Report row mapping
# 2026-10-16    | Core Team    | Coordinates normalized to column types
# ================================================================================
################################################################################

"""
Type definitions for the mileage core.

Contains enums and dataclasses shared by every component:
- Coordinates: immutable GPS fix (lat, lng, optional epoch-millis timestamp)
- TripStatus / TripClassification / PhotoType: persisted enum values
- Vehicle, Trip, Report, VehiclePhoto: persisted records

Python attributes are camelCase; the SQLite columns they map to are
snake_case. fromRow() builds a record from a sqlite3.Row.

These types have no dependencies on other project modules.
"""

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# ================================================================================
# Helpers
# ================================================================================

def utcNow() -> str:
    """Current UTC time as an ISO-8601 string with milliseconds."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def currentMonthYear() -> str:
    """Current month label in YYYY-MM form."""
    return datetime.now(timezone.utc).strftime('%Y-%m')


# ================================================================================
# Enums
# ================================================================================

class TripStatus(Enum):
    """
    Lifecycle status of a trip.

    States:
        ACTIVE: Recording, at most one system-wide
        COMPLETED: Finalized and hashed
        EXPORTED: Included in an export (set by the export collaborator)
    """
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPORTED = "exported"


class TripClassification(Enum):
    """Tax classification of a trip."""
    UNCLASSIFIED = "unclassified"
    BUSINESS = "business"
    PERSONAL = "personal"
    COMMUTE = "commute"
    OTHER = "other"


class PhotoType(Enum):
    """Odometer photo slot for a billing month."""
    START = "start"
    END = "end"


# ================================================================================
# Coordinates
# ================================================================================

@dataclass(frozen=True)
class Coordinates:
    """
    Immutable GPS fix.

    Attributes:
        lat: Latitude in degrees
        lng: Longitude in degrees
        timestamp: Capture time in epoch milliseconds (optional)
    """
    lat: float
    lng: float
    timestamp: int | None = None

    def __post_init__(self) -> None:
        # Stored as REAL/INTEGER columns; hashes must see the reloaded types
        object.__setattr__(self, 'lat', float(self.lat))
        object.__setattr__(self, 'lng', float(self.lng))
        if self.timestamp is not None:
            object.__setattr__(self, 'timestamp', int(self.timestamp))

    def toDict(self) -> dict[str, Any]:
        """Serialize; the timestamp key is omitted when absent."""
        data: dict[str, Any] = {'lat': self.lat, 'lng': self.lng}
        if self.timestamp is not None:
            data['timestamp'] = self.timestamp
        return data

    @classmethod
    def fromDict(cls, data: dict[str, Any]) -> 'Coordinates':
        timestamp = data.get('timestamp')
        return cls(
            lat=float(data['lat']),
            lng=float(data['lng']),
            timestamp=int(timestamp) if timestamp is not None else None,
        )


def pointsToJson(points: list[Coordinates]) -> str:
    return json.dumps([p.toDict() for p in points], separators=(',', ':'))


def pointsFromJson(text: str | None) -> list[Coordinates]:
    if not text:
        return []
    return [Coordinates.fromDict(item) for item in json.loads(text)]


def _coordsFromColumns(row: sqlite3.Row, prefix: str) -> Coordinates | None:
    lat = row[f'{prefix}_lat']
    lng = row[f'{prefix}_lng']
    if lat is None or lng is None:
        return None
    return Coordinates(lat=lat, lng=lng, timestamp=row[f'{prefix}_timestamp'])


# ================================================================================
# Records
# ================================================================================

@dataclass
class Vehicle:
    """
    A vehicle and its latest odometer photo references.

    Attributes:
        id: Opaque identifier
        make / model / year / licensePlate: Identity shown on reports
        photoOdometerStart / photoOdometerStartHash: Start-of-month photo
        photoOdometerEnd / photoOdometerEndHash: End-of-month photo
        monthYear: Most recently touched billing month (YYYY-MM)
        verified: User confirmed the vehicle details
    """
    id: str
    make: str
    model: str
    year: int
    licensePlate: str
    monthYear: str
    photoOdometerStart: str | None = None
    photoOdometerStartHash: str | None = None
    photoOdometerEnd: str | None = None
    photoOdometerEndHash: str | None = None
    verified: bool = False
    createdAt: str = ''
    updatedAt: str = ''

    def toDict(self) -> dict[str, Any]:
        """Snake_case dictionary matching the persisted/remote schema."""
        return {
            'id': self.id,
            'make': self.make,
            'model': self.model,
            'year': self.year,
            'license_plate': self.licensePlate,
            'photo_odometer_start': self.photoOdometerStart,
            'photo_odometer_start_hash': self.photoOdometerStartHash,
            'photo_odometer_end': self.photoOdometerEnd,
            'photo_odometer_end_hash': self.photoOdometerEndHash,
            'month_year': self.monthYear,
            'verified': self.verified,
            'created_at': self.createdAt,
            'updated_at': self.updatedAt,
        }

    @classmethod
    def fromRow(cls, row: sqlite3.Row) -> 'Vehicle':
        return cls(
            id=row['id'],
            make=row['make'],
            model=row['model'],
            year=row['year'],
            licensePlate=row['license_plate'],
            monthYear=row['month_year'],
            photoOdometerStart=row['photo_odometer_start'],
            photoOdometerStartHash=row['photo_odometer_start_hash'],
            photoOdometerEnd=row['photo_odometer_end'],
            photoOdometerEndHash=row['photo_odometer_end_hash'],
            verified=bool(row['verified']),
            createdAt=row['created_at'],
            updatedAt=row['updated_at'],
        )


@dataclass
class Trip:
    """
    A recorded trip.

    Distances are always derived from points, never authoritative. hash is
    present only once the trip has been completed.
    """
    id: str
    vehicleId: str
    startTime: str
    startCoords: Coordinates
    points: list[Coordinates] = field(default_factory=list)
    endTime: str | None = None
    endCoords: Coordinates | None = None
    distanceMiles: float = 0.0
    distanceKm: float = 0.0
    purpose: str = ''
    notes: str = ''
    startAddress: str | None = None
    endAddress: str | None = None
    mapImageUri: str | None = None
    hash: str | None = None
    status: TripStatus = TripStatus.ACTIVE
    classification: TripClassification = TripClassification.UNCLASSIFIED
    autoDetected: bool = False
    needsLookup: bool = False
    syncedToCloud: bool = False
    createdAt: str = ''
    updatedAt: str = ''

    @property
    def isActive(self) -> bool:
        return self.status == TripStatus.ACTIVE

    @property
    def isFinished(self) -> bool:
        """Completed or exported; the hash is sealed."""
        return self.status in (TripStatus.COMPLETED, TripStatus.EXPORTED)

    def toDict(self) -> dict[str, Any]:
        """Snake_case dictionary used for export payloads and remote upserts."""
        return {
            'id': self.id,
            'vehicle_id': self.vehicleId,
            'start_time': self.startTime,
            'end_time': self.endTime,
            'start_coords': self.startCoords.toDict(),
            'end_coords': self.endCoords.toDict() if self.endCoords else None,
            'distance_miles': self.distanceMiles,
            'distance_km': self.distanceKm,
            'points': [p.toDict() for p in self.points],
            'purpose': self.purpose,
            'notes': self.notes,
            'start_address': self.startAddress,
            'end_address': self.endAddress,
            'map_image_uri': self.mapImageUri,
            'hash': self.hash,
            'status': self.status.value,
            'classification': self.classification.value,
            'auto_detected': self.autoDetected,
            'needs_lookup': self.needsLookup,
            'created_at': self.createdAt,
            'updated_at': self.updatedAt,
        }

    @classmethod
    def fromRow(cls, row: sqlite3.Row) -> 'Trip':
        startCoords = _coordsFromColumns(row, 'start')
        if startCoords is None:
            raise ValueError(f"Trip row {row['id']} has no start coordinates")
        return cls(
            id=row['id'],
            vehicleId=row['vehicle_id'],
            startTime=row['start_time'],
            startCoords=startCoords,
            points=pointsFromJson(row['points']),
            endTime=row['end_time'],
            endCoords=_coordsFromColumns(row, 'end'),
            distanceMiles=row['distance_miles'] or 0.0,
            distanceKm=row['distance_km'] or 0.0,
            purpose=row['purpose'] or '',
            notes=row['notes'] or '',
            startAddress=row['start_address'],
            endAddress=row['end_address'],
            mapImageUri=row['map_image_uri'],
            hash=row['hash'],
            status=TripStatus(row['status']),
            classification=TripClassification(row['classification']),
            autoDetected=bool(row['auto_detected']),
            needsLookup=bool(row['needs_lookup']),
            syncedToCloud=bool(row['synced_to_cloud']),
            createdAt=row['created_at'],
            updatedAt=row['updated_at'],
        )


@dataclass
class Report:
    """An exported monthly report. Insert-only."""
    id: str
    vehicleId: str
    monthYear: str
    totalMiles: float
    totalKm: float
    totalValue: float
    tripCount: int
    reportHash: str
    signature: str
    signedAt: str
    exportUri: str | None = None
    createdAt: str = ''

    def toDict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'vehicle_id': self.vehicleId,
            'month_year': self.monthYear,
            'total_miles': self.totalMiles,
            'total_km': self.totalKm,
            'total_value': self.totalValue,
            'trip_count': self.tripCount,
            'report_hash': self.reportHash,
            'signature': self.signature,
            'signed_at': self.signedAt,
            'export_uri': self.exportUri,
            'created_at': self.createdAt,
        }

    @classmethod
    def fromRow(cls, row: sqlite3.Row) -> 'Report':
        return cls(
            id=row['id'],
            vehicleId=row['vehicle_id'],
            monthYear=row['month_year'],
            totalMiles=row['total_miles'],
            totalKm=row['total_km'],
            totalValue=row['total_value'],
            tripCount=row['trip_count'],
            reportHash=row['report_hash'],
            signature=row['signature'],
            signedAt=row['signed_at'],
            exportUri=row['export_uri'],
            createdAt=row['created_at'],
        )


@dataclass
class VehiclePhoto:
    """Odometer photo for one vehicle, month and slot."""
    id: str
    vehicleId: str
    monthYear: str
    photoType: PhotoType
    photoUri: str
    photoHash: str | None
    timestamp: str
    syncedToCloud: bool = False
    createdAt: str = ''

    def toDict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'vehicle_id': self.vehicleId,
            'month_year': self.monthYear,
            'photo_type': self.photoType.value,
            'photo_uri': self.photoUri,
            'photo_hash': self.photoHash,
            'timestamp': self.timestamp,
            'created_at': self.createdAt,
        }

    @classmethod
    def fromRow(cls, row: sqlite3.Row) -> 'VehiclePhoto':
        return cls(
            id=row['id'],
            vehicleId=row['vehicle_id'],
            monthYear=row['month_year'],
            photoType=PhotoType(row['photo_type']),
            photoUri=row['photo_uri'],
            photoHash=row['photo_hash'],
            timestamp=row['timestamp'],
            syncedToCloud=bool(row['synced_to_cloud']),
            createdAt=row['created_at'],
        )
