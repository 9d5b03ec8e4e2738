################################################################################
# File Name: trips.py
# Purpose/Description: Trip persistence: CRUD, point appends and filtered listing
# Author: Mileage Core Team
# Creation Date: 2026-10-04
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-04    | Core Team    | Initial implementation
# 2026-10-06    | Core Team    | Hash write-once and active-trip conflict checks
# 2026-10-16    | Core Team    | markSynced only flags an unchanged snapshot
# ================================================================================
################################################################################

"""
Trip store.

The store is the sole mutator of persisted trip state. Rules it enforces:
- at most one trip is active (checked here and backed by a unique index);
- points are seeded with the start coordinate and only ever appended;
- a trip hash is written once and never overwritten;
- auto_detected is set at creation and has no update path;
- any write of a fallback-encoded address sets needs_lookup. The flag is
  only cleared by an explicit needsLookup=False update.

Writes against an unknown id raise NotFoundError rather than silently
doing nothing. The exception is appendPoint(), which returns None for a
missing or no-longer-active trip so late background samples are no-ops.
"""

import logging
import sqlite3
from typing import Any

from ..addresses import isFallback
from ..database import MileageDatabase, generateId
from ..exceptions import InvalidTripStateError, NotFoundError, TripConflictError
from ..geometry import UNIT_KM, UNIT_MILES, segmentDistance, totalDistance
from ..types import (
    Coordinates,
    Trip,
    TripClassification,
    TripStatus,
    pointsFromJson,
    pointsToJson,
    utcNow,
)

logger = logging.getLogger(__name__)

# camelCase update field -> column
_SIMPLE_COLUMNS = {
    'vehicleId': 'vehicle_id',
    'endTime': 'end_time',
    'distanceMiles': 'distance_miles',
    'distanceKm': 'distance_km',
    'purpose': 'purpose',
    'notes': 'notes',
    'startAddress': 'start_address',
    'endAddress': 'end_address',
    'mapImageUri': 'map_image_uri',
    'hash': 'hash',
}

_BOOL_COLUMNS = {
    'needsLookup': 'needs_lookup',
    'syncedToCloud': 'synced_to_cloud',
}

UPDATABLE_FIELDS = frozenset(
    set(_SIMPLE_COLUMNS) | set(_BOOL_COLUMNS) | {'endCoords', 'points', 'status', 'classification'}
)

# Statuses that count as finished trips for monthly listings
FINISHED_STATUSES = (TripStatus.COMPLETED.value, TripStatus.EXPORTED.value)


def monthBounds(monthYear: str) -> tuple[str, str]:
    """
    ISO prefix bounds [start, end) for a YYYY-MM month label.

    Raises:
        ValueError: If the label is not YYYY-MM
    """
    try:
        year, month = (int(part) for part in monthYear.split('-'))
    except ValueError as e:
        raise ValueError(f"Invalid month label: {monthYear}") from e
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month label: {monthYear}")

    nextYear, nextMonth = (year + 1, 1) if month == 12 else (year, month + 1)
    return f"{year:04d}-{month:02d}-01", f"{nextYear:04d}-{nextMonth:02d}-01"


class TripStore:
    """
    SQLite-backed trip persistence.

    Example:
        store = TripStore(db)
        trip = store.createTrip(vehicle.id, coords, startAddress='1 Main St')
        store.appendPoint(trip.id, nextCoords)
        store.updateTrip(trip.id, classification=TripClassification.PERSONAL)
    """

    def __init__(self, database: MileageDatabase):
        self.database = database

    # ----------------------------------------------------------------------------
    # Create / update / delete
    # ----------------------------------------------------------------------------

    def createTrip(
        self,
        vehicleId: str,
        startCoords: Coordinates,
        startAddress: str | None = None,
        purpose: str = '',
        notes: str = '',
        autoDetected: bool = False,
        classification: TripClassification | None = None,
        startTime: str | None = None
    ) -> Trip:
        """
        Create an active trip seeded with its start coordinate.

        Auto-detected trips default to 'unclassified', manual trips to
        'business'.

        Raises:
            NotFoundError: If the vehicle does not exist
            TripConflictError: If another trip is already active
        """
        if classification is None:
            classification = (
                TripClassification.UNCLASSIFIED if autoDetected else TripClassification.BUSINESS
            )

        now = utcNow()
        trip = Trip(
            id=generateId(),
            vehicleId=vehicleId,
            startTime=startTime or now,
            startCoords=startCoords,
            points=[startCoords],
            purpose=purpose or '',
            notes=notes or '',
            startAddress=startAddress,
            status=TripStatus.ACTIVE,
            classification=classification,
            autoDetected=autoDetected,
            needsLookup=isFallback(startAddress),
            createdAt=now,
            updatedAt=now,
        )

        with self.database.connect() as conn:
            if conn.execute('SELECT 1 FROM vehicles WHERE id = ?', (vehicleId,)).fetchone() is None:
                raise NotFoundError('Vehicle', vehicleId)

            active = conn.execute(
                "SELECT id FROM trips WHERE status = 'active' LIMIT 1"
            ).fetchone()
            if active is not None:
                raise TripConflictError(
                    "A trip is already in progress",
                    details={'activeTripId': active['id']}
                )

            try:
                conn.execute(
                    """
                    INSERT INTO trips (
                        id, vehicle_id, start_time, start_lat, start_lng, start_timestamp,
                        distance_miles, distance_km, points, purpose, notes, start_address,
                        status, classification, auto_detected, needs_lookup, synced_to_cloud,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, 0, 0, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                    """,
                    (
                        trip.id, trip.vehicleId, trip.startTime,
                        startCoords.lat, startCoords.lng, startCoords.timestamp,
                        pointsToJson(trip.points), trip.purpose, trip.notes, trip.startAddress,
                        trip.status.value, trip.classification.value,
                        int(autoDetected), int(trip.needsLookup),
                        now, now,
                    )
                )
            except sqlite3.IntegrityError as e:
                raise TripConflictError(
                    "A trip is already in progress",
                    details={'error': str(e)}
                ) from e

        logger.info(
            f"Trip created | tripId={trip.id} | vehicleId={vehicleId} "
            f"| autoDetected={autoDetected} | needsLookup={trip.needsLookup}"
        )
        return trip

    def updateTrip(self, tripId: str, **fields: Any) -> Trip:
        """
        Partially update a trip; updated_at is always refreshed.

        Args:
            tripId: Trip to update
            **fields: camelCase fields to change (see UPDATABLE_FIELDS)

        Returns:
            The updated trip

        Raises:
            ValueError: If a field is unknown or immutable
            NotFoundError: If the trip does not exist
            InvalidTripStateError: If the update would overwrite an existing hash
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        assignments, values = self._buildAssignments(fields)

        with self.database.connect() as conn:
            row = conn.execute('SELECT hash FROM trips WHERE id = ?', (tripId,)).fetchone()
            if row is None:
                raise NotFoundError('Trip', tripId)

            if 'hash' in fields and row['hash'] is not None:
                raise InvalidTripStateError(
                    "Trip hash is already sealed",
                    details={'tripId': tripId}
                )

            conn.execute(
                f"UPDATE trips SET {', '.join(assignments)} WHERE id = ?",
                (*values, tripId)
            )
            return Trip.fromRow(
                conn.execute('SELECT * FROM trips WHERE id = ?', (tripId,)).fetchone()
            )

    def markSynced(self, trip: Trip) -> bool:
        """
        Flag a pushed trip as synced if the stored row still matches it.

        updated_at is left alone. A trip edited or deleted after the snapshot
        was taken stays unsynced so the next pass pushes the newer version.

        Args:
            trip: The snapshot that was sent to the remote store

        Returns:
            True if the flag was set
        """
        with self.database.connect() as conn:
            conn.execute('BEGIN IMMEDIATE')
            row = conn.execute('SELECT * FROM trips WHERE id = ?', (trip.id,)).fetchone()
            if row is None or Trip.fromRow(row).toDict() != trip.toDict():
                return False
            conn.execute('UPDATE trips SET synced_to_cloud = 1 WHERE id = ?', (trip.id,))
        return True

    def _buildAssignments(self, fields: dict[str, Any]) -> tuple[list[str], list[Any]]:
        assignments: list[str] = []
        values: list[Any] = []

        def assign(column: str, value: Any) -> None:
            assignments.append(f'{column} = ?')
            values.append(value)

        for name, column in _SIMPLE_COLUMNS.items():
            if name in fields:
                assign(column, fields[name])

        for name, column in _BOOL_COLUMNS.items():
            if name in fields:
                assign(column, int(bool(fields[name])))

        if 'endCoords' in fields:
            coords = fields['endCoords']
            assign('end_lat', coords.lat if coords else None)
            assign('end_lng', coords.lng if coords else None)
            assign('end_timestamp', coords.timestamp if coords else None)

        if 'points' in fields:
            assign('points', pointsToJson(fields['points']))

        if 'status' in fields:
            assign('status', TripStatus(fields['status']).value)

        if 'classification' in fields:
            assign('classification', TripClassification(fields['classification']).value)

        # A fallback address write always flags the trip, unless the caller
        # set needsLookup explicitly in the same update.
        if 'needsLookup' not in fields and (
            isFallback(fields.get('startAddress')) or isFallback(fields.get('endAddress'))
        ):
            assign('needs_lookup', 1)

        assign('updated_at', utcNow())
        return assignments, values

    def appendPoint(
        self,
        tripId: str,
        coords: Coordinates,
        incremental: bool = False
    ) -> Trip | None:
        """
        Append a sample to an active trip and update its distance.

        Args:
            tripId: Trip to extend
            coords: New sample, appended in arrival order
            incremental: Add only the newest segment to the stored distance
                instead of recomputing from the full point sequence

        Returns:
            Updated trip, or None if the trip is missing or no longer active
        """
        with self.database.connect() as conn:
            row = conn.execute('SELECT * FROM trips WHERE id = ?', (tripId,)).fetchone()
            if row is None or row['status'] != TripStatus.ACTIVE.value:
                logger.debug(f"Ignoring point for inactive trip | tripId={tripId}")
                return None

            trip = Trip.fromRow(row)
            trip.points.append(coords)

            if incremental:
                trip.distanceMiles += segmentDistance(trip.points, UNIT_MILES)
                trip.distanceKm += segmentDistance(trip.points, UNIT_KM)
            else:
                trip.distanceMiles = totalDistance(trip.points, UNIT_MILES)
                trip.distanceKm = totalDistance(trip.points, UNIT_KM)

            trip.updatedAt = utcNow()
            conn.execute(
                "UPDATE trips SET points = ?, distance_miles = ?, distance_km = ?, updated_at = ? "
                "WHERE id = ?",
                (pointsToJson(trip.points), trip.distanceMiles, trip.distanceKm,
                 trip.updatedAt, tripId)
            )

        return trip

    def deleteTrip(self, tripId: str) -> None:
        """
        Delete a trip.

        Raises:
            NotFoundError: If the trip does not exist
        """
        with self.database.connect() as conn:
            cursor = conn.execute('DELETE FROM trips WHERE id = ?', (tripId,))
            if cursor.rowcount == 0:
                raise NotFoundError('Trip', tripId)
        logger.info(f"Trip deleted | tripId={tripId}")

    # ----------------------------------------------------------------------------
    # Lookups
    # ----------------------------------------------------------------------------

    def getTrip(self, tripId: str) -> Trip | None:
        with self.database.connect() as conn:
            row = conn.execute('SELECT * FROM trips WHERE id = ?', (tripId,)).fetchone()
        return Trip.fromRow(row) if row else None

    def requireTrip(self, tripId: str) -> Trip:
        """
        Get a trip that must exist.

        Raises:
            NotFoundError: If the trip does not exist
        """
        trip = self.getTrip(tripId)
        if trip is None:
            raise NotFoundError('Trip', tripId)
        return trip

    def getActiveTrip(self) -> Trip | None:
        """The single active trip, if any."""
        with self.database.connect() as conn:
            row = conn.execute(
                "SELECT * FROM trips WHERE status = 'active' LIMIT 1"
            ).fetchone()
        return Trip.fromRow(row) if row else None

    def countActiveTrips(self) -> int:
        with self.database.connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM trips WHERE status = 'active'"
            ).fetchone()[0]

    def listTrips(self, vehicleId: str | None = None) -> list[Trip]:
        """All trips, newest first, optionally for one vehicle."""
        query = 'SELECT * FROM trips'
        params: tuple[Any, ...] = ()
        if vehicleId:
            query += ' WHERE vehicle_id = ?'
            params = (vehicleId,)
        query += ' ORDER BY start_time DESC'
        return self._query(query, params)

    def listTripsByMonth(
        self,
        vehicleId: str,
        monthYear: str,
        classification: TripClassification | None = None
    ) -> list[Trip]:
        """
        Finished (completed or exported) trips of a vehicle that started in
        the given month, oldest first.

        Args:
            vehicleId: Vehicle to list
            monthYear: Month label YYYY-MM
            classification: Optional classification filter
        """
        start, end = monthBounds(monthYear)
        query = (
            'SELECT * FROM trips WHERE vehicle_id = ? AND start_time >= ? AND start_time < ? '
            f'AND status IN ({", ".join("?" for _ in FINISHED_STATUSES)})'
        )
        params: list[Any] = [vehicleId, start, end, *FINISHED_STATUSES]
        if classification is not None:
            query += ' AND classification = ?'
            params.append(TripClassification(classification).value)
        query += ' ORDER BY start_time ASC'
        return self._query(query, tuple(params))

    def listTripsNeedingLookup(self) -> list[Trip]:
        return self._query(
            'SELECT * FROM trips WHERE needs_lookup = 1 ORDER BY start_time DESC', ()
        )

    def listUnsyncedCompletedTrips(self) -> list[Trip]:
        """Finished trips not yet confirmed by the remote store; active trips never sync."""
        return self._query(
            'SELECT * FROM trips WHERE synced_to_cloud = 0 '
            f'AND status IN ({", ".join("?" for _ in FINISHED_STATUSES)}) '
            'ORDER BY start_time DESC',
            FINISHED_STATUSES
        )

    def _query(self, query: str, params: tuple[Any, ...]) -> list[Trip]:
        with self.database.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Trip.fromRow(row) for row in rows]
