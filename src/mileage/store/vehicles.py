################################################################################
# File Name: vehicles.py
# Purpose/Description: Vehicle persistence with cascading delete
# Author: Mileage Core Team
# Creation Date: 2026-10-04
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-04    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Vehicle store.

Deleting a vehicle cascades to its trips, reports and odometer photos
through the foreign keys declared in mileage.database.
"""

import logging
from typing import Any

from ..database import MileageDatabase, generateId
from ..exceptions import NotFoundError
from ..types import Vehicle, currentMonthYear, utcNow

logger = logging.getLogger(__name__)

_COLUMNS = {
    'make': 'make',
    'model': 'model',
    'year': 'year',
    'licensePlate': 'license_plate',
    'photoOdometerStart': 'photo_odometer_start',
    'photoOdometerStartHash': 'photo_odometer_start_hash',
    'photoOdometerEnd': 'photo_odometer_end',
    'photoOdometerEndHash': 'photo_odometer_end_hash',
    'monthYear': 'month_year',
    'verified': 'verified',
}


class VehicleStore:
    """SQLite-backed vehicle persistence."""

    def __init__(self, database: MileageDatabase):
        self.database = database

    def createVehicle(
        self,
        make: str,
        model: str,
        year: int,
        licensePlate: str,
        monthYear: str | None = None,
        verified: bool = False
    ) -> Vehicle:
        now = utcNow()
        vehicle = Vehicle(
            id=generateId(),
            make=make,
            model=model,
            year=int(year),
            licensePlate=licensePlate,
            monthYear=monthYear or currentMonthYear(),
            verified=verified,
            createdAt=now,
            updatedAt=now,
        )

        with self.database.connect() as conn:
            conn.execute(
                """
                INSERT INTO vehicles (
                    id, make, model, year, license_plate, month_year, verified,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (vehicle.id, make, model, vehicle.year, licensePlate, vehicle.monthYear,
                 int(verified), now, now)
            )

        logger.info(f"Vehicle created | vehicleId={vehicle.id} | {year} {make} {model}")
        return vehicle

    def updateVehicle(self, vehicleId: str, **fields: Any) -> Vehicle:
        """
        Partially update a vehicle; updated_at is always refreshed.

        Raises:
            ValueError: If a field is unknown
            NotFoundError: If the vehicle does not exist
        """
        unknown = set(fields) - set(_COLUMNS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        assignments = [f'{_COLUMNS[name]} = ?' for name in fields]
        values = [int(value) if name == 'verified' else value for name, value in fields.items()]
        assignments.append('updated_at = ?')
        values.append(utcNow())

        with self.database.connect() as conn:
            cursor = conn.execute(
                f"UPDATE vehicles SET {', '.join(assignments)} WHERE id = ?",
                (*values, vehicleId)
            )
            if cursor.rowcount == 0:
                raise NotFoundError('Vehicle', vehicleId)
            row = conn.execute('SELECT * FROM vehicles WHERE id = ?', (vehicleId,)).fetchone()

        return Vehicle.fromRow(row)

    def deleteVehicle(self, vehicleId: str) -> None:
        """
        Delete a vehicle and everything it owns.

        Raises:
            NotFoundError: If the vehicle does not exist
        """
        with self.database.connect() as conn:
            cursor = conn.execute('DELETE FROM vehicles WHERE id = ?', (vehicleId,))
            if cursor.rowcount == 0:
                raise NotFoundError('Vehicle', vehicleId)
        logger.info(f"Vehicle deleted | vehicleId={vehicleId}")

    def getVehicle(self, vehicleId: str) -> Vehicle | None:
        with self.database.connect() as conn:
            row = conn.execute('SELECT * FROM vehicles WHERE id = ?', (vehicleId,)).fetchone()
        return Vehicle.fromRow(row) if row else None

    def requireVehicle(self, vehicleId: str) -> Vehicle:
        vehicle = self.getVehicle(vehicleId)
        if vehicle is None:
            raise NotFoundError('Vehicle', vehicleId)
        return vehicle

    def listVehicles(self) -> list[Vehicle]:
        """All vehicles, newest first."""
        with self.database.connect() as conn:
            rows = conn.execute('SELECT * FROM vehicles ORDER BY created_at DESC').fetchall()
        return [Vehicle.fromRow(row) for row in rows]

    def countVehicles(self) -> int:
        with self.database.connect() as conn:
            return conn.execute('SELECT COUNT(*) FROM vehicles').fetchone()[0]
