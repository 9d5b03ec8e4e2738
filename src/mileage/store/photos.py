################################################################################
# File Name: photos.py
# Purpose/Description: Odometer photo record persistence
# Author: Mileage Core Team
# Creation Date: 2026-10-07
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-07    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""Photo store. One row per (vehicle, month, slot); re-capture replaces it."""

import logging

from ..database import MileageDatabase
from ..types import PhotoType, VehiclePhoto

logger = logging.getLogger(__name__)


class PhotoStore:
    """SQLite-backed odometer photo records."""

    def __init__(self, database: MileageDatabase):
        self.database = database

    def upsertPhoto(self, photo: VehiclePhoto) -> VehiclePhoto:
        """Insert the photo, replacing any row for the same vehicle/month/slot."""
        with self.database.connect() as conn:
            conn.execute(
                'DELETE FROM vehicle_photos WHERE vehicle_id = ? AND month_year = ? AND photo_type = ?',
                (photo.vehicleId, photo.monthYear, photo.photoType.value)
            )
            conn.execute(
                """
                INSERT INTO vehicle_photos (
                    id, vehicle_id, month_year, photo_type, photo_uri, photo_hash,
                    timestamp, synced_to_cloud, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (photo.id, photo.vehicleId, photo.monthYear, photo.photoType.value,
                 photo.photoUri, photo.photoHash, photo.timestamp,
                 int(photo.syncedToCloud), photo.createdAt)
            )
        return photo

    def getPhoto(
        self,
        vehicleId: str,
        monthYear: str,
        photoType: PhotoType
    ) -> VehiclePhoto | None:
        with self.database.connect() as conn:
            row = conn.execute(
                'SELECT * FROM vehicle_photos WHERE vehicle_id = ? AND month_year = ? AND photo_type = ?',
                (vehicleId, monthYear, PhotoType(photoType).value)
            ).fetchone()
        return VehiclePhoto.fromRow(row) if row else None

    def listPhotos(self, vehicleId: str, monthYear: str | None = None) -> list[VehiclePhoto]:
        """Photos of a vehicle, newest month first."""
        query = 'SELECT * FROM vehicle_photos WHERE vehicle_id = ?'
        params: tuple[str, ...] = (vehicleId,)
        if monthYear:
            query += ' AND month_year = ?'
            params = (vehicleId, monthYear)
        query += ' ORDER BY month_year DESC, photo_type DESC'
        with self.database.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [VehiclePhoto.fromRow(row) for row in rows]
