################################################################################
# File Name: photos.py
# Purpose/Description: Monthly odometer photo records with content hashes
# Author: Mileage Core Team
# Creation Date: 2026-10-10
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-10    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Vehicle mirror tracks the newest month only
# ================================================================================
################################################################################

"""
Odometer photos.

Each vehicle has a start and an end odometer photo per billing month. A
saved photo is copied into the photo directory and hashed over its bytes;
the hash later feeds the monthly report hash. Saving again for the same
month and slot replaces the earlier record. The vehicle row mirrors the
photos of its newest month only; moving to a later month clears both
mirrored slots, and photos for earlier months leave the mirror alone.

Capturing the photo itself happens elsewhere; this module receives a file.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .database import generateId
from .integrity import hashFile
from .store import LocalStore
from .types import PhotoType, Vehicle, VehiclePhoto, currentMonthYear, utcNow

logger = logging.getLogger(__name__)

DEFAULT_PHOTO_DIR = './data/photos'


@dataclass
class MonthlyPhotoRecord:
    """Start and end photos of one vehicle for one month."""
    monthYear: str
    start: VehiclePhoto | None = None
    end: VehiclePhoto | None = None

    @property
    def isComplete(self) -> bool:
        return self.start is not None and self.end is not None

    def toDict(self) -> dict[str, Any]:
        return {
            'monthYear': self.monthYear,
            'start': self.start.toDict() if self.start else None,
            'end': self.end.toDict() if self.end else None,
            'isComplete': self.isComplete,
        }


class OdometerPhotoService:
    """
    Stores odometer photos.

    Example:
        service = OdometerPhotoService(store, config)
        photo = service.saveOdometerPhoto(vehicle.id, PhotoType.START, '/tmp/cap.jpg')
        missing = service.checkMissingPhotos(vehicle.id)
    """

    def __init__(self, store: LocalStore, config: dict[str, Any] | None = None):
        self.store = store
        photoConfig = (config or {}).get('photos', {})
        self.photoDir = Path(photoConfig.get('directory', DEFAULT_PHOTO_DIR))

    def saveOdometerPhoto(
        self,
        vehicleId: str,
        photoType: PhotoType | str,
        sourcePath: str | Path,
        monthYear: str | None = None
    ) -> VehiclePhoto:
        """
        Store a photo for a vehicle's month.

        Args:
            vehicleId: Vehicle photographed
            photoType: 'start' or 'end'
            sourcePath: Captured image file
            monthYear: Billing month YYYY-MM (default: current month)

        Returns:
            The stored photo record

        Raises:
            NotFoundError: If the vehicle does not exist
            FileNotFoundError: If sourcePath does not exist
            ValueError: If photoType is unknown
        """
        slot = PhotoType(photoType)
        month = monthYear or currentMonthYear()
        vehicle = self.store.vehicles.requireVehicle(vehicleId)

        source = Path(sourcePath)
        if not source.is_file():
            raise FileNotFoundError(f"Photo not found: {source}")

        self.photoDir.mkdir(parents=True, exist_ok=True)
        target = self.photoDir / f"{vehicleId}_{slot.value}_{month}{source.suffix or '.jpg'}"
        if source.resolve() != target.resolve():
            shutil.copy2(source, target)

        photoHash = hashFile(target)
        now = utcNow()
        photo = self.store.photos.upsertPhoto(VehiclePhoto(
            id=generateId(),
            vehicleId=vehicleId,
            monthYear=month,
            photoType=slot,
            photoUri=str(target),
            photoHash=photoHash,
            timestamp=now,
            createdAt=now,
        ))

        self._updateMirror(vehicle, slot, month, str(target), photoHash)

        logger.info(
            f"Odometer photo saved | vehicleId={vehicleId} | month={month} "
            f"| type={slot.value} | hash={photoHash[:12]}"
        )
        return photo

    def getPhotosForMonth(self, vehicleId: str, monthYear: str) -> MonthlyPhotoRecord:
        return MonthlyPhotoRecord(
            monthYear=monthYear,
            start=self.store.photos.getPhoto(vehicleId, monthYear, PhotoType.START),
            end=self.store.photos.getPhoto(vehicleId, monthYear, PhotoType.END),
        )

    def getMonthlyRecords(self, vehicleId: str) -> list[MonthlyPhotoRecord]:
        """Months with at least one photo, newest first."""
        records: dict[str, MonthlyPhotoRecord] = {}
        for photo in self.store.photos.listPhotos(vehicleId):
            record = records.setdefault(photo.monthYear, MonthlyPhotoRecord(photo.monthYear))
            if photo.photoType == PhotoType.START:
                record.start = photo
            else:
                record.end = photo
        return sorted(records.values(), key=lambda r: r.monthYear, reverse=True)

    def checkMissingPhotos(self, vehicleId: str, monthYear: str | None = None) -> list[PhotoType]:
        """Slots still without a photo for the month (default: current month)."""
        record = self.getPhotosForMonth(vehicleId, monthYear or currentMonthYear())
        missing = []
        if record.start is None:
            missing.append(PhotoType.START)
        if record.end is None:
            missing.append(PhotoType.END)
        return missing

    def _updateMirror(
        self,
        vehicle: Vehicle,
        slot: PhotoType,
        month: str,
        photoUri: str,
        photoHash: str
    ) -> None:
        """Mirror the newest month's photos onto the vehicle row."""
        if vehicle.monthYear and month < vehicle.monthYear:
            logger.debug(
                f"Photo for earlier month, vehicle mirror kept | vehicleId={vehicle.id} "
                f"| month={month} | current={vehicle.monthYear}"
            )
            return

        fields: dict[str, Any] = {'monthYear': month}
        if vehicle.monthYear != month:
            fields.update({
                'photoOdometerStart': None, 'photoOdometerStartHash': None,
                'photoOdometerEnd': None, 'photoOdometerEndHash': None,
            })

        if slot == PhotoType.START:
            fields.update({'photoOdometerStart': photoUri, 'photoOdometerStartHash': photoHash})
        else:
            fields.update({'photoOdometerEnd': photoUri, 'photoOdometerEndHash': photoHash})
        self.store.vehicles.updateVehicle(vehicle.id, **fields)
