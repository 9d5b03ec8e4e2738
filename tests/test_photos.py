################################################################################
# File Name: test_photos.py
# Purpose/Description: Tests for odometer photo storage
# Author: Mileage Core Team
# Creation Date: 2026-10-12
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-12    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Mirror month-change tests
# ================================================================================
################################################################################

"""
Tests for mileage.photos.

Run with:
    pytest tests/test_photos.py -v
"""

import hashlib
from pathlib import Path
from typing import Any

import pytest

from mileage.exceptions import NotFoundError
from mileage.photos import OdometerPhotoService
from mileage.store import LocalStore
from mileage.types import PhotoType, Vehicle, currentMonthYear


@pytest.fixture
def photoService(store: LocalStore, mileageConfig: dict[str, Any]) -> OdometerPhotoService:
    return OdometerPhotoService(store, mileageConfig)


@pytest.fixture
def capturedPhoto(tmp_path: Path) -> Path:
    path = tmp_path / 'capture' / 'IMG_0001.jpg'
    path.parent.mkdir()
    path.write_bytes(b'\xff\xd8\xff odometer 012345')
    return path


@pytest.mark.unit
class TestSaveOdometerPhoto:
    """Tests for OdometerPhotoService.saveOdometerPhoto()."""

    def test_save_copiesFileAndHashesBytes(
        self, photoService: OdometerPhotoService, vehicle: Vehicle, capturedPhoto: Path
    ):
        """
        Given: A captured image file
        When: It is saved as the start photo for September
        Then: It is copied into the photo directory and hashed over its bytes
        """
        photo = photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-09')

        target = Path(photo.photoUri)
        assert target.parent == photoService.photoDir
        assert target.name == f'{vehicle.id}_start_2026-09.jpg'
        assert target.read_bytes() == capturedPhoto.read_bytes()
        assert photo.photoHash == hashlib.sha256(capturedPhoto.read_bytes()).hexdigest()

    def test_save_mirrorsOntoVehicle(
        self, photoService: OdometerPhotoService, store: LocalStore, vehicle: Vehicle,
        capturedPhoto: Path
    ):
        photo = photoService.saveOdometerPhoto(vehicle.id, 'end', capturedPhoto, '2026-10')
        updated = store.vehicles.requireVehicle(vehicle.id)

        assert updated.photoOdometerEnd == photo.photoUri
        assert updated.photoOdometerEndHash == photo.photoHash
        assert updated.photoOdometerStart is None
        assert updated.monthYear == '2026-10'

    def test_save_laterMonth_clearsOtherMirrorSlot(
        self, photoService: OdometerPhotoService, store: LocalStore, vehicle: Vehicle,
        capturedPhoto: Path
    ):
        """
        Given: Both September photos mirrored on the vehicle
        When: Only the October start photo is saved
        Then: The mirror holds October's start photo and no end photo
        """
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-09')
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.END, capturedPhoto, '2026-09')
        capturedPhoto.write_bytes(b'october start')
        october = photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-10')

        updated = store.vehicles.requireVehicle(vehicle.id)
        assert updated.monthYear == '2026-10'
        assert updated.photoOdometerStartHash == october.photoHash
        assert updated.photoOdometerEnd is None
        assert updated.photoOdometerEndHash is None

    def test_save_earlierMonth_leavesMirrorUntouched(
        self, photoService: OdometerPhotoService, store: LocalStore, vehicle: Vehicle,
        capturedPhoto: Path
    ):
        current = photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-10')
        capturedPhoto.write_bytes(b'late august end')
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.END, capturedPhoto, '2026-08')

        updated = store.vehicles.requireVehicle(vehicle.id)
        assert updated.monthYear == '2026-10'
        assert updated.photoOdometerStartHash == current.photoHash
        assert updated.photoOdometerEndHash is None
        assert store.photos.getPhoto(vehicle.id, '2026-08', PhotoType.END) is not None

    def test_save_sameSlotTwice_replacesRecord(
        self, photoService: OdometerPhotoService, store: LocalStore, vehicle: Vehicle,
        capturedPhoto: Path
    ):
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-09')
        capturedPhoto.write_bytes(b'retake')
        second = photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-09')

        photos = store.photos.listPhotos(vehicle.id, '2026-09')
        assert [p.id for p in photos] == [second.id]
        assert second.photoHash == hashlib.sha256(b'retake').hexdigest()

    def test_save_defaultMonth_isCurrent(
        self, photoService: OdometerPhotoService, vehicle: Vehicle, capturedPhoto: Path
    ):
        photo = photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto)
        assert photo.monthYear == currentMonthYear()

    def test_save_missingFile_raisesFileNotFound(
        self, photoService: OdometerPhotoService, vehicle: Vehicle, tmp_path: Path
    ):
        with pytest.raises(FileNotFoundError):
            photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, tmp_path / 'nope.jpg')

    def test_save_unknownVehicle_raisesNotFound(
        self, photoService: OdometerPhotoService, capturedPhoto: Path
    ):
        with pytest.raises(NotFoundError):
            photoService.saveOdometerPhoto('missing', PhotoType.START, capturedPhoto)

    def test_save_unknownSlot_raisesValueError(
        self, photoService: OdometerPhotoService, vehicle: Vehicle, capturedPhoto: Path
    ):
        with pytest.raises(ValueError):
            photoService.saveOdometerPhoto(vehicle.id, 'middle', capturedPhoto)


@pytest.mark.unit
class TestMonthlyRecords:
    """Tests for getPhotosForMonth(), getMonthlyRecords() and checkMissingPhotos()."""

    def test_checkMissingPhotos_reportsEmptySlots(
        self, photoService: OdometerPhotoService, vehicle: Vehicle, capturedPhoto: Path
    ):
        assert photoService.checkMissingPhotos(vehicle.id, '2026-09') == [PhotoType.START, PhotoType.END]
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-09')
        assert photoService.checkMissingPhotos(vehicle.id, '2026-09') == [PhotoType.END]

    def test_getPhotosForMonth_bothSlots_isComplete(
        self, photoService: OdometerPhotoService, vehicle: Vehicle, capturedPhoto: Path
    ):
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-09')
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.END, capturedPhoto, '2026-09')

        record = photoService.getPhotosForMonth(vehicle.id, '2026-09')
        assert record.isComplete is True
        assert record.toDict()['isComplete'] is True

    def test_getMonthlyRecords_groupsByMonthNewestFirst(
        self, photoService: OdometerPhotoService, vehicle: Vehicle, capturedPhoto: Path
    ):
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-08')
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.END, capturedPhoto, '2026-08')
        photoService.saveOdometerPhoto(vehicle.id, PhotoType.START, capturedPhoto, '2026-09')

        records = photoService.getMonthlyRecords(vehicle.id)

        assert [r.monthYear for r in records] == ['2026-09', '2026-08']
        assert records[0].isComplete is False
        assert records[1].isComplete is True
