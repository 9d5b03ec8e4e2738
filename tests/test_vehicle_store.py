################################################################################
# File Name: test_vehicle_store.py
# Purpose/Description: Tests for vehicle, photo and report stores
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
Tests for mileage.store.vehicles, mileage.store.photos and mileage.store.reports.

Run with:
    pytest tests/test_vehicle_store.py -v
"""

import pytest

from mileage.database import generateId
from mileage.exceptions import NotFoundError
from mileage.store import LocalStore
from mileage.types import (
    PhotoType,
    Report,
    TripStatus,
    Vehicle,
    VehiclePhoto,
    currentMonthYear,
    utcNow,
)

from tests.test_utils import makeCoords


def _photo(vehicleId: str, photoType: PhotoType, uri: str, monthYear: str = '2026-09') -> VehiclePhoto:
    now = utcNow()
    return VehiclePhoto(
        id=generateId(),
        vehicleId=vehicleId,
        monthYear=monthYear,
        photoType=photoType,
        photoUri=uri,
        photoHash='c' * 64,
        timestamp=now,
        createdAt=now,
    )


def _report(vehicleId: str, reportHash: str = 'd' * 64) -> Report:
    now = utcNow()
    return Report(
        id=generateId(),
        vehicleId=vehicleId,
        monthYear='2026-09',
        totalMiles=12.5,
        totalKm=20.1,
        totalValue=8.38,
        tripCount=3,
        reportHash=reportHash,
        signature='sig',
        signedAt=now,
        createdAt=now,
    )


@pytest.mark.unit
class TestVehicleStore:
    """Tests for VehicleStore."""

    def test_createVehicle_persistsFields(self, store: LocalStore):
        """
        Given: Vehicle details
        When: A vehicle is created
        Then: The stored record matches and is unverified by default
        """
        created = store.vehicles.createVehicle('Honda', 'Civic', '2019', 'XYZ789', monthYear='2026-08')
        stored = store.vehicles.requireVehicle(created.id)

        assert stored.make == 'Honda'
        assert stored.year == 2019
        assert stored.licensePlate == 'XYZ789'
        assert stored.monthYear == '2026-08'
        assert stored.verified is False

    def test_createVehicle_noMonth_defaultsToCurrent(self, store: LocalStore):
        created = store.vehicles.createVehicle('Honda', 'Civic', 2019, 'XYZ789')
        assert created.monthYear == currentMonthYear()

    def test_updateVehicle_changesFields(self, store: LocalStore, vehicle: Vehicle):
        updated = store.vehicles.updateVehicle(vehicle.id, verified=True, licensePlate='NEW1')
        assert updated.verified is True
        assert updated.licensePlate == 'NEW1'

    def test_updateVehicle_unknownField_raisesValueError(self, store: LocalStore, vehicle: Vehicle):
        with pytest.raises(ValueError):
            store.vehicles.updateVehicle(vehicle.id, color='blue')

    def test_updateVehicle_missing_raisesNotFound(self, store: LocalStore):
        with pytest.raises(NotFoundError):
            store.vehicles.updateVehicle('missing', verified=True)

    def test_deleteVehicle_cascadesToTripsPhotosAndReports(self, store: LocalStore, vehicle: Vehicle):
        """
        Given: A vehicle with a trip, a photo and a report
        When: The vehicle is deleted
        Then: Everything it owns is removed
        """
        trip = store.trips.createTrip(vehicle.id, makeCoords(0))
        store.trips.updateTrip(trip.id, status=TripStatus.COMPLETED)
        store.photos.upsertPhoto(_photo(vehicle.id, PhotoType.START, '/p/start.jpg'))
        store.reports.insertReport(_report(vehicle.id))

        store.vehicles.deleteVehicle(vehicle.id)

        assert store.vehicles.getVehicle(vehicle.id) is None
        assert store.trips.getTrip(trip.id) is None
        assert store.photos.listPhotos(vehicle.id) == []
        assert store.reports.listReports(vehicle.id) == []

    def test_deleteVehicle_missing_raisesNotFound(self, store: LocalStore):
        with pytest.raises(NotFoundError):
            store.vehicles.deleteVehicle('missing')

    def test_listAndCount_includeAllVehicles(self, store: LocalStore, vehicle: Vehicle):
        other = store.vehicles.createVehicle('Ford', 'Focus', 2018, 'F0CU5')
        assert {v.id for v in store.vehicles.listVehicles()} == {vehicle.id, other.id}
        assert store.vehicles.countVehicles() == 2

    def test_requireVehicle_missing_raisesNotFound(self, store: LocalStore):
        with pytest.raises(NotFoundError) as excInfo:
            store.vehicles.requireVehicle('missing')
        assert excInfo.value.details == {'entity': 'Vehicle', 'id': 'missing'}


@pytest.mark.unit
class TestPhotoStore:
    """Tests for PhotoStore."""

    def test_upsertPhoto_sameSlot_replacesRow(self, store: LocalStore, vehicle: Vehicle):
        """
        Given: A start photo for a month
        When: Another start photo is stored for the same month
        Then: Only the newer one remains
        """
        store.photos.upsertPhoto(_photo(vehicle.id, PhotoType.START, '/p/first.jpg'))
        store.photos.upsertPhoto(_photo(vehicle.id, PhotoType.START, '/p/second.jpg'))

        photos = store.photos.listPhotos(vehicle.id, '2026-09')
        assert len(photos) == 1
        assert photos[0].photoUri == '/p/second.jpg'

    def test_getPhoto_bySlot(self, store: LocalStore, vehicle: Vehicle):
        store.photos.upsertPhoto(_photo(vehicle.id, PhotoType.START, '/p/start.jpg'))
        store.photos.upsertPhoto(_photo(vehicle.id, PhotoType.END, '/p/end.jpg'))

        end = store.photos.getPhoto(vehicle.id, '2026-09', PhotoType.END)
        assert end.photoUri == '/p/end.jpg'
        assert store.photos.getPhoto(vehicle.id, '2026-08', PhotoType.END) is None

    def test_listPhotos_filtersByMonth(self, store: LocalStore, vehicle: Vehicle):
        store.photos.upsertPhoto(_photo(vehicle.id, PhotoType.START, '/p/a.jpg', '2026-08'))
        store.photos.upsertPhoto(_photo(vehicle.id, PhotoType.START, '/p/b.jpg', '2026-09'))

        assert len(store.photos.listPhotos(vehicle.id)) == 2
        assert [p.photoUri for p in store.photos.listPhotos(vehicle.id, '2026-08')] == ['/p/a.jpg']


@pytest.mark.unit
class TestReportStore:
    """Tests for ReportStore."""

    def test_insertReport_roundTripsRecord(self, store: LocalStore, vehicle: Vehicle):
        report = store.reports.insertReport(_report(vehicle.id))
        stored = store.reports.getReport(report.id)
        assert stored == report

    def test_findByHash_returnsMatchingReport(self, store: LocalStore, vehicle: Vehicle):
        report = store.reports.insertReport(_report(vehicle.id, reportHash='e' * 64))
        assert store.reports.findByHash('e' * 64).id == report.id
        assert store.reports.findByHash('0' * 64) is None

    def test_insertReport_sameHashTwice_keepsBothRows(self, store: LocalStore, vehicle: Vehicle):
        store.reports.insertReport(_report(vehicle.id))
        store.reports.insertReport(_report(vehicle.id))
        assert len(store.reports.listReports()) == 2
