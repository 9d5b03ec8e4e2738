################################################################################
# File Name: test_address_resolver.py
# Purpose/Description: Tests for address resolution and the Nominatim client
# Author: Mileage Core Team
# Creation Date: 2026-10-11
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-11    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Tests for mileage.geocoding.

Run with:
    pytest tests/test_address_resolver.py -v
"""

import io
import json
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from mileage.addresses import formatFallbackAddress, isFallback
from mileage.geocoding import (
    AddressResolver,
    GeocodingError,
    NominatimGeocoder,
    ResolutionSummary,
    createGeocoderFromConfig,
)
from mileage.store import LocalStore
from mileage.types import Coordinates, TripStatus, Vehicle

from tests.test_utils import ScriptedGeocoder, makeCoords


class NorthOnlyGeocoder(ScriptedGeocoder):
    """Resolves positions south of a latitude and fails north of it."""

    def __init__(self, maxLat: float):
        super().__init__(online=True)
        self.maxLat = maxLat

    def reverseGeocode(self, coords: Coordinates) -> str | None:
        if coords.lat > self.maxLat:
            self.reverseCalls += 1
            raise GeocodingError("Tile unavailable")
        return super().reverseGeocode(coords)


def _offlineTrip(store: LocalStore, vehicle: Vehicle, withEnd: bool = True):
    """Completed trip whose addresses were captured offline."""
    start, end = makeCoords(0), makeCoords(1)
    trip = store.trips.createTrip(vehicle.id, start, startAddress=formatFallbackAddress(start))
    fields = {'status': TripStatus.COMPLETED}
    if withEnd:
        fields.update(endCoords=end, endAddress=formatFallbackAddress(end))
    return store.trips.updateTrip(trip.id, **fields)


def _jsonResponse(payload) -> MagicMock:
    response = MagicMock()
    response.read.return_value = json.dumps(payload).encode('utf-8')
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


# ================================================================================
# Capture Tests
# ================================================================================

@pytest.mark.unit
class TestResolveOnCapture:
    """Tests for AddressResolver.resolveOnCapture()."""

    def test_resolveOnCapture_online_returnsProviderAddress(self, resolver: AddressResolver):
        address = resolver.resolveOnCapture(makeCoords(0))
        assert address.startswith('1 Test Street')
        assert not isFallback(address)

    def test_resolveOnCapture_offline_returnsFallback(
        self, resolver: AddressResolver, geocoder: ScriptedGeocoder
    ):
        """
        Given: A geocoder that cannot be reached
        When: An address is resolved on capture
        Then: The fallback encoding is returned without raising
        """
        geocoder.online = False
        coords = makeCoords(0)
        assert resolver.resolveOnCapture(coords) == formatFallbackAddress(coords)

    def test_resolveOnCapture_emptyResult_returnsFallback(
        self, resolver: AddressResolver, geocoder: ScriptedGeocoder
    ):
        geocoder.emptyResults = True
        assert isFallback(resolver.resolveOnCapture(makeCoords(0)))

    def test_isFallback_staticHelper(self):
        assert AddressResolver.isFallback('1.0, 2.0 (offline)') is True
        assert AddressResolver.isFallback('1 Main St') is False


# ================================================================================
# Backfill Tests
# ================================================================================

@pytest.mark.unit
class TestResolvePending:
    """Tests for AddressResolver.resolvePending()."""

    def test_resolvePending_online_resolvesAndClearsFlag(
        self, store: LocalStore, vehicle: Vehicle, resolver: AddressResolver
    ):
        """
        Given: A trip with fallback start and end addresses
        When: resolvePending() runs with the geocoder online
        Then: Both addresses are replaced and needs_lookup is cleared
        """
        trip = _offlineTrip(store, vehicle)
        assert trip.needsLookup is True

        summary = resolver.resolvePending()

        assert summary == ResolutionSummary(total=1, resolved=1, failed=0)
        stored = store.trips.requireTrip(trip.id)
        assert stored.needsLookup is False
        assert not isFallback(stored.startAddress)
        assert not isFallback(stored.endAddress)

    def test_resolvePending_offline_leavesTripUnchanged(
        self, store: LocalStore, vehicle: Vehicle, resolver: AddressResolver,
        geocoder: ScriptedGeocoder
    ):
        trip = _offlineTrip(store, vehicle)
        geocoder.online = False

        summary = resolver.resolvePending()

        assert summary.toDict() == {'total': 1, 'resolved': 0, 'failed': 1}
        stored = store.trips.requireTrip(trip.id)
        assert stored.needsLookup is True
        assert stored.startAddress == trip.startAddress

    def test_resolvePending_partialSuccess_keepsFlagButSavesResolvedField(
        self, store: LocalStore, vehicle: Vehicle
    ):
        """
        Given: A geocoder that resolves the start but not the end position
        When: resolvePending() runs
        Then: The start address is saved and the trip stays flagged
        """
        trip = _offlineTrip(store, vehicle)
        resolver = AddressResolver(store.trips, NorthOnlyGeocoder(maxLat=makeCoords(0.5).lat))

        summary = resolver.resolvePending()

        assert summary.failed == 1
        stored = store.trips.requireTrip(trip.id)
        assert not isFallback(stored.startAddress)
        assert isFallback(stored.endAddress)
        assert stored.needsLookup is True

    def test_resolvePending_secondRun_isNoOp(
        self, store: LocalStore, vehicle: Vehicle, resolver: AddressResolver,
        geocoder: ScriptedGeocoder
    ):
        """
        Given: A backfill pass that resolved everything
        When: resolvePending() runs again
        Then: Nothing is looked up and the summary is empty
        """
        _offlineTrip(store, vehicle)
        resolver.resolvePending()
        callsAfterFirst = geocoder.reverseCalls

        summary = resolver.resolvePending()

        assert summary == ResolutionSummary()
        assert geocoder.reverseCalls == callsAfterFirst

    def test_resolvePending_onlyFallbackFieldsAreLookedUp(
        self, store: LocalStore, vehicle: Vehicle, resolver: AddressResolver,
        geocoder: ScriptedGeocoder
    ):
        trip = store.trips.createTrip(vehicle.id, makeCoords(0), startAddress='1 Main St')
        end = makeCoords(2)
        store.trips.updateTrip(
            trip.id, status=TripStatus.COMPLETED,
            endCoords=end, endAddress=formatFallbackAddress(end)
        )

        resolver.resolvePending()

        stored = store.trips.requireTrip(trip.id)
        assert stored.startAddress == '1 Main St'
        assert geocoder.reverseCalls == 1

    def test_resolvePending_missingCoords_usesParsedFallback(
        self, store: LocalStore, vehicle: Vehicle, resolver: AddressResolver
    ):
        """
        Given: A fallback end address but no stored end coordinate
        When: The trip is resolved
        Then: The position parsed from the fallback text is used
        """
        trip = store.trips.createTrip(vehicle.id, makeCoords(0), startAddress='1 Main St')
        store.trips.updateTrip(trip.id, endAddress=formatFallbackAddress(makeCoords(3)))

        assert resolver.resolveTrip(trip.id) is True
        assert 'Test Street' in store.trips.requireTrip(trip.id).endAddress

    def test_resolveTrip_unknownId_returnsFalse(self, resolver: AddressResolver):
        assert resolver.resolveTrip('missing') is False

    def test_getPendingCount_countsFlaggedTrips(
        self, store: LocalStore, vehicle: Vehicle, resolver: AddressResolver
    ):
        assert resolver.getPendingCount() == 0
        _offlineTrip(store, vehicle)
        assert resolver.getPendingCount() == 1


@pytest.mark.unit
class TestLookupCoordinates:
    """Tests for AddressResolver.lookupCoordinates()."""

    def test_lookupCoordinates_online_returnsCoords(self, resolver: AddressResolver):
        assert resolver.lookupCoordinates('1 Main St') is not None

    def test_lookupCoordinates_offline_returnsNone(
        self, resolver: AddressResolver, geocoder: ScriptedGeocoder
    ):
        geocoder.online = False
        assert resolver.lookupCoordinates('1 Main St') is None


# ================================================================================
# Nominatim Client Tests
# ================================================================================

@pytest.mark.unit
class TestNominatimGeocoder:
    """Tests for NominatimGeocoder with urlopen patched."""

    def test_reverseGeocode_returnsDisplayName(self):
        geocoder = NominatimGeocoder({'geocoding': {'baseUrl': 'http://geo.test/'}})
        with patch('mileage.geocoding.provider.urlopen',
                   return_value=_jsonResponse({'display_name': '1 Main St'})) as mockOpen:
            assert geocoder.reverseGeocode(Coordinates(40.0, -74.0)) == '1 Main St'

        request = mockOpen.call_args[0][0]
        assert request.full_url.startswith('http://geo.test/reverse?')
        assert 'lon=-74.0' in request.full_url
        assert request.get_header('User-agent') == 'AuditproofMileage/1.0'

    def test_reverseGeocode_noAddress_returnsNoneAndCounts(self):
        geocoder = NominatimGeocoder()
        with patch('mileage.geocoding.provider.urlopen',
                   return_value=_jsonResponse({'error': 'Unable to geocode'})):
            assert geocoder.reverseGeocode(Coordinates(0.0, 0.0)) is None
        assert geocoder.getStats()['emptyResults'] == 1

    def test_reverseGeocode_urlError_raisesGeocodingError(self):
        geocoder = NominatimGeocoder()
        with patch('mileage.geocoding.provider.urlopen', side_effect=URLError('offline')):
            with pytest.raises(GeocodingError):
                geocoder.reverseGeocode(Coordinates(0.0, 0.0))
        assert geocoder.getStats()['errors'] == 1

    def test_reverseGeocode_httpError_carriesStatus(self):
        error = HTTPError('http://geo.test', 503, 'Busy', {}, io.BytesIO(b''))
        geocoder = NominatimGeocoder()
        with patch('mileage.geocoding.provider.urlopen', side_effect=error):
            with pytest.raises(GeocodingError) as excInfo:
                geocoder.reverseGeocode(Coordinates(0.0, 0.0))
        assert excInfo.value.details['status'] == 503

    def test_reverseGeocode_timeout_raisesGeocodingError(self):
        geocoder = NominatimGeocoder()
        with patch('mileage.geocoding.provider.urlopen', side_effect=TimeoutError()):
            with pytest.raises(GeocodingError):
                geocoder.reverseGeocode(Coordinates(0.0, 0.0))

    def test_reverseGeocode_withRetries_retriesTransportErrors(self):
        """
        Given: A geocoder configured with one retry
        When: The first request fails and the second succeeds
        Then: The address from the second attempt is returned
        """
        geocoder = NominatimGeocoder({'geocoding': {'maxRetries': 1, 'retryDelaySeconds': 0}})
        responses = [URLError('blip'), _jsonResponse({'display_name': '2 Main St'})]
        with patch('mileage.geocoding.provider.urlopen', side_effect=responses) as mockOpen:
            assert geocoder.reverseGeocode(Coordinates(0.0, 0.0)) == '2 Main St'
        assert mockOpen.call_count == 2

    def test_forwardGeocode_parsesFirstResult(self):
        geocoder = NominatimGeocoder()
        payload = [{'lat': '40.7128', 'lon': '-74.0060'}]
        with patch('mileage.geocoding.provider.urlopen', return_value=_jsonResponse(payload)):
            assert geocoder.forwardGeocode('New York') == Coordinates(40.7128, -74.006)

    def test_forwardGeocode_emptyList_returnsNone(self):
        geocoder = NominatimGeocoder()
        with patch('mileage.geocoding.provider.urlopen', return_value=_jsonResponse([])):
            assert geocoder.forwardGeocode('Nowhere') is None

    def test_forwardGeocode_malformed_raisesGeocodingError(self):
        geocoder = NominatimGeocoder()
        with patch('mileage.geocoding.provider.urlopen',
                   return_value=_jsonResponse([{'lat': 'north'}])):
            with pytest.raises(GeocodingError):
                geocoder.forwardGeocode('Somewhere')

    def test_createGeocoderFromConfig_returnsNominatim(self, mileageConfig):
        assert isinstance(createGeocoderFromConfig(mileageConfig), NominatimGeocoder)
