################################################################################
# File Name: test_remote_store.py
# Purpose/Description: Tests for remote store clients and the connectivity check
# Author: Mileage Core Team
# Creation Date: 2026-10-13
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-13    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Error class per HTTP status; only transient failures retried
# ================================================================================
################################################################################

"""
Tests for mileage.sync.remote and mileage.network.

HTTP is never performed; urlopen and socket.create_connection are patched.

Run with:
    pytest tests/test_remote_store.py -v
"""

import json
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from mileage.network import createNetworkCheckFromConfig, isNetworkAvailable
from common.error_handler import ErrorCategory, classifyError
from mileage.sync import (
    InMemoryRemoteStore,
    RemoteAuthError,
    RemoteRejectedError,
    RemoteStoreError,
    RemoteUnavailableError,
    RestRemoteStore,
    SyncConfig,
)


def _response(payload=None) -> MagicMock:
    response = MagicMock()
    response.read.return_value = b'' if payload is None else json.dumps(payload).encode('utf-8')
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


@pytest.fixture
def restStore() -> RestRemoteStore:
    return RestRemoteStore(SyncConfig(url='https://project.example.test/', apiKey='anon-key'))


# ================================================================================
# REST Client
# ================================================================================

@pytest.mark.unit
class TestRestRemoteStore:
    """Tests for RestRemoteStore."""

    def test_init_withoutUrl_raisesValueError(self):
        with pytest.raises(ValueError):
            RestRemoteStore(SyncConfig())

    def test_upsert_postsMergeRequest(self, restStore: RestRemoteStore):
        """
        Given: A configured REST store
        When: A record is upserted
        Then: A POST with on_conflict=id and merge-duplicates is sent with the key
        """
        with patch('mileage.sync.remote.urlopen', return_value=_response()) as mockOpen:
            restStore.upsert('trips', {'id': 't1', 'distance_miles': 2.0})

        request = mockOpen.call_args.args[0]
        assert request.get_method() == 'POST'
        assert request.full_url == 'https://project.example.test/rest/v1/trips?on_conflict=id'
        assert 'merge-duplicates' in request.get_header('Prefer')
        assert request.get_header('Apikey') == 'anon-key'
        assert request.get_header('Authorization') == 'Bearer anon-key'
        assert json.loads(request.data) == {'id': 't1', 'distance_miles': 2.0}

    def test_upsert_withoutId_raisesBeforeRequest(self, restStore: RestRemoteStore):
        with patch('mileage.sync.remote.urlopen') as mockOpen:
            with pytest.raises(RemoteStoreError):
                restStore.upsert('trips', {'distance_miles': 2.0})
        mockOpen.assert_not_called()

    def test_select_buildsEqualityFilters(self, restStore: RestRemoteStore):
        rows = [{'id': 't1'}]
        with patch('mileage.sync.remote.urlopen', return_value=_response(rows)) as mockOpen:
            result = restStore.select('trips', {'vehicle_id': 'v1', 'auto_detected': True})

        url = mockOpen.call_args.args[0].full_url
        assert 'vehicle_id=eq.v1' in url
        assert 'auto_detected=eq.true' in url
        assert result == rows

    def test_select_nonListPayload_returnsEmpty(self, restStore: RestRemoteStore):
        with patch('mileage.sync.remote.urlopen', return_value=_response({'message': 'odd'})):
            assert restStore.select('trips') == []

    def test_request_httpError_raisesWithStatus(self, restStore: RestRemoteStore):
        error = HTTPError('https://project.example.test', 409, 'Conflict', None, None)
        with patch('mileage.sync.remote.urlopen', side_effect=error):
            with pytest.raises(RemoteRejectedError) as excInfo:
                restStore.upsert('trips', {'id': 't1'})
        assert excInfo.value.details['status'] == 409
        assert classifyError(excInfo.value) == ErrorCategory.DATA

    @pytest.mark.parametrize('status, errorClass, category', [
        (401, RemoteAuthError, ErrorCategory.AUTHENTICATION),
        (403, RemoteAuthError, ErrorCategory.AUTHENTICATION),
        (408, RemoteUnavailableError, ErrorCategory.RETRYABLE),
        (429, RemoteUnavailableError, ErrorCategory.RETRYABLE),
        (503, RemoteUnavailableError, ErrorCategory.RETRYABLE),
        (400, RemoteRejectedError, ErrorCategory.DATA),
    ])
    def test_request_httpStatus_mapsToErrorClass(
        self, restStore: RestRemoteStore, status: int, errorClass: type, category: ErrorCategory
    ):
        error = HTTPError('https://project.example.test', status, 'Failed', None, None)
        with patch('mileage.sync.remote.urlopen', side_effect=error):
            with pytest.raises(errorClass) as excInfo:
                restStore.select('trips')
        assert isinstance(excInfo.value, RemoteStoreError)
        assert classifyError(excInfo.value) == category

    def test_request_unreachable_raisesUnavailable(self, restStore: RestRemoteStore):
        with patch('mileage.sync.remote.urlopen', side_effect=URLError('no route')):
            with pytest.raises(RemoteUnavailableError):
                restStore.select('vehicles')

    def test_request_retriesTransientFailures(self):
        store = RestRemoteStore(SyncConfig(url='https://project.example.test', maxRetries=2))
        responses = [URLError('blip'), _response()]
        with patch('mileage.sync.remote.urlopen', side_effect=responses) as mockOpen, \
                patch('common.error_handler.time.sleep'):
            store.upsert('trips', {'id': 't1'})
        assert mockOpen.call_count == 2

    def test_request_serviceUnavailable_isRetried(self):
        store = RestRemoteStore(SyncConfig(url='https://project.example.test', maxRetries=2))
        busy = HTTPError('https://project.example.test', 503, 'Unavailable', None, None)
        with patch('mileage.sync.remote.urlopen', side_effect=[busy, _response()]) as mockOpen, \
                patch('common.error_handler.time.sleep'):
            store.upsert('trips', {'id': 't1'})
        assert mockOpen.call_count == 2

    def test_request_rejectedRecord_isNotRetried(self):
        """
        Given: A store allowed two retries
        When: The endpoint answers 409 Conflict
        Then: The request is sent once and the rejection propagates
        """
        store = RestRemoteStore(SyncConfig(url='https://project.example.test', maxRetries=2))
        conflict = HTTPError('https://project.example.test', 409, 'Conflict', None, None)
        with patch('mileage.sync.remote.urlopen', side_effect=conflict) as mockOpen, \
                patch('common.error_handler.time.sleep') as mockSleep:
            with pytest.raises(RemoteRejectedError):
                store.upsert('trips', {'id': 't1'})
        assert mockOpen.call_count == 1
        mockSleep.assert_not_called()

    def test_request_badApiKey_isNotRetried(self):
        store = RestRemoteStore(SyncConfig(url='https://project.example.test', maxRetries=2))
        denied = HTTPError('https://project.example.test', 401, 'Unauthorized', None, None)
        with patch('mileage.sync.remote.urlopen', side_effect=denied) as mockOpen, \
                patch('common.error_handler.time.sleep'):
            with pytest.raises(RemoteAuthError):
                store.upsert('trips', {'id': 't1'})
        assert mockOpen.call_count == 1


# ================================================================================
# In-Memory Store
# ================================================================================

@pytest.mark.unit
class TestInMemoryRemoteStore:
    """Tests for InMemoryRemoteStore."""

    def test_upsert_sameId_mergesColumns(self):
        store = InMemoryRemoteStore()
        store.upsert('trips', {'id': 't1', 'purpose': 'a', 'notes': 'keep'})
        store.upsert('trips', {'id': 't1', 'purpose': 'b'})

        assert store.select('trips') == [{'id': 't1', 'purpose': 'b', 'notes': 'keep'}]

    def test_upsert_failId_raises(self):
        store = InMemoryRemoteStore(failIds={'t1'})
        with pytest.raises(RemoteStoreError):
            store.upsert('trips', {'id': 't1'})
        assert store.select('trips') == []

    def test_select_filtersByEquality(self):
        store = InMemoryRemoteStore()
        store.upsert('trips', {'id': 't1', 'vehicle_id': 'v1'})
        store.upsert('trips', {'id': 't2', 'vehicle_id': 'v2'})
        assert [row['id'] for row in store.select('trips', {'vehicle_id': 'v2'})] == ['t2']


# ================================================================================
# Connectivity Check
# ================================================================================

@pytest.mark.unit
class TestNetworkCheck:
    """Tests for mileage.network."""

    def test_isNetworkAvailable_connects_returnsTrue(self):
        with patch('mileage.network.socket.create_connection') as mockConnect:
            assert isNetworkAvailable('check.test', 443, 1.0) is True
        mockConnect.assert_called_once_with(('check.test', 443), timeout=1.0)

    def test_isNetworkAvailable_osError_returnsFalse(self):
        with patch('mileage.network.socket.create_connection', side_effect=OSError('down')):
            assert isNetworkAvailable() is False

    def test_createCheckFromConfig_usesSyncSettings(self):
        check = createNetworkCheckFromConfig({'sync': {
            'checkHost': '1.1.1.1', 'checkPort': '53', 'checkTimeoutSeconds': 0.5
        }})
        with patch('mileage.network.socket.create_connection') as mockConnect:
            assert check() is True
        mockConnect.assert_called_once_with(('1.1.1.1', 53), timeout=0.5)
