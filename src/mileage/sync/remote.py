################################################################################
# File Name: remote.py
# Purpose/Description: Upsert-capable remote store clients
# Author: Mileage Core Team
# Creation Date: 2026-10-08
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-08    | Core Team    | Initial implementation
# 2026-10-11    | Core Team    | In-memory store for offline runs and tests
# 2026-10-16    | Core Team    | Only unreachable/overloaded errors are retried
# ================================================================================
################################################################################

"""
Remote store clients.

RemoteStore is the collaborator contract used by SyncService:
- upsert(table, record): insert or merge by record['id']; raises a
  RemoteStoreError subclass when the remote side rejects or cannot be reached
- select(table, filters): rows matching column equality filters

There is deliberately no delete operation.

RestRemoteStore talks to a PostgREST-compatible endpoint. Upserts are sent
with 'Prefer: resolution=merge-duplicates' so a repeated push of the same id
merges into the existing row and columns the client does not send are left
untouched.

HTTP failures map onto the error categories: 401/403 RemoteAuthError,
408/429/5xx and network failures RemoteUnavailableError (retried), any
other status or an unreadable reply RemoteRejectedError (not retried).

InMemoryRemoteStore keeps rows in a dict and can be told to reject ids.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from common.error_handler import RetryableError, retry
from common.secrets_loader import maskSecret

from .types import (
    DEFAULT_REST_PATH,
    RemoteAuthError,
    RemoteRejectedError,
    RemoteStoreError,
    RemoteUnavailableError,
    SyncConfig,
)

logger = logging.getLogger(__name__)


class RemoteStore(ABC):
    """Upsert-capable remote store."""

    @abstractmethod
    def upsert(self, table: str, record: dict[str, Any]) -> None:
        """
        Insert or merge a record keyed by its 'id'.

        Raises:
            RemoteStoreError: If the record was not accepted
        """

    @abstractmethod
    def select(self, table: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """
        Rows whose columns equal every filter value.

        Raises:
            RemoteStoreError: If the query failed
        """


class RestRemoteStore(RemoteStore):
    """
    PostgREST client over urllib.

    Attributes:
        config: SyncConfig with url, apiKey and timeout

    Example:
        remote = RestRemoteStore(SyncConfig(url='https://x.supabase.co', apiKey=key))
        remote.upsert('trips', trip.toDict())
    """

    def __init__(self, config: SyncConfig):
        if not config.url:
            raise ValueError("Remote store URL is not configured")

        self._baseUrl = config.url.rstrip('/') + DEFAULT_REST_PATH
        self._apiKey = config.apiKey
        self._timeout = config.timeoutSeconds

        self._send = retry(
            maxRetries=config.maxRetries,
            initialDelay=1.0,
            retryableExceptions=[RetryableError]
        )(self._request)

        logger.debug(
            f"Remote store configured | url={self._baseUrl} | apiKey={maskSecret(self._apiKey)}"
        )

    def upsert(self, table: str, record: dict[str, Any]) -> None:
        if not record.get('id'):
            raise RemoteRejectedError("Record has no id", details={'table': table})

        self._send(
            'POST',
            f"{self._baseUrl}/{table}?{urlencode({'on_conflict': 'id'})}",
            body=record,
            prefer='resolution=merge-duplicates,return=minimal'
        )

    def select(self, table: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        params = {'select': '*'}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{_filterValue(value)}"

        rows = self._send('GET', f"{self._baseUrl}/{table}?{urlencode(params)}")
        return rows if isinstance(rows, list) else []

    def _headers(self, prefer: str | None) -> dict[str, str]:
        headers = {
            'apikey': self._apiKey,
            'Authorization': f"Bearer {self._apiKey}",
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if prefer:
            headers['Prefer'] = prefer
        return headers

    def _request(
        self,
        method: str,
        url: str,
        body: dict[str, Any] | None = None,
        prefer: str | None = None
    ) -> Any:
        data = json.dumps(body).encode('utf-8') if body is not None else None
        request = Request(url, data=data, method=method, headers=self._headers(prefer))

        try:
            with urlopen(request, timeout=self._timeout) as response:
                payload = response.read()
                return json.loads(payload.decode('utf-8')) if payload else None

        except HTTPError as e:
            errorClass = _httpErrorClass(e.code)
            raise errorClass(
                f"HTTP error {e.code}: {e.reason}",
                details={'method': method, 'status': e.code}
            ) from e
        except URLError as e:
            raise RemoteUnavailableError(
                f"Remote store unreachable: {e.reason}",
                details={'method': method}
            ) from e
        except TimeoutError as e:
            raise RemoteUnavailableError(
                f"Remote store timed out after {self._timeout}s",
                details={'method': method}
            ) from e
        except json.JSONDecodeError as e:
            raise RemoteRejectedError(
                f"Invalid JSON response: {e}",
                details={'method': method}
            ) from e


def _httpErrorClass(status: int) -> type[RemoteStoreError]:
    if status in (401, 403):
        return RemoteAuthError
    if status in (408, 429) or status >= 500:
        return RemoteUnavailableError
    return RemoteRejectedError


def _filterValue(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


class InMemoryRemoteStore(RemoteStore):
    """
    Dict-backed remote store.

    Upserts merge into existing rows the same way the REST endpoint does.
    Ids in failIds are rejected with RemoteRejectedError.
    """

    def __init__(self, failIds: set[str] | None = None):
        self.tables: dict[str, dict[str, dict[str, Any]]] = {}
        self.failIds: set[str] = set(failIds or ())
        self.upsertCalls = 0
        self._lock = threading.Lock()

    def upsert(self, table: str, record: dict[str, Any]) -> None:
        recordId = record.get('id')
        with self._lock:
            self.upsertCalls += 1
            if not recordId or recordId in self.failIds:
                raise RemoteRejectedError(
                    "Record rejected",
                    details={'table': table, 'id': recordId}
                )
            rows = self.tables.setdefault(table, {})
            rows.setdefault(recordId, {}).update(record)

    def select(self, table: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        with self._lock:
            rows = list(self.tables.get(table, {}).values())
        return [
            dict(row) for row in rows
            if all(row.get(column) == value for column, value in (filters or {}).items())
        ]
