################################################################################
# File Name: types.py
# Purpose/Description: Sync constants, results and remote-store errors
# Author: Mileage Core Team
# Creation Date: 2026-10-08
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-08    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Remote error subclasses by category
# ================================================================================
################################################################################

"""
Sync type definitions.

- RemoteStoreError: a single remote call failed; subclasses tell a rejected
  record, an unreachable store and a refused API key apart
- SyncConfig: remote endpoint settings from the 'sync' section
- SyncResult: synced/failed counts for one record category
- SyncSummary: results of syncAll()
"""

from dataclasses import dataclass, field
from typing import Any

from common.error_handler import AuthenticationError, DataError, RetryableError

from ..exceptions import MileageError

# ================================================================================
# Constants
# ================================================================================

TABLE_TRIPS = 'trips'
TABLE_VEHICLES = 'vehicles'

DEFAULT_SYNC_TIMEOUT_SECONDS = 5.0
DEFAULT_REST_PATH = '/rest/v1'

# Local-only trip fields that are never pushed
LOCAL_ONLY_TRIP_FIELDS = frozenset({'needs_lookup'})


# ================================================================================
# Exceptions
# ================================================================================

class RemoteStoreError(MileageError):
    """A remote upsert or select did not succeed."""


class RemoteRejectedError(RemoteStoreError, DataError):
    """The remote store refused the record (missing id, 4xx, unreadable reply)."""


class RemoteUnavailableError(RemoteStoreError, RetryableError):
    """Remote store unreachable, timed out or answering 408, 429 or 5xx."""


class RemoteAuthError(RemoteStoreError, AuthenticationError):
    """Remote store rejected the API key (401 or 403)."""


# ================================================================================
# Data Classes
# ================================================================================

@dataclass
class SyncConfig:
    """
    Remote store settings.

    Attributes:
        enabled: Sync is configured for this install
        url: Base URL of the remote project
        apiKey: API key sent as apikey and bearer token
        timeoutSeconds: Per-request timeout
        maxRetries: Retries per record on transient failures
    """
    enabled: bool = False
    url: str = ''
    apiKey: str = ''
    timeoutSeconds: float = DEFAULT_SYNC_TIMEOUT_SECONDS
    maxRetries: int = 0

    def toDict(self) -> dict[str, Any]:
        return {
            'enabled': self.enabled,
            'url': self.url,
            'timeoutSeconds': self.timeoutSeconds,
            'maxRetries': self.maxRetries,
        }

    @classmethod
    def fromDict(cls, data: dict[str, Any]) -> 'SyncConfig':
        return cls(
            enabled=bool(data.get('enabled', False)),
            url=data.get('url', '') or '',
            apiKey=data.get('apiKey', '') or '',
            timeoutSeconds=float(data.get('timeoutSeconds', DEFAULT_SYNC_TIMEOUT_SECONDS)),
            maxRetries=int(data.get('maxRetries', 0)),
        )


@dataclass
class SyncResult:
    """
    Outcome of pushing one category of records.

    Attributes:
        category: 'trips' or 'vehicles'
        synced: Records the remote store accepted
        failed: Records left for the next run
        errors: Per-record error descriptions
    """
    category: str
    synced: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.synced + self.failed

    def toDict(self) -> dict[str, Any]:
        return {
            'category': self.category,
            'synced': self.synced,
            'failed': self.failed,
            'errors': list(self.errors),
        }


@dataclass
class SyncSummary:
    """Results of a full sync pass."""
    vehicles: SyncResult
    trips: SyncResult

    @property
    def failed(self) -> int:
        return self.vehicles.failed + self.trips.failed

    def toDict(self) -> dict[str, Any]:
        return {
            'vehicles': self.vehicles.toDict(),
            'trips': self.trips.toDict(),
        }
