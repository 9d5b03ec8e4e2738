################################################################################
# File Name: __init__.py
# Purpose/Description: Remote sync package
# Author: Mileage Core Team
# Creation Date: 2026-10-08
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-08    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Export remote error subclasses
# ================================================================================
################################################################################

"""
Remote sync package.

Usage:
    from mileage.sync import createSyncServiceFromConfig

    service = createSyncServiceFromConfig(config, store)
    result = service.syncTrips()
"""

from typing import Any

from ..network import createNetworkCheckFromConfig
from .remote import InMemoryRemoteStore, RemoteStore, RestRemoteStore
from .service import SyncService, tripToRemoteRecord
from .types import (
    LOCAL_ONLY_TRIP_FIELDS,
    TABLE_TRIPS,
    TABLE_VEHICLES,
    RemoteAuthError,
    RemoteRejectedError,
    RemoteStoreError,
    RemoteUnavailableError,
    SyncConfig,
    SyncResult,
    SyncSummary,
)


def getSyncConfig(config: dict[str, Any]) -> SyncConfig:
    return SyncConfig.fromDict(config.get('sync', {}))


def createSyncServiceFromConfig(
    config: dict[str, Any],
    store: Any,
    remote: RemoteStore | None = None
) -> SyncService:
    """
    Create a SyncService from configuration.

    Args:
        config: Configuration dictionary with 'sync' section
        store: LocalStore instance
        remote: Remote store override; defaults to a RestRemoteStore

    Raises:
        ValueError: If no remote is given and sync.url is not set
    """
    if remote is None:
        remote = RestRemoteStore(getSyncConfig(config))
    return SyncService(store, remote, networkCheck=createNetworkCheckFromConfig(config))


__all__ = [
    'SyncService',
    'RemoteStore',
    'RestRemoteStore',
    'InMemoryRemoteStore',
    'RemoteStoreError',
    'RemoteRejectedError',
    'RemoteUnavailableError',
    'RemoteAuthError',
    'SyncConfig',
    'SyncResult',
    'SyncSummary',
    'TABLE_TRIPS',
    'TABLE_VEHICLES',
    'LOCAL_ONLY_TRIP_FIELDS',
    'tripToRemoteRecord',
    'getSyncConfig',
    'createSyncServiceFromConfig',
]
