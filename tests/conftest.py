################################################################################
# File Name: conftest.py
# Purpose/Description: Pytest fixtures and configuration
# Author: Mileage Core Team
# Creation Date: 2026-10-01
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-01    | Core Team    | Initial implementation
# 2026-10-09    | Core Team    | Store, resolver and lifecycle fixtures
# ================================================================================
################################################################################

"""
Pytest configuration and shared fixtures.

Fixtures defined here are available to all test files automatically. Every
database lives in the test's tmp_path.

Usage:
    def test_something(store, vehicle, manager):
        trip = manager.start(vehicle.id)
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
srcPath = Path(__file__).parent.parent / 'src'
if str(srcPath) not in sys.path:
    sys.path.insert(0, str(srcPath))

from mileage.database import MileageDatabase
from mileage.geocoding import AddressResolver
from mileage.location import SimulatedLocationProvider
from mileage.store import LocalStore
from mileage.trip import TripFinalizer, TripLifecycleManager
from mileage.types import Vehicle

from tests.test_utils import ScriptedGeocoder, createTestConfig, makeCoords


# ================================================================================
# Configuration Fixtures
# ================================================================================

@pytest.fixture
def mileageConfig(tmp_path: Path) -> dict[str, Any]:
    """Configuration whose database, maps and photos live under tmp_path."""
    return createTestConfig(tmp_path)


@pytest.fixture
def cleanEnv() -> Generator[None, None, None]:
    """
    Remove mileage variables from the environment for the test.

    Restores them afterwards.
    """
    varsToRemove = [
        'MILEAGE_DB_PATH', 'MILEAGE_SYNC_URL', 'MILEAGE_SYNC_API_KEY',
        'MILEAGE_USER_AGENT', 'TEST_VAR',
    ]

    saved = {}
    for var in varsToRemove:
        saved[var] = os.environ.pop(var, None)

    yield

    for var, value in saved.items():
        if value is not None:
            os.environ[var] = value
        else:
            os.environ.pop(var, None)


# ================================================================================
# Store Fixtures
# ================================================================================

@pytest.fixture
def database(tmp_path: Path) -> MileageDatabase:
    """Initialized database in tmp_path."""
    db = MileageDatabase(str(tmp_path / 'mileage.db'))
    db.initialize()
    return db


@pytest.fixture
def store(database: MileageDatabase) -> LocalStore:
    return LocalStore(database)


@pytest.fixture
def vehicle(store: LocalStore) -> Vehicle:
    """A 2021 Toyota Prius whose current month is 2026-09."""
    return store.vehicles.createVehicle('Toyota', 'Prius', 2021, 'ABC123', monthYear='2026-09')


# ================================================================================
# Collaborator Fixtures
# ================================================================================

@pytest.fixture
def geocoder() -> ScriptedGeocoder:
    """Online geocoder double; set .online = False to simulate no network."""
    return ScriptedGeocoder(online=True)


@pytest.fixture
def resolver(store: LocalStore, geocoder: ScriptedGeocoder) -> AddressResolver:
    return AddressResolver(store.trips, geocoder)


@pytest.fixture
def provider() -> SimulatedLocationProvider:
    """Location provider parked at the base position with permissions granted."""
    locationProvider = SimulatedLocationProvider()
    locationProvider.setPosition(makeCoords(0.0))
    return locationProvider


@pytest.fixture
def finalizer(store: LocalStore, resolver: AddressResolver) -> TripFinalizer:
    return TripFinalizer(store.trips, resolver)


@pytest.fixture
def manager(
    store: LocalStore,
    resolver: AddressResolver,
    provider: SimulatedLocationProvider,
    finalizer: TripFinalizer
) -> Generator[TripLifecycleManager, None, None]:
    """Lifecycle manager without background sampling; points are added by the test."""
    lifecycle = TripLifecycleManager(store, resolver, provider, sampler=None, finalizer=finalizer)
    yield lifecycle
    lifecycle.shutdown()


# ================================================================================
# Pytest Configuration
# ================================================================================

def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
