################################################################################
# File Name: __init__.py
# Purpose/Description: Local store adapter package
# Author: Mileage Core Team
# Creation Date: 2026-10-04
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-04    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Local store adapter.

One store class per table, all sharing a MileageDatabase. LocalStore bundles
them for components that need more than one.

Usage:
    from mileage.store import LocalStore

    store = LocalStore(db)
    vehicle = store.vehicles.createVehicle('Toyota', 'Prius', 2021, 'ABC123')
"""

from ..database import MileageDatabase
from .photos import PhotoStore
from .reports import ReportStore
from .settings import SettingsStore, calculateReimbursement
from .trips import UPDATABLE_FIELDS, TripStore, monthBounds
from .vehicles import VehicleStore


class LocalStore:
    """All stores over one database."""

    def __init__(self, database: MileageDatabase):
        self.database = database
        self.trips = TripStore(database)
        self.vehicles = VehicleStore(database)
        self.settings = SettingsStore(database)
        self.reports = ReportStore(database)
        self.photos = PhotoStore(database)


__all__ = [
    'LocalStore',
    'TripStore',
    'VehicleStore',
    'SettingsStore',
    'ReportStore',
    'PhotoStore',
    'UPDATABLE_FIELDS',
    'monthBounds',
    'calculateReimbursement',
]
