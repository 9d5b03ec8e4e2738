################################################################################
# File Name: __init__.py
# Purpose/Description: Mileage core package initialization
# Author: Mileage Core Team
# Creation Date: 2026-10-01
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-01    | Core Team    | Initial implementation
# 2026-10-11    | Core Team    | Export MileageCore
# ================================================================================
################################################################################

"""
Auditproof mileage core.

Offline-first trip lifecycle and reconciliation:
- geometry and integrity engines
- local SQLite store
- address resolution with offline fallback
- manual and auto-detected trip lifecycle
- remote sync, signed monthly reports, odometer photos, statistics

Subpackages are importable on their own; MileageCore wires them together.
"""

from .exceptions import (
    IntegrityMismatchError,
    InvalidTripStateError,
    MileageError,
    NetworkUnavailableError,
    NotFoundError,
    PermissionDeniedError,
    TripConflictError,
)
from .orchestrator import MileageCore, OrchestratorError, createMileageCoreFromConfig
from .types import (
    Coordinates,
    PhotoType,
    Report,
    Trip,
    TripClassification,
    TripStatus,
    Vehicle,
    VehiclePhoto,
)

__version__ = '1.0.0'

__all__ = [
    'MileageCore',
    'OrchestratorError',
    'createMileageCoreFromConfig',
    'MileageError',
    'PermissionDeniedError',
    'TripConflictError',
    'NotFoundError',
    'InvalidTripStateError',
    'NetworkUnavailableError',
    'IntegrityMismatchError',
    'Coordinates',
    'Trip',
    'Vehicle',
    'VehiclePhoto',
    'Report',
    'TripStatus',
    'TripClassification',
    'PhotoType',
    '__version__',
]
