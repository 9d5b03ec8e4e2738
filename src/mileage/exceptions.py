################################################################################
# File Name: exceptions.py
# Purpose/Description: Domain error taxonomy for the mileage core
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Categories come from the common base classes
# ================================================================================
################################################################################

"""
Exception classes for the mileage core.

Every domain error carries a message and a details dictionary. It derives
from MileageError and from one category class of common.error_handler, so
retry() and classifyError() treat it by category:

- PermissionDeniedError: location permission missing (config)
- TripConflictError: a trip is already active (data)
- NotFoundError: unknown trip or vehicle id (data)
- InvalidTripStateError: operation not legal in the trip's status (data)
- NetworkUnavailableError: sync attempted without connectivity (retryable)
- IntegrityMismatchError: recomputed hash differs from stored hash (data)
"""

from typing import Any

from common.error_handler import BaseError, ConfigurationError, DataError, RetryableError


class MileageError(BaseError):
    """
    Base exception for mileage core errors.

    Example:
        raise MileageError(
            "Failed to finalize trip",
            details={'tripId': 'abc', 'reason': 'no points'}
        )
    """

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class PermissionDeniedError(MileageError, ConfigurationError):
    """Foreground or background location permission is not granted."""


class TripConflictError(MileageError, DataError):
    """
    A trip is already active.

    Example:
        raise TripConflictError(
            "A trip is already in progress",
            details={'activeTripId': active.id}
        )
    """


class NotFoundError(MileageError, DataError):
    """A trip, vehicle or report id does not exist."""

    def __init__(self, entity: str, entityId: str, details: dict[str, Any] | None = None):
        super().__init__(
            f"{entity} not found: {entityId}",
            details={'entity': entity, 'id': entityId, **(details or {})}
        )
        self.entity = entity
        self.entityId = entityId


class InvalidTripStateError(MileageError, DataError):
    """Operation is not legal for the trip's current status."""


class NetworkUnavailableError(MileageError, RetryableError):
    """No connectivity; nothing was written locally or remotely."""


class IntegrityMismatchError(MileageError, DataError):
    """
    A recomputed content hash does not match the stored one.

    Example:
        raise IntegrityMismatchError(
            "Report hash mismatch",
            details={'expected': stored, 'actual': recomputed}
        )
    """
