################################################################################
# File Name: types.py
# Purpose/Description: Location sample types, sampler state and errors
# Author: Mileage Core Team
# Creation Date: 2026-10-04
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-04    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Error category from common base class
# ================================================================================
################################################################################

"""
Type definitions for location sampling.

- LocationSample: one fix with optional speed (m/s) and accuracy (m)
- SubscriptionState: lifecycle of a sampling subscription
- SamplerStats: counters for one subscription
- LocationError / LocationUnavailableError: provider failures
"""

import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from common.error_handler import RetryableError

from ..exceptions import MileageError
from ..types import Coordinates


class LocationError(MileageError, RetryableError):
    """Base error for position acquisition."""


class LocationUnavailableError(LocationError):
    """The provider has no fix to report."""
    pass


@dataclass(frozen=True)
class LocationSample:
    """
    One position fix.

    Attributes:
        coords: Position; coords.timestamp is the capture time in epoch millis
        speedMps: Ground speed in metres per second, None if not reported
        accuracyMeters: Horizontal accuracy, None if not reported
    """
    coords: Coordinates
    speedMps: float | None = None
    accuracyMeters: float | None = None

    @property
    def timestampMs(self) -> int:
        """Capture time, or now if the fix carries no timestamp."""
        if self.coords.timestamp is not None:
            return self.coords.timestamp
        return int(time.time() * 1000)

    def toDict(self) -> dict[str, Any]:
        return {
            'coords': self.coords.toDict(),
            'speedMps': self.speedMps,
            'accuracyMeters': self.accuracyMeters,
        }


class SubscriptionState(Enum):
    """
    State of a sampling subscription.

    States:
        RUNNING: Thread is polling the provider
        CANCELLED: Cancel requested and thread finished
    """
    RUNNING = "running"
    CANCELLED = "cancelled"


@dataclass
class SamplerStats:
    """Counters for one subscription."""
    startTime: datetime | None = None
    endTime: datetime | None = None
    samplesDelivered: int = 0
    providerErrors: int = 0
    callbackErrors: int = 0

    def toDict(self) -> dict[str, Any]:
        return {
            'startTime': self.startTime.isoformat() if self.startTime else None,
            'endTime': self.endTime.isoformat() if self.endTime else None,
            'samplesDelivered': self.samplesDelivered,
            'providerErrors': self.providerErrors,
            'callbackErrors': self.callbackErrors,
        }
