################################################################################
# File Name: types.py
# Purpose/Description: Types and thresholds for speed-based trip auto-detection
# Author: Mileage Core Team
# Creation Date: 2026-10-06
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-06    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Type definitions for trip auto-detection.

Contains enums and dataclasses used by the detector:
- AutoDetectionState: speed state machine states
- AutoDetectionConfig: thresholds and dwell durations
- DetectorStatus: snapshot returned by getStatus()
- DetectorStats: counters
- speedToMph(): sample speed (m/s) to mph

These types have no dependencies on other project modules.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


# ================================================================================
# Constants
# ================================================================================

MPS_PER_MPH = 0.44704

DEFAULT_START_SPEED_MPH = 10.0
DEFAULT_START_DWELL_SECONDS = 10.0
DEFAULT_STOP_SPEED_MPH = 3.0
DEFAULT_IDLE_DWELL_SECONDS = 180.0
DEFAULT_SAMPLE_INTERVAL_SECONDS = 15.0
DEFAULT_RECOMPUTE_EVERY_POINTS = 50


# ================================================================================
# Enums
# ================================================================================

class AutoDetectionState(Enum):
    """
    State of the auto-detection state machine.

    States:
        IDLE: No trip, speed below start threshold
        ACCELERATING: Above start threshold, start dwell running
        TRIP_ACTIVE: Trip recording
        DECELERATING: Trip recording, below stop threshold, idle dwell running
    """
    IDLE = "idle"
    ACCELERATING = "accelerating"
    TRIP_ACTIVE = "tripActive"
    DECELERATING = "decelerating"


# ================================================================================
# Data Classes
# ================================================================================

@dataclass
class AutoDetectionConfig:
    """
    Thresholds for auto-detection.

    Attributes:
        startSpeedMph: Speed at or above which driving may have begun
        startDwellSeconds: How long speed must stay above start threshold
        stopSpeedMph: Speed below which the vehicle counts as stopped
        idleDwellSeconds: How long speed must stay below stop threshold
        sampleIntervalSeconds: Background sampling interval
        recomputeEveryPoints: Full distance recompute cadence while active
        vehicleId: Vehicle for detected trips (None = most recently added)
    """
    startSpeedMph: float = DEFAULT_START_SPEED_MPH
    startDwellSeconds: float = DEFAULT_START_DWELL_SECONDS
    stopSpeedMph: float = DEFAULT_STOP_SPEED_MPH
    idleDwellSeconds: float = DEFAULT_IDLE_DWELL_SECONDS
    sampleIntervalSeconds: float = DEFAULT_SAMPLE_INTERVAL_SECONDS
    recomputeEveryPoints: int = DEFAULT_RECOMPUTE_EVERY_POINTS
    vehicleId: str | None = None

    def toDict(self) -> dict[str, Any]:
        return {
            'startSpeedMph': self.startSpeedMph,
            'startDwellSeconds': self.startDwellSeconds,
            'stopSpeedMph': self.stopSpeedMph,
            'idleDwellSeconds': self.idleDwellSeconds,
            'sampleIntervalSeconds': self.sampleIntervalSeconds,
            'recomputeEveryPoints': self.recomputeEveryPoints,
            'vehicleId': self.vehicleId,
        }


@dataclass
class DetectorStatus:
    """
    Snapshot of the detector.

    Attributes:
        enabled: Detector is accepting samples
        state: Current state machine state
        activeTripId: Trip the detector is driving, if any
        vehicleId: Vehicle detected trips are recorded against
        lastSpeedMph: Speed of the most recent sample
    """
    enabled: bool
    state: AutoDetectionState
    activeTripId: str | None = None
    vehicleId: str | None = None
    lastSpeedMph: float = 0.0

    def toDict(self) -> dict[str, Any]:
        return {
            'enabled': self.enabled,
            'state': self.state.value,
            'activeTripId': self.activeTripId,
            'vehicleId': self.vehicleId,
            'lastSpeedMph': self.lastSpeedMph,
        }


@dataclass
class DetectorStats:
    """
    Counters for detector operation.

    Attributes:
        samplesProcessed: Samples handled while enabled
        falseStarts: Accelerations that ended before the start dwell
        tripsStarted: Trips created by the detector
        tripsCompleted: Trips finalized by the detector
        skippedStarts: Confirmed starts dropped because another trip was active
        lastTripStart / lastTripEnd: Wall-clock times of the latest transitions
    """
    samplesProcessed: int = 0
    falseStarts: int = 0
    tripsStarted: int = 0
    tripsCompleted: int = 0
    skippedStarts: int = 0
    lastTripStart: datetime | None = None
    lastTripEnd: datetime | None = None

    def toDict(self) -> dict[str, Any]:
        return {
            'samplesProcessed': self.samplesProcessed,
            'falseStarts': self.falseStarts,
            'tripsStarted': self.tripsStarted,
            'tripsCompleted': self.tripsCompleted,
            'skippedStarts': self.skippedStarts,
            'lastTripStart': self.lastTripStart.isoformat() if self.lastTripStart else None,
            'lastTripEnd': self.lastTripEnd.isoformat() if self.lastTripEnd else None,
        }


# ================================================================================
# Conversions
# ================================================================================

def speedToMph(speedMps: float | None) -> float:
    """Convert a sample speed; None or negative (unknown) reads as stationary."""
    if speedMps is None or speedMps < 0:
        return 0.0
    return speedMps / MPS_PER_MPH
