################################################################################
# File Name: helpers.py
# Purpose/Description: Config extraction and factory for the auto-trip detector
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
Helper functions for auto-detection.

- getAutoDetectionConfig(): typed thresholds from the 'autoDetection' section
- isAutoDetectionEnabled(): the section's 'enabled' flag
- createAutoTripDetectorFromConfig(): detector factory
"""

from typing import Any

from .detector import AutoTripDetector
from .types import (
    DEFAULT_IDLE_DWELL_SECONDS,
    DEFAULT_RECOMPUTE_EVERY_POINTS,
    DEFAULT_SAMPLE_INTERVAL_SECONDS,
    DEFAULT_START_DWELL_SECONDS,
    DEFAULT_START_SPEED_MPH,
    DEFAULT_STOP_SPEED_MPH,
    AutoDetectionConfig,
)


def getAutoDetectionConfig(config: dict[str, Any]) -> AutoDetectionConfig:
    """
    Extract auto-detection thresholds.

    Args:
        config: Configuration dictionary with optional 'autoDetection' section

    Returns:
        AutoDetectionConfig with defaults for missing keys
    """
    section = config.get('autoDetection', {})
    return AutoDetectionConfig(
        startSpeedMph=float(section.get('startSpeedMph', DEFAULT_START_SPEED_MPH)),
        startDwellSeconds=float(section.get('startDwellSeconds', DEFAULT_START_DWELL_SECONDS)),
        stopSpeedMph=float(section.get('stopSpeedMph', DEFAULT_STOP_SPEED_MPH)),
        idleDwellSeconds=float(section.get('idleDwellSeconds', DEFAULT_IDLE_DWELL_SECONDS)),
        sampleIntervalSeconds=float(
            section.get('sampleIntervalSeconds', DEFAULT_SAMPLE_INTERVAL_SECONDS)
        ),
        recomputeEveryPoints=int(
            section.get('recomputeEveryPoints', DEFAULT_RECOMPUTE_EVERY_POINTS)
        ),
        vehicleId=section.get('vehicleId') or None,
    )


def isAutoDetectionEnabled(config: dict[str, Any]) -> bool:
    return bool(config.get('autoDetection', {}).get('enabled', False))


def createAutoTripDetectorFromConfig(
    config: dict[str, Any],
    store: Any,
    finalizer: Any,
    resolver: Any,
    locationProvider: Any,
    sampler: Any | None = None
) -> AutoTripDetector:
    """
    Create an AutoTripDetector from configuration.

    Args:
        config: Configuration dictionary
        store: LocalStore instance
        finalizer: TripFinalizer shared with the manual lifecycle
        resolver: AddressResolver for start addresses
        locationProvider: Permission and position source
        sampler: LocationSampler for background sampling (optional)
    """
    return AutoTripDetector(
        store,
        finalizer,
        resolver,
        locationProvider,
        sampler=sampler,
        config=getAutoDetectionConfig(config),
    )
