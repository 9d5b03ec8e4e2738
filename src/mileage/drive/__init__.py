################################################################################
# File Name: __init__.py
# Purpose/Description: Trip auto-detection package
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
Trip auto-detection package.

Usage:
    from mileage.drive import createAutoTripDetectorFromConfig

    detector = createAutoTripDetectorFromConfig(
        config, store, finalizer, resolver, provider, sampler
    )
    detector.enable()
"""

from .detector import AutoTripDetector
from .helpers import (
    createAutoTripDetectorFromConfig,
    getAutoDetectionConfig,
    isAutoDetectionEnabled,
)
from .types import (
    DEFAULT_IDLE_DWELL_SECONDS,
    DEFAULT_RECOMPUTE_EVERY_POINTS,
    DEFAULT_SAMPLE_INTERVAL_SECONDS,
    DEFAULT_START_DWELL_SECONDS,
    DEFAULT_START_SPEED_MPH,
    DEFAULT_STOP_SPEED_MPH,
    MPS_PER_MPH,
    AutoDetectionConfig,
    AutoDetectionState,
    DetectorStats,
    DetectorStatus,
    speedToMph,
)

__all__ = [
    'AutoTripDetector',
    'AutoDetectionConfig',
    'AutoDetectionState',
    'DetectorStats',
    'DetectorStatus',
    'createAutoTripDetectorFromConfig',
    'getAutoDetectionConfig',
    'isAutoDetectionEnabled',
    'speedToMph',
    'MPS_PER_MPH',
    'DEFAULT_START_SPEED_MPH',
    'DEFAULT_START_DWELL_SECONDS',
    'DEFAULT_STOP_SPEED_MPH',
    'DEFAULT_IDLE_DWELL_SECONDS',
    'DEFAULT_SAMPLE_INTERVAL_SECONDS',
    'DEFAULT_RECOMPUTE_EVERY_POINTS',
]
