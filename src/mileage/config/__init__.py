################################################################################
# File Name: __init__.py
# Purpose/Description: Configuration subpackage
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# ================================================================================
################################################################################
"""
Config Subpackage.

Usage:
    from mileage.config import loadMileageConfig, MileageConfigError
    from mileage.config import isSyncEnabled, getTrackingInterval
"""

from .exceptions import MileageConfigError
from .helpers import (
    getConfigSection,
    getConfigValue,
    getDatabasePath,
    getPhotoDirectory,
    getTrackingInterval,
    isMapsEnabled,
    isSyncEnabled,
)
from .loader import (
    MILEAGE_DEFAULTS,
    MILEAGE_REQUIRED_FIELDS,
    VALID_LOG_LEVELS,
    loadMileageConfig,
    validateMileageConfig,
)

__all__ = [
    'MileageConfigError',
    'loadMileageConfig',
    'validateMileageConfig',
    'MILEAGE_DEFAULTS',
    'MILEAGE_REQUIRED_FIELDS',
    'VALID_LOG_LEVELS',
    'getConfigSection',
    'getConfigValue',
    'getDatabasePath',
    'getPhotoDirectory',
    'getTrackingInterval',
    'isMapsEnabled',
    'isSyncEnabled',
]
