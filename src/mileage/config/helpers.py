################################################################################
# File Name: helpers.py
# Purpose/Description: Typed accessors for configuration sections
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
Configuration helper functions.

Accessors fall back to MILEAGE_DEFAULTS so they also work on configs that
were not passed through validateMileageConfig() (tests, ad-hoc scripts).
"""

from typing import Any

from common.config_validator import getNestedValue

from .loader import MILEAGE_DEFAULTS


def getConfigValue(config: dict[str, Any], key: str) -> Any:
    """
    Dotted lookup with the packaged default as fallback.

    Args:
        config: Configuration dictionary
        key: Dotted key, e.g. 'sync.timeoutSeconds'
    """
    value = getNestedValue(config, key)
    return MILEAGE_DEFAULTS.get(key) if value is None else value


def getConfigSection(config: dict[str, Any], section: str) -> dict[str, Any]:
    value = config.get(section, {})
    return value if isinstance(value, dict) else {}


def getDatabasePath(config: dict[str, Any]) -> str:
    return getConfigValue(config, 'database.path') or './data/mileage.db'


def getTrackingInterval(config: dict[str, Any]) -> float:
    return float(getConfigValue(config, 'tracking.intervalSeconds'))


def isSyncEnabled(config: dict[str, Any]) -> bool:
    return bool(getConfigValue(config, 'sync.enabled'))


def isMapsEnabled(config: dict[str, Any]) -> bool:
    return bool(getConfigValue(config, 'maps.enabled'))


def getPhotoDirectory(config: dict[str, Any]) -> str:
    return getConfigValue(config, 'photos.directory')
