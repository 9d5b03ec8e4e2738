################################################################################
# File Name: loader.py
# Purpose/Description: Mileage configuration loading and validation
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# 2026-10-08    | Core Team    | Sync credentials checked only when sync is enabled
# ================================================================================
################################################################################

"""
Mileage configuration loader.

Loads a JSON configuration file, resolves ${VAR} / ${VAR:default}
placeholders from the environment (optionally seeded from a .env file),
checks required fields, applies defaults and validates values.

Usage:
    from mileage.config.loader import loadMileageConfig

    try:
        config = loadMileageConfig('mileage_config.json', '.env')
    except MileageConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
"""

import json
import logging
import os
from typing import Any

from common.config_validator import ConfigValidationError, ConfigValidator, getNestedValue
from common.secrets_loader import PLACEHOLDER_PATTERN, loadEnvFile, resolveSecrets

from .exceptions import MileageConfigError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MILEAGE_REQUIRED_FIELDS: list[str] = [
    'database.path',
]

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

MILEAGE_DEFAULTS: dict[str, Any] = {
    # Application
    'application.name': 'Auditproof Mileage Core',
    'application.version': '1.0.0',

    # Database
    'database.walMode': True,

    # Geocoding
    'geocoding.baseUrl': 'https://nominatim.openstreetmap.org',
    'geocoding.userAgent': 'AuditproofMileage/1.0',
    'geocoding.timeoutSeconds': 5,
    'geocoding.reverseZoom': 18,
    'geocoding.maxRetries': 0,
    'geocoding.retryDelaySeconds': 1,

    # Manual trip tracking
    'tracking.intervalSeconds': 10,

    # Auto-detection
    'autoDetection.enabled': False,
    'autoDetection.startSpeedMph': 10,
    'autoDetection.startDwellSeconds': 10,
    'autoDetection.stopSpeedMph': 3,
    'autoDetection.idleDwellSeconds': 180,
    'autoDetection.sampleIntervalSeconds': 15,
    'autoDetection.recomputeEveryPoints': 50,

    # Sync
    'sync.enabled': False,
    'sync.url': '',
    'sync.apiKey': '',
    'sync.timeoutSeconds': 5,
    'sync.maxRetries': 0,
    'sync.checkHost': '8.8.8.8',
    'sync.checkPort': 53,
    'sync.checkTimeoutSeconds': 3,

    # Route maps
    'maps.enabled': True,
    'maps.outputDir': './data/maps',
    'maps.width': 640,
    'maps.height': 480,
    'maps.padding': 32,

    # Odometer photos
    'photos.directory': './data/photos',

    # Logging
    'logging.level': 'INFO',
    'logging.format': '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
    'logging.file': '',
    'logging.maskPII': True,
    'logging.maskLocations': False,
}

_POSITIVE_NUMBERS = [
    'geocoding.timeoutSeconds',
    'tracking.intervalSeconds',
    'autoDetection.startSpeedMph',
    'autoDetection.sampleIntervalSeconds',
    'sync.timeoutSeconds',
    'sync.checkTimeoutSeconds',
    'maps.width',
    'maps.height',
]

_NON_NEGATIVE_NUMBERS = [
    'geocoding.maxRetries',
    'geocoding.retryDelaySeconds',
    'autoDetection.startDwellSeconds',
    'autoDetection.stopSpeedMph',
    'autoDetection.idleDwellSeconds',
    'sync.maxRetries',
    'maps.padding',
]


# =============================================================================
# Public API
# =============================================================================

def loadMileageConfig(
    configPath: str,
    envFilePath: str | None = None
) -> dict[str, Any]:
    """
    Load and validate configuration from file.

    Performs the following operations:
    1. Load environment variables from .env file (if provided)
    2. Load configuration JSON file
    3. Resolve secret placeholders (${VAR} syntax)
    4. Validate required fields and apply defaults
    5. Validate field types and values

    Args:
        configPath: Path to the configuration JSON file
        envFilePath: Optional path to .env file for secrets

    Returns:
        Validated configuration dictionary with defaults applied

    Raises:
        MileageConfigError: If the file cannot be loaded or validation fails
    """
    logger.info(f"Loading configuration from: {configPath}")

    if envFilePath and os.path.exists(envFilePath):
        logger.debug(f"Loading environment from: {envFilePath}")
        loadEnvFile(envFilePath)

    config = _loadConfigFile(configPath)
    config = resolveSecrets(config)
    config = validateMileageConfig(config)

    logger.info("Configuration loaded and validated successfully")
    return config


def validateMileageConfig(config: dict[str, Any]) -> dict[str, Any]:
    """
    Validate configuration and apply defaults.

    Args:
        config: Raw configuration dictionary (modified in place)

    Returns:
        Validated configuration with defaults applied

    Raises:
        MileageConfigError: If validation fails
    """
    validator = ConfigValidator(
        requiredKeys=MILEAGE_REQUIRED_FIELDS,
        defaults=MILEAGE_DEFAULTS
    )

    try:
        config = validator.validate(config)
    except ConfigValidationError as e:
        raise MileageConfigError(
            f"Configuration validation failed: {e}",
            missingFields=e.missingFields
        ) from e

    _validateNumbers(config, validator)
    _validateAutoDetection(config)
    _validateSync(config)
    _validateLogging(config)

    return config


# =============================================================================
# Private Helpers
# =============================================================================

def _loadConfigFile(configPath: str) -> dict[str, Any]:
    configPath = os.path.abspath(configPath)

    if not os.path.exists(configPath):
        raise MileageConfigError(
            f"Configuration file not found: {configPath}",
            missingFields=['configFile']
        )

    try:
        with open(configPath, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise MileageConfigError(
            f"Invalid JSON in configuration file: {configPath}\n"
            f"Parse error: {e.msg} at line {e.lineno}, column {e.colno}",
            invalidFields=['configFile']
        ) from e
    except OSError as e:
        raise MileageConfigError(
            f"Cannot read configuration file: {configPath}\nError: {e}",
            missingFields=['configFile']
        ) from e

    if not isinstance(config, dict):
        raise MileageConfigError(
            f"Configuration root must be an object: {configPath}",
            invalidFields=['configFile']
        )

    logger.debug(f"Configuration file loaded: {configPath}")
    return config


def _validateNumbers(config: dict[str, Any], validator: ConfigValidator) -> None:
    invalid = []
    for key in _POSITIVE_NUMBERS:
        if not validator.validateField(config, key, (int, float)) or getNestedValue(config, key) <= 0:
            invalid.append(key)
    for key in _NON_NEGATIVE_NUMBERS:
        if not validator.validateField(config, key, (int, float)) or getNestedValue(config, key) < 0:
            invalid.append(key)

    if invalid:
        raise MileageConfigError(
            f"Invalid numeric configuration: {', '.join(invalid)}",
            invalidFields=invalid
        )


def _validateAutoDetection(config: dict[str, Any]) -> None:
    section = config['autoDetection']

    if section['stopSpeedMph'] >= section['startSpeedMph']:
        raise MileageConfigError(
            "autoDetection.stopSpeedMph must be below autoDetection.startSpeedMph",
            invalidFields=['autoDetection.stopSpeedMph']
        )

    recompute = section['recomputeEveryPoints']
    if isinstance(recompute, bool) or not isinstance(recompute, int) or recompute < 1:
        raise MileageConfigError(
            "autoDetection.recomputeEveryPoints must be a positive integer",
            invalidFields=['autoDetection.recomputeEveryPoints']
        )


def _validateSync(config: dict[str, Any]) -> None:
    section = config['sync']
    if not section.get('enabled'):
        return

    missing = [
        f'sync.{key}' for key in ('url', 'apiKey')
        if not section.get(key) or PLACEHOLDER_PATTERN.search(str(section[key]))
    ]
    if missing:
        raise MileageConfigError(
            f"Sync is enabled but not configured: {', '.join(missing)}",
            missingFields=missing
        )


def _validateLogging(config: dict[str, Any]) -> None:
    level = str(config['logging']['level']).upper()
    if level not in VALID_LOG_LEVELS:
        raise MileageConfigError(
            f"Invalid logging level: '{level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}",
            invalidFields=['logging.level']
        )
