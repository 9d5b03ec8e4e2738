################################################################################
# File Name: config_validator.py
# Purpose/Description: Required-key checking and dotted defaults for config dicts
# Author: Mileage Core Team
# Creation Date: 2026-10-02
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-02    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Configuration validation module.

Generic part of configuration handling: the domain loader
(mileage.config.loader) supplies its own required keys and defaults in dot
notation, e.g. 'autoDetection.startSpeedMph'.

Usage:
    from common.config_validator import ConfigValidator

    validator = ConfigValidator(requiredKeys=['database.path'], defaults=DEFAULTS)
    config = validator.validate(rawConfig)
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when required configuration fields are missing."""

    def __init__(self, message: str, missingFields: list[str] | None = None):
        super().__init__(message)
        self.missingFields = missingFields or []


class ConfigValidator:
    """
    Validates configuration dictionaries.

    Attributes:
        requiredKeys: Required configuration keys (dot notation)
        defaults: Default values for optional fields (dot notation)
    """

    def __init__(
        self,
        requiredKeys: list[str] | None = None,
        defaults: dict[str, Any] | None = None
    ):
        self.requiredKeys = list(requiredKeys or [])
        self.defaults = dict(defaults or {})

    def validate(self, config: dict[str, Any]) -> dict[str, Any]:
        """
        Check required fields, then fill in defaults.

        Args:
            config: Raw configuration dictionary (modified in place)

        Returns:
            Validated configuration with defaults applied

        Raises:
            ConfigValidationError: If required fields are missing
        """
        missingFields = [
            key for key in self.requiredKeys
            if getNestedValue(config, key) in (None, '')
        ]
        if missingFields:
            raise ConfigValidationError(
                f"Missing required configuration fields: {', '.join(missingFields)}",
                missingFields=missingFields
            )

        for key, defaultValue in self.defaults.items():
            if getNestedValue(config, key) is None:
                setNestedValue(config, key, defaultValue)
                logger.debug(f"Applied default for {key}: {defaultValue}")

        return config

    def validateField(
        self,
        config: dict[str, Any],
        key: str,
        expectedType: type | tuple[type, ...],
        allowNone: bool = False
    ) -> bool:
        """
        Validate a specific field's type.

        Booleans are not accepted where a number is expected.

        Returns:
            True if valid, False otherwise
        """
        value = getNestedValue(config, key)
        if value is None:
            return allowNone
        if isinstance(value, bool) and bool not in _asTuple(expectedType):
            return False
        return isinstance(value, expectedType)


def _asTuple(expectedType: type | tuple[type, ...]) -> tuple[type, ...]:
    return expectedType if isinstance(expectedType, tuple) else (expectedType,)


def getNestedValue(config: dict[str, Any], key: str) -> Any:
    """
    Get a value from a nested dictionary using dot notation.

    Returns:
        Value if found, None otherwise
    """
    value: Any = config
    for part in key.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def setNestedValue(config: dict[str, Any], key: str, value: Any) -> None:
    """Set a value in a nested dictionary using dot notation."""
    parts = key.split('.')
    current = config
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = value
