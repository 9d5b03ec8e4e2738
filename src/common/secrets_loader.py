################################################################################
# File Name: secrets_loader.py
# Purpose/Description: .env loading and ${VAR} placeholder resolution
# Author: Mileage Core Team
# Creation Date: 2026-10-02
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-02    | Core Team    | Initial implementation
# 2026-10-10    | Core Team    | Split .env line parsing, added maskSecret
# ================================================================================
################################################################################

"""
Secrets loading module.

Keeps credentials (remote store API key, geocoder contact e-mail) out of the
JSON configuration file. Values live in the process environment or a .env
file and are referenced from configuration as placeholders:

    "sync": {"apiKey": "${MILEAGE_SYNC_API_KEY}"}
    "geocoding": {"userAgent": "${MILEAGE_USER_AGENT:AuditproofMileage/1.0}"}

Usage:
    from common.secrets_loader import loadEnvFile, resolveSecrets

    loadEnvFile('.env')
    config = resolveSecrets(rawConfig)
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# ${VAR_NAME} or ${VAR_NAME:default}
PLACEHOLDER_PATTERN = re.compile(r'\$\{([^}:]+)(?::([^}]*))?\}')


def _parseEnvLine(line: str) -> tuple[str, str] | None:
    """
    Parse one KEY=VALUE line of a .env file.

    Returns:
        (key, value) tuple, or None for blank lines, comments and bad lines
    """
    line = line.strip()
    if not line or line.startswith('#') or '=' not in line:
        return None

    key, _, value = line.partition('=')
    value = value.strip()
    if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
        value = value[1:-1]

    return key.strip(), value


def loadEnvFile(envPath: str | None = None) -> dict[str, str]:
    """
    Load environment variables from a .env file.

    Existing environment variables are never overridden.

    Args:
        envPath: Path to .env file. Defaults to .env in the working directory.

    Returns:
        Dictionary of loaded variable names (values are not echoed)
    """
    envFile = Path(envPath or '.env')
    loadedVars: dict[str, str] = {}

    if not envFile.exists():
        logger.debug(f".env file not found at {envFile}")
        return loadedVars

    with open(envFile, 'r', encoding='utf-8') as f:
        for lineNum, line in enumerate(f, 1):
            parsed = _parseEnvLine(line)
            if parsed is None:
                if line.strip() and not line.strip().startswith('#'):
                    logger.warning(f"Invalid line {lineNum} in .env: missing '='")
                continue

            key, value = parsed
            if key not in os.environ:
                os.environ[key] = value
                loadedVars[key] = '[LOADED]'

    logger.info(f"Loaded {len(loadedVars)} variables from {envFile}")
    return loadedVars


def resolveSecrets(config: Any) -> Any:
    """
    Recursively resolve ${VAR_NAME} placeholders in configuration.

    Unset variables without a default keep their placeholder text so the
    config validator can report them.

    Args:
        config: Configuration value (dict, list, str, or other)

    Returns:
        Configuration with placeholders resolved
    """
    if isinstance(config, dict):
        return {key: resolveSecrets(value) for key, value in config.items()}
    if isinstance(config, list):
        return [resolveSecrets(item) for item in config]
    if isinstance(config, str):
        return PLACEHOLDER_PATTERN.sub(_replacePlaceholder, config)
    return config


def _replacePlaceholder(match: re.Match) -> str:
    varName, defaultValue = match.group(1), match.group(2)

    envValue = os.environ.get(varName)
    if envValue is not None:
        return envValue
    if defaultValue is not None:
        logger.debug(f"Using default for {varName}")
        return defaultValue

    logger.warning(f"Environment variable {varName} not set and no default")
    return match.group(0)


def maskSecret(value: str | None, showChars: int = 4) -> str:
    """
    Mask a secret value for logging.

    Args:
        value: Secret value to mask
        showChars: Number of characters to show at start

    Returns:
        Masked string (e.g., "eyJh******")
    """
    if not value:
        return '[EMPTY]'
    if len(value) <= showChars:
        return '*' * len(value)
    return value[:showChars] + '*' * (len(value) - showChars)
