################################################################################
# File Name: logging_config.py
# Purpose/Description: Structured logging configuration and utilities
# Author: Mileage Core Team
# Creation Date: 2026-10-02
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-02    | Core Team    | Initial implementation
# 2026-10-09    | Core Team    | Added location masking and config-driven setup
# 2026-10-16    | Core Team    | Removed unused LogContext and logWithContext
# ================================================================================
################################################################################

"""
Logging configuration module.

Provides structured logging with:
- Configurable log levels
- Console and file output
- PII masking (e-mail, phone, SSN and, optionally, raw GPS coordinates)
- Consistent formatting

Usage:
    from common.logging_config import setupLogging, getLogger

    setupLogging(level='INFO', maskLocations=True)
    logger = getLogger(__name__)
    logger.info("Trip completed | tripId=abc | miles=2.01")
"""

import logging
import re
import sys
from pathlib import Path
from typing import Any

DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s | %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

PII_PATTERNS = {
    'email': re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b'),
    'phone': re.compile(r'\b\d{3}[-.]?\d{3}[-.]?\d{4}\b'),
    'ssn': re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),
}

# "lat, lng" pairs with at least three decimals, e.g. "40.71280, -74.00600"
LOCATION_PATTERN = re.compile(r'-?\d{1,3}\.\d{3,}\s*,\s*-?\d{1,3}\.\d{3,}')


class PIIMaskingFilter(logging.Filter):
    """
    Logging filter that masks PII in log messages.

    Detects and masks:
    - Email addresses
    - Phone numbers
    - Social Security Numbers
    - Coordinate pairs (only when maskLocations is enabled)
    """

    def __init__(self, maskLocations: bool = False):
        super().__init__()
        self.maskLocations = maskLocations

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Mask PII in the record message.

        Returns:
            True (always allows record, but modifies it)
        """
        if isinstance(record.msg, str):
            record.msg = self.maskMessage(record.msg)
        return True

    def maskMessage(self, message: str) -> str:
        """Return message with all enabled PII patterns replaced."""
        if self.maskLocations:
            message = LOCATION_PATTERN.sub('[LOCATION_MASKED]', message)
        for name, pattern in PII_PATTERNS.items():
            message = pattern.sub(f'[{name.upper()}_MASKED]', message)
        return message


class StructuredFormatter(logging.Formatter):
    """
    Formatter that appends a record's context dict as key=value pairs.

    Usage:
        logger.info("Trip finalized", extra={'context': {'tripId': trip.id}})
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        context = getattr(record, 'context', None)
        if context and isinstance(context, dict):
            message += ' | ' + ' '.join(f'{k}={v}' for k, v in context.items())

        return message


def setupLogging(
    level: str = 'INFO',
    logFormat: str | None = None,
    logFile: str | None = None,
    enablePIIMasking: bool = True,
    maskLocations: bool = False
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        logFormat: Custom format string
        logFile: Optional file path for log output
        enablePIIMasking: Whether to mask PII in logs
        maskLocations: Whether to also mask raw coordinate pairs

    Returns:
        Root logger instance
    """
    rootLogger = logging.getLogger()
    rootLogger.setLevel(getattr(logging, level.upper(), logging.INFO))
    rootLogger.handlers.clear()

    formatter = StructuredFormatter(
        fmt=logFormat or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if logFile:
        logPath = Path(logFile)
        logPath.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(logFile, encoding='utf-8'))

    for handler in handlers:
        handler.setFormatter(formatter)
        if enablePIIMasking:
            handler.addFilter(PIIMaskingFilter(maskLocations=maskLocations))
        rootLogger.addHandler(handler)

    rootLogger.info(f"Logging configured | level={level} | maskLocations={maskLocations}")

    return rootLogger


def setupLoggingFromConfig(config: dict[str, Any]) -> logging.Logger:
    """
    Configure logging from the 'logging' section of a loaded configuration.

    Args:
        config: Validated configuration dictionary

    Returns:
        Root logger instance
    """
    loggingConfig = config.get('logging', {})
    return setupLogging(
        level=loggingConfig.get('level', 'INFO'),
        logFormat=loggingConfig.get('format'),
        logFile=loggingConfig.get('file') or None,
        enablePIIMasking=loggingConfig.get('maskPII', True),
        maskLocations=loggingConfig.get('maskLocations', False),
    )


def getLogger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)

