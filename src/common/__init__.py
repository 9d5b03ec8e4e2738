################################################################################
# File Name: __init__.py
# Purpose/Description: Common utilities package initialization
# Author: Mileage Core Team
# Creation Date: 2026-10-02
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-02    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Export AuthenticationError, CollectedError and handleError
# ================================================================================
################################################################################

"""
Common utilities package.

Shared, domain-neutral functionality:
- Configuration validation (required keys, dotted defaults)
- .env loading and ${VAR} placeholder resolution
- Logging configuration with PII and location masking
- Error base classes, classification, retry and batch error collection
"""

from .config_validator import ConfigValidationError, ConfigValidator
from .error_handler import (
    AuthenticationError,
    BaseError,
    CollectedError,
    ConfigurationError,
    DataError,
    ErrorCategory,
    ErrorCollector,
    RetryableError,
    classifyError,
    formatError,
    handleError,
    retry,
)
from .logging_config import getLogger, setupLogging, setupLoggingFromConfig
from .secrets_loader import loadEnvFile, maskSecret, resolveSecrets

__all__ = [
    'ConfigValidator',
    'ConfigValidationError',
    'loadEnvFile',
    'resolveSecrets',
    'maskSecret',
    'getLogger',
    'setupLogging',
    'setupLoggingFromConfig',
    'BaseError',
    'ErrorCategory',
    'ErrorCollector',
    'CollectedError',
    'AuthenticationError',
    'RetryableError',
    'ConfigurationError',
    'DataError',
    'classifyError',
    'formatError',
    'handleError',
    'retry',
]
