################################################################################
# File Name: error_handler.py
# Purpose/Description: Error categories, retry with backoff and batch error collection
# Author: Mileage Core Team
# Creation Date: 2026-10-02
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-02    | Core Team    | Initial implementation
# 2026-10-08    | Core Team    | ErrorCollector summaries for batch sync/resolve
# 2026-10-16    | Core Team    | Category base classes drive retry; type-based classification
# ================================================================================
################################################################################

"""
Error handling module.

Every project exception derives from BaseError and from one category class:

    RetryableError       offline, timeouts, 5xx; retry() repeats these
    AuthenticationError  credentials rejected by a remote service
    ConfigurationError   missing configuration or permission; fail fast
    DataError            bad record or illegal state; log and skip

Exceptions raised by the standard library are mapped onto the same
categories by classifyError(), so batch jobs (address backfill, cloud sync)
can summarise mixed failures through ErrorCollector.

Usage:
    from common.error_handler import RetryableError, retry, ErrorCollector

    @retry(maxRetries=2, initialDelay=0.5)
    def upsertRecord(record):
        ...
"""

import functools
import json
import logging
import sqlite3
import time
import traceback
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar
from urllib.error import HTTPError, URLError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ErrorCategory(Enum):
    """How callers should react to an error."""
    RETRYABLE = 'retryable'
    AUTHENTICATION = 'auth'
    CONFIGURATION = 'config'
    DATA = 'data'
    SYSTEM = 'system'


# ================================================================================
# Exception Hierarchy
# ================================================================================

class BaseError(Exception):
    """
    Project exception with a message and a details dict.

    Example:
        raise DataError("Trip has no points", details={'tripId': trip.id})
    """

    category: ErrorCategory = ErrorCategory.SYSTEM

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def toDict(self) -> dict[str, Any]:
        return {
            'type': type(self).__name__,
            'category': self.category.value,
            'message': self.message,
            'details': self.details,
        }


class RetryableError(BaseError):
    category = ErrorCategory.RETRYABLE


class AuthenticationError(BaseError):
    category = ErrorCategory.AUTHENTICATION


class ConfigurationError(BaseError):
    category = ErrorCategory.CONFIGURATION


class DataError(BaseError):
    category = ErrorCategory.DATA


# ================================================================================
# Classification
# ================================================================================

# Checked in order; HTTPError must precede its URLError/OSError parents
_FOREIGN_CATEGORIES: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (TimeoutError, ErrorCategory.RETRYABLE),
    (ConnectionError, ErrorCategory.RETRYABLE),
    (URLError, ErrorCategory.RETRYABLE),
    (json.JSONDecodeError, ErrorCategory.DATA),
    (sqlite3.IntegrityError, ErrorCategory.DATA),
    (sqlite3.OperationalError, ErrorCategory.SYSTEM),
    (ValueError, ErrorCategory.DATA),
    (KeyError, ErrorCategory.DATA),
    (TypeError, ErrorCategory.DATA),
    (FileNotFoundError, ErrorCategory.CONFIGURATION),
    (PermissionError, ErrorCategory.CONFIGURATION),
)


def _httpCategory(status: int) -> ErrorCategory:
    if status in (401, 403):
        return ErrorCategory.AUTHENTICATION
    if status in (408, 429) or status >= 500:
        return ErrorCategory.RETRYABLE
    return ErrorCategory.DATA


def classifyError(error: BaseException) -> ErrorCategory:
    """
    Map any exception onto an ErrorCategory.

    Project errors carry their own category; HTTP errors are classified by
    status code; other standard exceptions by type. Anything unknown is SYSTEM.
    """
    if isinstance(error, BaseError):
        return error.category
    if isinstance(error, HTTPError):
        return _httpCategory(error.code)
    for errorType, category in _FOREIGN_CATEGORIES:
        if isinstance(error, errorType):
            return category
    return ErrorCategory.SYSTEM


def formatError(error: BaseException) -> str:
    """One-line description: '[CATEGORY] message | details={...}'."""
    label = classifyError(error).value.upper()
    if isinstance(error, BaseError):
        suffix = f" | details={error.details}" if error.details else ""
        return f"[{label}] {error.message}{suffix}"
    return f"[{label}] {type(error).__name__}: {error}"


def handleError(error: BaseException, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Log an error at the level its category calls for.

    Only SYSTEM errors get a traceback; the others are expected failures.

    Returns:
        Error description with type, category, message and context
    """
    category = classifyError(error)
    description: dict[str, Any] = {
        'type': type(error).__name__,
        'category': category.value,
        'message': str(error),
        'context': context or {},
    }

    extra = {'context': description['context']}
    if category == ErrorCategory.SYSTEM:
        description['traceback'] = ''.join(traceback.format_exception(error))
        logger.error(f"UNEXPECTED ERROR | {formatError(error)}", exc_info=error, extra=extra)
    elif category in (ErrorCategory.CONFIGURATION, ErrorCategory.AUTHENTICATION):
        logger.error(formatError(error), extra=extra)
    else:
        logger.warning(formatError(error), extra=extra)

    return description


# ================================================================================
# Retry
# ================================================================================

def retry(
    maxRetries: int = 3,
    initialDelay: float = 1.0,
    backoffMultiplier: float = 2.0,
    retryableExceptions: Sequence[type[BaseException]] = (RetryableError,)
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry a function with exponential backoff.

    With maxRetries=0 the function runs once and errors propagate at once,
    which is how capture paths are configured by default.

    Args:
        maxRetries: Extra attempts after the first
        initialDelay: Seconds before the first retry
        backoffMultiplier: Factor applied to the delay after each retry
        retryableExceptions: Exception types worth another attempt
    """
    retryOn = tuple(retryableExceptions)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initialDelay
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except retryOn as e:
                    if attempt >= maxRetries:
                        if maxRetries:
                            logger.error(
                                f"RETRIES EXHAUSTED | func={func.__name__} "
                                f"| attempts={attempt + 1} | error={e}"
                            )
                        raise
                    attempt += 1
                    logger.warning(
                        f"Retrying | func={func.__name__} | attempt={attempt}/{maxRetries} "
                        f"| delay={delay}s | error={e}"
                    )
                    time.sleep(delay)
                    delay *= backoffMultiplier

        return wrapper
    return decorator


# ================================================================================
# Batch Collection
# ================================================================================

@dataclass
class CollectedError:
    """One failed record in a batch."""
    error: BaseException
    category: ErrorCategory
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return str(self.error)

    def toDict(self) -> dict[str, Any]:
        return {'message': self.message, 'category': self.category.value, **self.context}


class ErrorCollector:
    """
    Per-record failures of a batch that keeps going.

    Used by address backfill and cloud sync, where one bad record must not
    stop the rest.

    Example:
        collector = ErrorCollector()
        for trip in trips:
            try:
                remote.upsert('trips', record)
            except Exception as e:
                collector.add(e, tripId=trip.id)
        collector.report()
    """

    def __init__(self):
        self.errors: list[CollectedError] = []

    def add(self, error: BaseException, **context: Any) -> None:
        self.errors.append(CollectedError(error, classifyError(error), context))

    def hasErrors(self) -> bool:
        return bool(self.errors)

    def count(self) -> int:
        return len(self.errors)

    def countByCategory(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for collected in self.errors:
            counts[collected.category.value] = counts.get(collected.category.value, 0) + 1
        return counts

    def report(self) -> None:
        """Log a summary line and one line per failed record."""
        if not self.errors:
            return

        summary = ' '.join(f"{k}={v}" for k, v in sorted(self.countByCategory().items()))
        logger.warning(f"BATCH ERRORS | count={len(self.errors)} | {summary}")
        for collected in self.errors:
            context = ' '.join(f"{k}={v}" for k, v in collected.context.items())
            logger.warning(f"  [{collected.category.value}] {collected.message} | {context}")

    def clear(self) -> None:
        self.errors.clear()
