"""Domain service: Error Classifier.

Sorts Product Source failures into a small taxonomy so that validation
and queue replay can decide, in the same way, whether to retry, remove
the item or give up. Every classified failure is recorded in an
ErrorStats object owned by whoever built the classifier.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from cartsync.domain.exceptions import (
    EntityNotFoundError,
    ProductSourceError,
    SourcePermissionError,
    SourceServerError,
    SourceTimeoutError,
    SourceUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    VALIDATION = "validation"
    NOT_FOUND = "not-found"
    PERMISSION = "permission"
    GENERAL = "general"


# Checked in order; the first matching keyword group wins.
_KEYWORDS: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (ErrorKind.NETWORK, ("network", "fetch", "connection")),
    (ErrorKind.TIMEOUT, ("timeout", "timed out", "deadline")),
    (ErrorKind.VALIDATION, ("validation", "invalid", "parse")),
    (ErrorKind.SERVER, ("server", "500", "502", "503")),
    (ErrorKind.NOT_FOUND, ("not found", "404")),
    (ErrorKind.PERMISSION, ("permission", "unauthorized", "forbidden", "403")),
)

_MESSAGES = {
    ErrorKind.NETWORK: "Network connection issue. Please check your internet connection and try again.",
    ErrorKind.TIMEOUT: "Request timed out. Please try again.",
    ErrorKind.SERVER: "Server error occurred. Please try again in a few moments.",
    ErrorKind.VALIDATION: "Invalid data provided. Please check your input and try again.",
    ErrorKind.NOT_FOUND: "Requested item not found.",
    ErrorKind.PERMISSION: "You don't have permission to perform this action.",
    ErrorKind.GENERAL: "An unexpected error occurred. Please try again.",
}


def _kind_for_status(status: int) -> ErrorKind | None:
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status in (401, 403):
        return ErrorKind.PERMISSION
    if status == 408:
        return ErrorKind.TIMEOUT
    if 400 <= status < 500:
        return ErrorKind.VALIDATION
    if status >= 500:
        return ErrorKind.SERVER
    return None


@dataclass
class ErrorStats:
    """Failure counters for one engine instance."""

    by_kind: Counter = field(default_factory=Counter)
    by_pattern: Counter = field(default_factory=Counter)
    by_context: Counter = field(default_factory=Counter)
    last_error_at: datetime | None = None

    @property
    def total(self) -> int:
        return sum(self.by_kind.values())

    def record(self, kind: ErrorKind, exc: BaseException, context: str) -> int:
        """Count a failure and return how often its pattern has been seen."""
        pattern = f"{type(exc).__name__}_{exc}"
        self.by_kind[kind] += 1
        self.by_pattern[pattern] += 1
        if context:
            self.by_context[context] += 1
        self.last_error_at = datetime.now(timezone.utc)
        return self.by_pattern[pattern]


class ErrorClassifier:

    def __init__(self, stats: ErrorStats | None = None, alert_threshold: int = 5) -> None:
        self.stats = stats if stats is not None else ErrorStats()
        self._alert_threshold = alert_threshold

    def classify(self, exc: BaseException) -> ErrorKind:
        """Classify by exception type first, then by message keywords."""
        if isinstance(exc, EntityNotFoundError):
            return ErrorKind.NOT_FOUND
        if isinstance(exc, (SourceTimeoutError, asyncio.TimeoutError, TimeoutError)):
            return ErrorKind.TIMEOUT
        if isinstance(exc, (SourceUnavailableError, ConnectionError)):
            return ErrorKind.NETWORK
        if isinstance(exc, SourceServerError):
            return ErrorKind.SERVER
        if isinstance(exc, (SourcePermissionError, PermissionError)):
            return ErrorKind.PERMISSION
        if isinstance(exc, ValidationError):
            return ErrorKind.VALIDATION
        if isinstance(exc, ProductSourceError) and exc.status is not None:
            by_status = _kind_for_status(exc.status)
            if by_status is not None:
                return by_status

        message = str(exc).lower()
        for kind, keywords in _KEYWORDS:
            if any(keyword in message for keyword in keywords):
                return kind
        return ErrorKind.GENERAL

    def record(self, exc: BaseException, context: str = "") -> ErrorKind:
        """Classify *exc*, count it, and log when a pattern keeps recurring."""
        kind = self.classify(exc)
        seen = self.stats.record(kind, exc, context)
        if seen >= self._alert_threshold:
            logger.error(
                "Recurring %s error (%d occurrences) in %s: %s",
                kind.value, seen, context or "unknown context", exc,
            )
        else:
            logger.warning("%s error in %s: %s", kind.value, context or "unknown context", exc)
        return kind

    def describe(self, exc: BaseException, context: str = "") -> str:
        """User-friendly message for *exc*."""
        prefix = f"{context}: " if context else ""
        return prefix + _MESSAGES[self.classify(exc)]
