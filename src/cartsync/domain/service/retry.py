"""Domain service: Retry Policy.

One policy object is shared by cart validation and offline-queue replay
so both degrade the same way under a flaky Product Source.

Only network, timeout and server failures are retried, and only below the
attempt cap. Failures whose message marks them as permanent are never
retried, whatever their category. Delays grow exponentially with up to
10% random jitter and are capped at ``max_delay``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from cartsync.domain.service.errors import ErrorClassifier, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.SERVER})
PERMANENT_MARKERS = (
    "404",
    "forbidden",
    "unauthorized",
    "invalid order",
    "payment result missing",
)


@dataclass
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter_ratio: float = 0.1
    classifier: ErrorClassifier = field(default_factory=ErrorClassifier)
    rng: random.Random = field(default_factory=random.Random)

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        """Whether a call that failed with *exc* after *attempt* prior retries
        may be attempted again."""
        if attempt >= self.max_retries:
            return False
        if self.classifier.classify(exc) not in RETRYABLE_KINDS:
            return False
        message = str(exc).lower()
        return not any(marker in message for marker in PERMANENT_MARKERS)

    def delay(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt + 1``."""
        exponential = self.base_delay * (2 ** attempt)
        jitter = self.rng.random() * self.jitter_ratio * exponential
        return min(exponential + jitter, self.max_delay)


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    context: str = "",
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Await *operation*, retrying in place while the policy allows.

    Every failure is recorded with the policy's classifier. The last
    failure is re-raised once retries are exhausted or not allowed.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            policy.classifier.record(exc, context)
            if not policy.should_retry(exc, attempt):
                raise
            wait = policy.delay(attempt)
            attempt += 1
            logger.info("Retrying %s in %.2fs (attempt %d)", context or "call", wait, attempt)
            await sleep(wait)
