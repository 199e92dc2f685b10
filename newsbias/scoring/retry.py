"""Bounded retry with exponential backoff for inference calls."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from ..errors import InferenceError
from .inference import BiasInferenceClient

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """How often and how patiently to retry a transient inference failure."""

    max_attempts: int = 3
    backoff_seconds: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def delay(self, attempt: int) -> float:
        """Wait after the given (1-based) failed attempt."""
        return self.backoff_seconds * (2 ** (attempt - 1))


async def invoke_with_retry(
    client: BiasInferenceClient,
    text: str,
    policy: RetryPolicy,
) -> float:
    """
    Score text, retrying 5xx failures.

    Waits ``backoff * 2**(attempt-1)`` between attempts. Cancellation during a
    wait propagates immediately. Non-retryable errors and the error of the last
    attempt are raised unchanged.
    """
    attempt = 1
    while True:
        try:
            return await client.score(text)
        except InferenceError as e:
            if not e.retryable or attempt >= policy.max_attempts:
                raise
            wait = policy.delay(attempt)
            logger.warning(
                "Retrying inference request (attempt %d/%d) after %.1fs due to status %s",
                attempt + 1,
                policy.max_attempts,
                wait,
                e.status_code,
            )
            await policy.sleep(wait)
            attempt += 1
