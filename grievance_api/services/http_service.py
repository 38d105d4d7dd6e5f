"""Outbound HTTP with bounded retries."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff with up to 50% jitter."""
    delay = min(max_delay, base_delay * (2**attempt))
    return delay + random.uniform(0, delay / 2) if delay else 0.0


async def request_with_retries(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retry_statuses: frozenset[int] = RETRYABLE_STATUSES,
) -> httpx.Response:
    """
    Call send() until it returns a non-retryable response.

    Transport errors on the last attempt propagate; a retryable status on the
    last attempt is returned to the caller as-is.
    """
    attempt = 0
    while True:
        last_attempt = attempt >= max_attempts - 1
        try:
            response = await send()
        except httpx.RequestError:
            if last_attempt:
                raise
            logger.warning("HTTP request failed (attempt %d), retrying", attempt + 1, exc_info=True)
        else:
            if response.status_code not in retry_statuses or last_attempt:
                return response
            logger.warning("HTTP %s (attempt %d), retrying", response.status_code, attempt + 1)

        delay = backoff_delay(attempt, base_delay, max_delay)
        if delay:
            await asyncio.sleep(delay)
        attempt += 1
