"""Async retry helper for idempotent calls to external services."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from careerkit.logging import logger as default_logger

T = TypeVar("T")
AsyncFactory = Callable[[], Awaitable[T]]


async def retry_async(
    operation: AsyncFactory[T],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    logger=None,
    operation_name: str = "operation",
) -> T:
    """Retry an async operation with linear backoff.

    Only wrap operations that are safe to repeat; usage increments are not.
    """

    log = logger or default_logger
    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts:
                raise
            delay = base_delay * attempt
            log.warning(
                "retrying_operation",
                operation=operation_name,
                attempt=attempt,
                max_attempts=max_attempts,
                delay=delay,
                error=str(exc),
            )
            await asyncio.sleep(delay)

    raise RuntimeError(f"{operation_name} failed after {max_attempts} attempts")


__all__ = ["retry_async"]
