"""
Bounded waiting for ledger calls.

Wraps awaitables with an optional time limit so a stalled node cannot
hold a boot sequence open forever.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from .exceptions import CallTimeoutError
from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def with_timeout(
    awaitable: Awaitable[T],
    timeout: Optional[float],
    operation_name: str,
) -> T:
    """
    Await with an optional timeout.

    Args:
        awaitable: Coroutine or future to wait on
        timeout: Limit in seconds, None waits indefinitely
        operation_name: Name for logging/error messages

    Returns:
        Result of the awaitable

    Raises:
        CallTimeoutError: If the limit is exceeded

    Example:
        >>> count = await with_timeout(
        ...     binding.num_requesters(),
        ...     timeout=5.0,
        ...     operation_name="num_requesters",
        ... )
    """
    if timeout is None:
        return await awaitable

    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Timeout: {operation_name} exceeded {timeout}s")
        raise CallTimeoutError(operation_name, timeout)
