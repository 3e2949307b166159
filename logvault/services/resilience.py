"""
Deadline helpers for blocking backend calls.

Gateways are synchronous clients (boto3, SQLAlchemy). Archival and
retrieval run them on the default executor so every call is an
awaitable, cancellable step with a deadline.
"""

import asyncio
import contextvars
import logging
from collections.abc import Callable
from functools import partial
from typing import Any, TypeVar

from logvault.errors import IOTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(coro, timeout_seconds: float, operation: str = "operation"):
    """
    Execute a coroutine with a timeout.

    Args:
        coro: The coroutine to execute
        timeout_seconds: Maximum time to wait
        operation: Name used in the error message

    Raises:
        IOTimeoutError: If the operation times out
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout_seconds)
    except TimeoutError:
        raise IOTimeoutError(
            f"{operation} timed out (timeout: {timeout_seconds}s)",
            operation=operation,
        )


async def run_blocking(
    func: Callable[..., T],
    *args: Any,
    timeout_seconds: float,
    operation: str,
    **kwargs: Any,
) -> T:
    """
    Run a blocking gateway call on the executor with a deadline.

    On timeout the awaiting task is released; the worker thread finishes
    on its own and its result is discarded.

    Usage:
        data = await run_blocking(store.get, key, timeout_seconds=30, operation="get")
    """
    loop = asyncio.get_running_loop()
    # Worker threads see the caller's run_id and component
    ctx = contextvars.copy_context()
    future = loop.run_in_executor(None, partial(ctx.run, func, *args, **kwargs))
    return await with_timeout(future, timeout_seconds, operation=operation)
