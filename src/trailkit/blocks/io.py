"""Deadline helper for store calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from trailkit.errors import Timeout

T = TypeVar("T")


async def bounded(operation: Awaitable[T], timeout: float, what: str) -> T:
    """Await ``operation`` for at most ``timeout`` seconds.

    On expiry the inner coroutine is cancelled, so an open ``session.begin()``
    block rolls back before ``Timeout`` is raised.
    """
    try:
        return await asyncio.wait_for(operation, timeout)
    except TimeoutError:
        msg = f"{what} exceeded {timeout:g}s"
        raise Timeout(msg) from None
