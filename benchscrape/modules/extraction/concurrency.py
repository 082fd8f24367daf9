"""Fan-out helper for the concurrent stages of a run."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


async def gather_all(*aws: Awaitable[T]) -> list[T]:
    """Await every task to completion, then re-raise the first failure in argument order.

    Unlike a plain ``asyncio.gather``, no sibling is left running when one fails,
    so shared resources (the HTTP client) can be closed safely afterwards.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)
