"""Run independent provider calls concurrently and join them at one barrier."""

import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")


async def gather_or_cancel(*aws: Awaitable[T]) -> list[T]:
    """Await all coroutines concurrently, returning results in argument order.

    If any of them raises, the still-running siblings are cancelled and the
    first exception propagates. No partial results are returned.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        # Let cancelled tasks unwind before the error propagates
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
