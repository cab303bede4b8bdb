"""Async single-flight helper.

Used to coalesce concurrent loads for the same key so only one coroutine
performs the work, while others await the same Future.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

K = TypeVar("K")
T = TypeVar("T")


def consume_future_exception(fut: asyncio.Future[Any]) -> None:
    """Avoid 'Future exception was never retrieved' for coordination futures."""
    try:
        _ = fut.exception()
    except asyncio.CancelledError:
        return


async def singleflight(
    key: K,
    *,
    inflight: dict[K, asyncio.Future[T]],
    work: Callable[[], Awaitable[T]],
) -> T:
    """Run *work* once per key at a time; concurrent callers share its outcome.

    - If a call for *key* is in flight, await its Future.
    - Otherwise register a Future and run *work* as the single creator.

    The in-flight record is removed when the creator settles, including on
    cancellation, so the next call for *key* starts fresh.
    """
    # No await between lookup and registration: atomic under asyncio.
    fut = inflight.get(key)
    if fut is not None:
        return await asyncio.shield(fut)

    fut = asyncio.get_running_loop().create_future()
    fut.add_done_callback(consume_future_exception)
    inflight[key] = fut

    try:
        value = await work()
    except asyncio.CancelledError:
        fut.cancel()
        raise
    except Exception as e:
        fut.set_exception(e)
        raise
    except BaseException:
        fut.cancel()
        raise
    else:
        fut.set_result(value)
        return value
    finally:
        if inflight.get(key) is fut:
            del inflight[key]
