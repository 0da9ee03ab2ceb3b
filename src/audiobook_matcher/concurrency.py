"""Cancellation support for outbound catalog calls."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from loguru import logger

from .errors import SearchCancelled

log = logger.bind(stage="concurrency")

T = TypeVar("T")


def is_cancelled(cancel: asyncio.Event | None) -> bool:
    return cancel is not None and cancel.is_set()


async def guarded(call: Awaitable[T], cancel: asyncio.Event | None = None) -> T:
    """Await call, aborting it if cancel fires first.

    Raises SearchCancelled when the signal is already set or fires while the
    call is in flight; the in-flight request task is cancelled. Without a
    cancel event this is a plain await.
    """
    if cancel is None:
        return await call

    if cancel.is_set():
        if asyncio.iscoroutine(call):
            call.close()
        raise SearchCancelled("Search cancelled before request")

    task = asyncio.ensure_future(call)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {task, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception as e:
        log.debug(f"Request raised after cancellation: {e}")
    log.debug("In-flight request aborted by cancellation signal")
    raise SearchCancelled("Search cancelled during request")
