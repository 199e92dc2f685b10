"""Run synchronous store and gateway calls off the event loop."""

import asyncio
import functools
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run a blocking call in the default executor.

    The awaiting task stays cancellable, so a run timeout fires while a
    database query or object upload is still in flight.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))
