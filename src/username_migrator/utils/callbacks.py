"""Progress callback helpers."""

import asyncio
import inspect
from collections.abc import Callable
from typing import Any


async def notify(callback: Callable[[Any], Any] | None, payload: Any) -> None:
    """Invoke a sync or async progress callback, then yield to the loop."""
    if callback is None:
        return
    result = callback(payload)
    if inspect.isawaitable(result):
        await result
    else:
        await asyncio.sleep(0)
