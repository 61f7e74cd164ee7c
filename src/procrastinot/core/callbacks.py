"""Invocation of optional sync-or-async event callbacks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Callback = Callable[..., Awaitable[None] | None]


async def fire(name: str, callback: Callback | None, *args: Any) -> None:
    """Run ``callback`` if set. Failures are logged, never propagated."""
    if callback is None:
        return
    try:
        result = callback(*args)
        if asyncio.iscoroutine(result):
            await result
    except Exception as e:
        logger.error(f"Error in {name} callback: {e}")
