# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from giftsniper.shared.logging import logger

T = TypeVar("T")

_DETACHED: set[asyncio.Task[Any]] = set()


def spawn_detached(  # noqa: UP047
    coro: Coroutine[Any, Any, T], *, name: str
) -> asyncio.Task[T]:
    """Run ``coro`` without awaiting it; failures end up in the log only."""

    task = asyncio.create_task(coro, name=name)
    _DETACHED.add(task)
    task.add_done_callback(_on_detached_done)
    return task


def _on_detached_done(task: asyncio.Task[Any]) -> None:
    _DETACHED.discard(task)
    if task.cancelled():
        logger.debug(f"task:cancelled name={task.get_name()}")
        return
    exc = task.exception()
    if exc is not None:
        logger.opt(exception=exc).error(f"task:failed name={task.get_name()}")


async def drain_detached() -> None:
    while _DETACHED:
        await asyncio.gather(*list(_DETACHED), return_exceptions=True)
