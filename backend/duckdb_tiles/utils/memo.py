"""Compute-once values shared by concurrent coroutines."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class AsyncOnce[T]:
    """Lazily computed value with in-flight de-duplication.

    The first caller of get() starts the computation; callers arriving
    while it runs await the same task instead of starting their own. A
    successful result is kept for the lifetime of the object. A failure is
    reported to every waiter and then forgotten, so the next call retries.
    """

    def __init__(self) -> None:
        self._value: T | None = None
        self._done = False
        self._task: asyncio.Task[T] | None = None

    @property
    def done(self) -> bool:
        return self._done

    async def get(self, factory: Callable[[], Awaitable[T]]) -> T:
        if self._done:
            return self._value  # type: ignore[return-value]

        if self._task is None:
            self._task = asyncio.ensure_future(factory())

        task = self._task
        try:
            value = await asyncio.shield(task)
        except BaseException:
            if self._task is task and task.done():
                self._task = None
            raise

        self._value = value
        self._done = True
        self._task = None
        return value
