"""Deferred values.

A field whose raw value, gate or child data is awaitable resolves to a
:class:`Deferred` instead of a plain value.  Pipeline stages are chained
onto it with :meth:`Deferred.then` (or the module level :func:`then`,
which also accepts plain values), so every stage is written once and runs
unchanged on synchronous and asynchronous inputs.

A ``Deferred`` may be awaited any number of times: the wrapped awaitable
runs once, on first await, and its outcome is replayed afterwards.  This
is what lets a cached field keep returning the same ``Deferred``.
Nested awaitables are flattened, so a stage returning another awaitable
never yields an awaitable result.

The first await schedules the wrapped awaitable on the running event loop
with :func:`asyncio.ensure_future`, which binds the outcome to that loop.
Once settled, the outcome can be awaited from any loop.  A ``Deferred``
still pending when its loop closes is cancelled with it, and awaiting it
later raises :class:`asyncio.CancelledError`.
"""
from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Generator
from typing import Any


async def _settle(source: Awaitable[Any]) -> Any:
    value = await source
    while inspect.isawaitable(value):
        value = await value
    return value


class Deferred:
    """A re-awaitable, chainable wrapper around a pending value."""

    __slots__ = ("_source", "_future")

    def __init__(self, source: Awaitable[Any]) -> None:
        self._source: Awaitable[Any] | None = source
        self._future: asyncio.Future[Any] | None = None

    def __await__(self) -> Generator[Any, None, Any]:
        if self._future is None:
            source, self._source = self._source, None
            self._future = asyncio.ensure_future(_settle(source))
        return self._future.__await__()

    @property
    def done(self) -> bool:
        """Whether the wrapped awaitable has finished."""
        return self._future is not None and self._future.done()

    def then(self, fn: Callable[[Any], Any]) -> Deferred:
        """Return a new ``Deferred`` resolving to ``fn(<resolved value>)``."""

        async def chained() -> Any:
            return fn(await self)

        return Deferred(chained())

    def __repr__(self) -> str:
        if self._future is None or not self._future.done():
            return "Deferred(<pending>)"
        if self._future.cancelled():
            return "Deferred(<cancelled>)"
        if self._future.exception() is not None:
            return f"Deferred(<failed: {type(self._future.exception()).__name__}>)"
        return f"Deferred({self._future.result()!r})"


def deferred(value: Awaitable[Any]) -> Deferred:
    """Wrap *value* in a :class:`Deferred` unless it already is one."""
    if isinstance(value, Deferred):
        return value
    return Deferred(value)


def then(value: Any, fn: Callable[[Any], Any]) -> Any:
    """Apply *fn* to *value* now, or once *value* resolves if it is awaitable."""
    if inspect.isawaitable(value):
        return deferred(value).then(fn)
    return fn(value)
