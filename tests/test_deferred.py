"""Tests for deferred values.

This module covers:

1. **then()** -- plain values are transformed immediately, awaitables lazily.
2. **Re-awaiting** -- a Deferred replays its outcome, success or failure.
3. **Flattening** -- nested awaitables never leak out of a Deferred.
4. **Introspection** -- ``done`` and ``repr``.
5. **Event loops** -- a settled outcome is replayed on any loop.
"""
from __future__ import annotations

import asyncio
from typing import Any

import pytest

from rulemodel.core.deferred import Deferred, deferred, then


async def resolved(value: Any) -> Any:
    return value


async def failing(message: str) -> Any:
    raise ValueError(message)


class TestThen:
    """The module-level then() helper."""

    def test_plain_value_applied_now(self) -> None:
        assert then(2, lambda v: v * 3) == 6

    def test_none_is_a_plain_value(self) -> None:
        assert then(None, lambda v: v is None) is True

    @pytest.mark.asyncio
    async def test_awaitable_value_deferred(self) -> None:
        result = then(resolved(2), lambda v: v * 3)
        assert isinstance(result, Deferred)
        assert await result == 6

    @pytest.mark.asyncio
    async def test_chain(self) -> None:
        result = then(then(resolved(1), lambda v: v + 1), lambda v: v * 10)
        assert await result == 20

    @pytest.mark.asyncio
    async def test_fn_not_called_until_awaited(self) -> None:
        calls: list[Any] = []
        result = then(resolved(1), calls.append)
        assert calls == []
        await result
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_deferred_helper_keeps_existing(self) -> None:
        existing = Deferred(resolved(1))
        assert deferred(existing) is existing
        assert await existing == 1


class TestReawait:
    """A Deferred may be awaited repeatedly."""

    @pytest.mark.asyncio
    async def test_awaited_twice(self) -> None:
        value = Deferred(resolved("x"))
        assert await value == "x"
        assert await value == "x"

    @pytest.mark.asyncio
    async def test_source_runs_once(self) -> None:
        runs = 0

        async def source() -> int:
            nonlocal runs
            runs += 1
            return runs

        value = Deferred(source())
        results = await asyncio.gather(value, value, value)
        assert results == [1, 1, 1]
        assert runs == 1

    @pytest.mark.asyncio
    async def test_failure_is_replayed(self) -> None:
        value = Deferred(failing("nope"))
        for _ in range(2):
            with pytest.raises(ValueError, match="nope"):
                await value

    @pytest.mark.asyncio
    async def test_failure_propagates_through_then(self) -> None:
        chained = Deferred(failing("first")).then(lambda v: v + 1)
        with pytest.raises(ValueError, match="first"):
            await chained

    @pytest.mark.asyncio
    async def test_wraps_future(self) -> None:
        future = asyncio.get_running_loop().create_future()
        value = Deferred(future)
        future.set_result(5)
        assert await value == 5


class TestFlattening:
    """Nested awaitables resolve to their innermost value."""

    @pytest.mark.asyncio
    async def test_awaitable_resolving_to_awaitable(self) -> None:
        async def outer() -> Any:
            return resolved(3)

        assert await Deferred(outer()) == 3

    @pytest.mark.asyncio
    async def test_then_returning_awaitable(self) -> None:
        value = Deferred(resolved(1)).then(lambda v: resolved(v + 1))
        assert await value == 2

    @pytest.mark.asyncio
    async def test_then_returning_deferred(self) -> None:
        value = then(resolved(1), lambda v: Deferred(resolved(v * 5)))
        assert await value == 5


class TestIntrospection:
    """done and repr."""

    @pytest.mark.asyncio
    async def test_pending_then_done(self) -> None:
        value = Deferred(resolved([1]))
        assert not value.done
        assert repr(value) == "Deferred(<pending>)"
        await value
        assert value.done
        assert repr(value) == "Deferred([1])"

    @pytest.mark.asyncio
    async def test_failed_repr(self) -> None:
        value = Deferred(failing("x"))
        with pytest.raises(ValueError):
            await value
        assert repr(value) == "Deferred(<failed: ValueError>)"


class TestEventLoops:
    """The outcome is bound to the loop of the first await."""

    @staticmethod
    async def _wait(value: Deferred) -> Any:
        return await value

    def test_settled_outcome_replayed_on_new_loop(self) -> None:
        value = Deferred(resolved("x"))
        assert asyncio.run(self._wait(value)) == "x"
        assert asyncio.run(self._wait(value)) == "x"

    def test_pending_outcome_cancelled_with_its_loop(self) -> None:
        value = Deferred(asyncio.sleep(3600, "late"))

        async def start() -> None:
            asyncio.ensure_future(self._wait(value))
            await asyncio.sleep(0)

        asyncio.run(start())
        assert repr(value) == "Deferred(<cancelled>)"
        with pytest.raises(asyncio.CancelledError):
            asyncio.run(self._wait(value))
