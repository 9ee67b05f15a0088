"""Tests for lazily evaluated props.

This module covers:

1. **Laziness** -- props are evaluated on first access only.
2. **Caching** -- one evaluation per instance, never shared across instances.
3. **Composition** -- props reading other props, context and data.
4. **Validation** -- reserved names and non-callable props.
5. **Async props** -- awaitable results become re-awaitable Deferreds.
"""
from __future__ import annotations

from typing import Any

import pytest

import rulemodel
from rulemodel.core.deferred import Deferred
from rulemodel.core.errors import InvalidRuleError
from rulemodel.model import Props, build_props_class


class TestLaziness:
    """Props run only when read."""

    def test_not_evaluated_until_accessed(self) -> None:
        calls: list[str] = []
        Model = rulemodel.create("Model", props={"flag": lambda m: calls.append("flag")})
        m = Model({})
        m.model_props
        assert calls == []
        m.model_props.flag
        assert calls == ["flag"]

    def test_container_is_created_once(self) -> None:
        Model = rulemodel.create("Model", props={"flag": lambda m: True})
        m = Model({})
        assert m.model_props is m.model_props
        assert isinstance(m.model_props, Props)

    def test_container_class_name(self) -> None:
        Model = rulemodel.create("Model", props={"flag": lambda m: True})
        assert type(Model({}).model_props).__name__ == "ModelProps"

    def test_repr_lists_evaluated_props(self) -> None:
        Model = rulemodel.create("Model", props={"a": lambda m: 1, "b": lambda m: 2})
        props = Model({}).model_props
        assert repr(props) == "ModelProps(evaluated=[])"
        props.b
        assert repr(props) == "ModelProps(evaluated=['b'])"

    def test_unknown_prop(self) -> None:
        Model = rulemodel.create("Model", props={"a": lambda m: 1})
        with pytest.raises(AttributeError):
            Model({}).model_props.b


class TestCaching:
    """Each prop is evaluated at most once per instance."""

    def test_evaluated_once(self) -> None:
        count = 0

        def counter() -> int:
            nonlocal count
            count += 1
            return count

        Model = rulemodel.create("Model", props={"calls": counter})
        first, second = Model({}), Model({})
        assert first.model_props.calls == 1
        assert first.model_props.calls == 1
        assert second.model_props.calls == 2
        assert second.model_props.calls == 2

    def test_none_result_is_cached(self) -> None:
        count = 0

        def nothing(model: Any) -> None:
            nonlocal count
            count += 1

        Model = rulemodel.create("Model", props={"nothing": nothing})
        m = Model({})
        assert m.model_props.nothing is None
        assert m.model_props.nothing is None
        assert count == 1

    def test_raising_prop_is_retried(self) -> None:
        attempts = 0

        def flaky(model: Any) -> str:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("first call fails")
            return "ok"

        Model = rulemodel.create("Model", props={"flaky": flaky})
        m = Model({})
        with pytest.raises(RuntimeError):
            m.model_props.flaky
        assert m.model_props.flaky == "ok"

    def test_clear_cache_keeps_props(self) -> None:
        count = 0

        def counter() -> int:
            nonlocal count
            count += 1
            return count

        Model = rulemodel.create("Model", props={"calls": counter})
        m = Model({})
        m.model_props.calls
        m.model_clear_cache()
        assert m.model_props.calls == 1


class TestComposition:
    """Props build on data, context and each other."""

    def test_props_from_context_and_data(self) -> None:
        Model = rulemodel.create(
            "Model",
            props={
                "auth_id": lambda m: m.model_context.get("id"),
                "author_id": lambda m: m.model_data["author_id"],
                "is_owner": lambda m: m.model_props.author_id == m.model_props.auth_id,
            },
        )
        assert Model({"author_id": 1}, {"id": 1}).model_props.is_owner is True
        assert Model({"author_id": 2}, {"id": 1}).model_props.is_owner is False

    def test_rule_uses_prop(self) -> None:
        Model = rulemodel.create(
            "Model",
            props={"is_admin": lambda m: bool(m.model_context.get("admin"))},
            rules={"secret": lambda m: m.model_props.is_admin},
        )
        assert Model({"secret": 1}, {"admin": True}).secret == 1
        assert Model({"secret": 1}, {}).secret is None

    def test_prop_reads_parent_props(self) -> None:
        rulemodel.create(
            "Parent",
            props={"is_admin": lambda m: m.model_context["admin"]},
            rules={"child": "Child"},
        )
        rulemodel.create(
            "Child",
            props={"parent_admin": lambda m: m.model_parent.model_props.is_admin},
        )
        Parent = rulemodel.default_registry.lookup("Parent")
        assert Parent({"child": {}}, {"admin": True}).child.model_props.parent_admin is True


class TestValidation:
    """Malformed prop tables are rejected at definition time."""

    @pytest.mark.parametrize("name", ["_hidden", "model_data"])
    def test_reserved_names(self, name: str) -> None:
        with pytest.raises(InvalidRuleError, match="reserved"):
            rulemodel.create("Model", props={name: lambda m: 1})

    def test_non_callable(self) -> None:
        with pytest.raises(InvalidRuleError, match="must be callable"):
            rulemodel.create("Model", props={"flag": True})

    def test_failed_definition_is_not_registered(self) -> None:
        with pytest.raises(InvalidRuleError):
            rulemodel.create("Model", props={"flag": 1})
        assert "Model" not in rulemodel.default_registry

    def test_build_props_class_directly(self) -> None:
        cls = build_props_class("Thing", {"answer": lambda m: 42})
        assert issubclass(cls, Props)
        assert cls(object()).answer == 42


class TestAsyncProps:
    """Awaitable prop results."""

    @pytest.mark.asyncio
    async def test_async_prop_is_deferred(self) -> None:
        async def load(model: Any) -> str:
            return model.model_data["name"]

        Model = rulemodel.create("Model", props={"name": load})
        m = Model({"name": "Ada"})
        value = m.model_props.name
        assert isinstance(value, Deferred)
        assert value is m.model_props.name
        assert await value == "Ada"
        assert await m.model_props.name == "Ada"

    @pytest.mark.asyncio
    async def test_async_prop_in_read_rule(self) -> None:
        async def is_admin(model: Any) -> bool:
            return model.model_context["admin"]

        Model = rulemodel.create(
            "Model",
            props={"is_admin": is_admin},
            rules={"secret": lambda m: m.model_props.is_admin},
        )
        assert await Model({"secret": 1}, {"admin": True}).secret == 1
        assert await Model({"secret": 1}, {"admin": False}).secret is None
