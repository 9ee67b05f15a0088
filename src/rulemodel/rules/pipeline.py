"""Field accessor pipeline.

Each compiled :class:`~rulemodel.core.types.FieldRule` is turned into an
accessor built from independent stages, applied in a fixed order:

1. **Pre-read gate** -- ``pre_read`` is checked before the raw value is
   touched.  A denied gate goes straight to ``read_fail``.
2. **Raw read** -- the field is read from the instance's raw data (or,
   for methods, the raw callable is invoked with the call arguments).
3. **Model materialization** -- for typed fields the raw record (or each
   record of a list) becomes a child model instance; list items may then
   be filtered by ``read_list_item``.
4. **Access check** -- ``read`` is checked against the resolved value;
   a denied check returns whatever ``read_fail`` produces.

Stages that do not apply to a rule are left out when the accessor is
built.  Stages are chained with :func:`~rulemodel.core.deferred.then`, so
an awaitable at any point turns the rest of the chain into a
:class:`~rulemodel.core.deferred.Deferred` without changing the order.

:class:`FieldAccessor` is the descriptor installed on model classes.  It
adds the **caching** stage: a cached field stores its final value (a
``Deferred`` included) in the instance cache and later reads return it
directly.
"""
from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from types import MethodType
from typing import TYPE_CHECKING, Any

from rulemodel.core.deferred import Deferred, deferred, then
from rulemodel.core.types import FieldRule

if TYPE_CHECKING:
    from rulemodel.model.base import Model

Stage = Callable[["Model", Any], Any]


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def read_raw(model: Model, name: str) -> Any:
    """Read *name* from the raw data of *model*; missing fields read as ``None``.

    An awaitable value is returned as is and wrapped in a :class:`Deferred`
    further down the pipeline.  A coroutine object in the data can only be
    awaited once: reading it again, with ``cache=False`` or after the cached
    value was dropped, yields a ``Deferred`` that fails with
    ``RuntimeError: cannot reuse already awaited coroutine``.  Store a
    future or a ``Deferred`` in the data for fields read more than once.
    """
    data = model.model_data
    if isinstance(data, Mapping):
        return data.get(name)
    return getattr(data, name, None)


def _materialize_stage(rule: FieldRule) -> Stage | None:
    type_ref = rule.type_ref
    if type_ref is None:
        return None

    if not rule.is_list:
        def materialize(model: Model, value: Any) -> Any:
            return model.model_create_child(type_ref.resolve(), value)

        return materialize

    keep = rule.read_list_item

    def materialize_list(model: Model, items: Any) -> Any:
        children = model.model_create_children(type_ref.resolve(), items)
        if children is None or keep is None:
            return children
        verdicts = [keep(child, rule.name, children) for child in children]
        if any(inspect.isawaitable(verdict) for verdict in verdicts):
            return Deferred(_filter_pending(children, verdicts))
        return [child for child, verdict in zip(children, verdicts) if verdict]

    return materialize_list


async def _filter_pending(children: list[Any], verdicts: list[Any]) -> list[Any]:
    kept = []
    for child, verdict in zip(children, verdicts):
        if inspect.isawaitable(verdict):
            verdict = await verdict
        if verdict:
            kept.append(child)
    return kept


def _access_stage(rule: FieldRule) -> Stage | None:
    if rule.read is True:
        return None

    name = rule.name
    fail = rule.read_fail

    if rule.read is False:
        def deny(model: Model, value: Any) -> Any:
            return fail(model, name, value)

        return deny

    predicate = rule.read

    def check(model: Model, value: Any) -> Any:
        return then(
            predicate(model, name, value),
            lambda allowed: value if allowed else fail(model, name, value),
        )

    return check


def build_stages(rule: FieldRule) -> tuple[Stage, ...]:
    """Return the post-read stages of *rule*, in application order."""
    stages = (_materialize_stage(rule), _access_stage(rule))
    return tuple(stage for stage in stages if stage is not None)


def apply_stages(model: Model, value: Any, stages: tuple[Stage, ...]) -> Any:
    """Run *value* through *stages*, deferring on awaitable intermediates."""
    if inspect.isawaitable(value):
        value = deferred(value)
    for stage in stages:
        value = then(value, lambda resolved, stage=stage: stage(model, resolved))
    return value


def _gate(rule: FieldRule, model: Model) -> Any:
    if isinstance(rule.pre_read, bool):
        return rule.pre_read
    return rule.pre_read(model, rule.name)


# ---------------------------------------------------------------------------
# Accessor builders
# ---------------------------------------------------------------------------

def build_getter(rule: FieldRule) -> Callable[[Model], Any]:
    """Build the uncached value accessor for a property field."""
    stages = build_stages(rule)
    name = rule.name

    def resolve(model: Model) -> Any:
        return apply_stages(model, read_raw(model, name), stages)

    if rule.pre_read is True:
        return resolve

    def gated(model: Model) -> Any:
        return then(
            _gate(rule, model),
            lambda allowed: resolve(model) if allowed else rule.read_fail(model, name, None),
        )

    return gated


def build_method(rule: FieldRule) -> Callable[..., Any]:
    """Build the accessor for a method field.

    The returned function takes the model followed by the call arguments.
    Every call runs the whole pipeline; results are never cached.
    """
    stages = build_stages(rule)
    name = rule.name

    def call(model: Model, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        fn = read_raw(model, name)
        if not callable(fn):
            raise TypeError(f"'{model.model_type_name}.{name}' is not callable")
        return apply_stages(model, fn(*args, **kwargs), stages)

    def invoke(model: Model, *args: Any, **kwargs: Any) -> Any:
        if rule.pre_read is True:
            return call(model, args, kwargs)
        return then(
            _gate(rule, model),
            lambda allowed: call(model, args, kwargs) if allowed else rule.read_fail(model, name, None),
        )

    return invoke


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------

class FieldAccessor:
    """Descriptor exposing one rule-governed field on a model class.

    * Reading runs the pipeline, or returns the cached value.
    * Assigning stores a value in the cache, overriding the pipeline.
    * Deleting drops the cached value so the next read recomputes it.

    Recomputing reads the raw data again, so a raw coroutine that was
    already awaited is not re-run; see :func:`read_raw`.
    """

    __slots__ = ("rule", "name", "_compute")

    def __init__(self, rule: FieldRule) -> None:
        self.rule = rule
        self.name = rule.name
        self._compute = build_method(rule) if rule.is_method else build_getter(rule)

    def __get__(self, instance: Model | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        cache = instance._live_cache()
        try:
            return cache[self.name]
        except KeyError:
            pass
        if self.rule.is_method:
            return MethodType(self._compute, instance)
        value = self._compute(instance)
        if self.rule.cache:
            cache[self.name] = value
        return value

    def __set__(self, instance: Model, value: Any) -> None:
        instance._live_cache()[self.name] = value

    def __delete__(self, instance: Model) -> None:
        instance._live_cache().pop(self.name, None)

    def __repr__(self) -> str:
        return f"FieldAccessor({self.name!r})"
