"""Lazily evaluated derived properties ("props").

Props are pure functions of a model instance, used as shared intermediate
state by read rules (``is_admin``, ``is_owner``, ...).  Each model
definition gets its own :class:`Props` subclass, generated from the
flattened prop table, in which every prop is a
:func:`functools.cached_property`: the first access calls the prop
function with the owning instance and stores the result on the
container, so later accesses never recompute it.

A container belongs to exactly one model instance.
"""
from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from functools import cached_property
from typing import TYPE_CHECKING, Any

from rulemodel.core.deferred import deferred
from rulemodel.core.errors import InvalidRuleError
from rulemodel.rules.compiler import adapt_arity, check_field_name

if TYPE_CHECKING:
    from rulemodel.model.base import Model


class Props:
    """Base class of every generated props container."""

    def __init__(self, model: Model) -> None:
        self._model = model

    def __repr__(self) -> str:
        evaluated = [name for name in vars(self) if not name.startswith("_")]
        return f"{type(self).__name__}(evaluated={evaluated!r})"


def _lazy_prop(name: str, fn: Callable[..., Any]) -> cached_property:
    fn = adapt_arity(fn, 1)

    def compute(self: Props) -> Any:
        value = fn(self._model)
        if inspect.isawaitable(value):
            return deferred(value)
        return value

    compute.__name__ = name
    compute.__qualname__ = f"Props.{name}"
    compute.__doc__ = getattr(fn, "__doc__", None)
    return cached_property(compute)


def build_props_class(model_name: str, props: Mapping[str, Callable[..., Any]]) -> type[Props]:
    """Generate the props container class for a model.

    Raises
    ------
    InvalidRuleError
        If a prop name is reserved or a prop is not callable.
    """
    namespace: dict[str, Any] = {"__module__": __name__}
    for name, fn in props.items():
        check_field_name(name)
        if not callable(fn):
            raise InvalidRuleError(
                f"Prop '{name}' of {model_name} must be callable",
                details={"model": model_name, "prop": name},
            )
        namespace[name] = _lazy_prop(name, fn)
    return type(f"{model_name}Props", (Props,), namespace)
