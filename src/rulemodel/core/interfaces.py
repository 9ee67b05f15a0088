"""rulemodel collaborator interfaces.

This module defines the *structural* interfaces (``typing.Protocol``)
through which external code plugs into the engine:

* **ModelResolver** -- name/reference to model class resolution.  This is
  the only seam a schema or query-protocol binding needs, together with
  an instance's ``model_data``.
* **PreReadPredicate**, **ReadPredicate**, **ReadFailHandler**,
  **ListItemPredicate**, **PropFunction** -- the callable shapes a
  permission policy supplies when declaring rules.

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.

Rule callables may accept fewer positional parameters than listed here;
the compiler drops the trailing arguments they do not declare.
"""
from __future__ import annotations

from collections.abc import Awaitable, Iterator
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rulemodel.core.types import ModelDefinition
    from rulemodel.model.base import Model


@runtime_checkable
class ModelResolver(Protocol):
    """Resolves model references to model classes."""

    def lookup(self, model_or_name: str | type[Model] | ModelDefinition) -> type[Model]:
        """Return the model class for *model_or_name*.

        Raises :class:`~rulemodel.core.errors.UnknownModelError` if a name
        is not registered.
        """
        ...

    def register(self, name: str, model: type[Model]) -> None:
        """Register *model* under *name*.

        Raises :class:`~rulemodel.core.errors.DuplicateModelError` on a
        duplicate name.
        """
        ...

    def __contains__(self, name: object) -> bool: ...

    def __iter__(self) -> Iterator[str]: ...


@runtime_checkable
class PreReadPredicate(Protocol):
    """Gate evaluated before the raw value is read."""

    def __call__(self, model: Model, field: str) -> bool | Awaitable[bool]: ...


@runtime_checkable
class ReadPredicate(Protocol):
    """Gate evaluated with the resolved value."""

    def __call__(self, model: Model, field: str, value: Any) -> Any: ...


@runtime_checkable
class ReadFailHandler(Protocol):
    """Produces the value of a denied read, or raises."""

    def __call__(self, model: Model, field: str, value: Any) -> Any: ...


@runtime_checkable
class ListItemPredicate(Protocol):
    """Keeps or drops one materialized item of a list field."""

    def __call__(self, item: Model, field: str, items: list[Model]) -> Any: ...


@runtime_checkable
class PropFunction(Protocol):
    """Computes one lazily evaluated prop from its owning instance."""

    def __call__(self, model: Model) -> Any: ...
