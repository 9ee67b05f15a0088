"""Model registry and late-bound type references.

The :class:`ModelRegistry` maps model names to model classes.  A
process-wide default instance, :data:`default_registry`, is used by
:func:`rulemodel.create` unless another registry is injected.

:class:`TypeRef` is the deferred resolution cell used by field rules: a
rule may name a model that is defined later (or that refers back to the
declaring model), and the name is only looked up the first time the
field materializes a child.  Successful lookups are memoized; failed
ones are not, so a model defined after a failed access is picked up on
the next one.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from rulemodel.core.errors import DuplicateModelError, UnknownModelError
from rulemodel.core.types import ModelDefinition

if TYPE_CHECKING:
    from rulemodel.core.interfaces import ModelResolver
    from rulemodel.model.base import Model

logger = logging.getLogger(__name__)


def is_model_class(obj: Any) -> bool:
    """Return ``True`` if *obj* is a model class produced by ``create()``."""
    return isinstance(obj, type) and isinstance(
        getattr(obj, "_definition", None), ModelDefinition
    )


class ModelRegistry:
    """Name to model class mapping.

    Registration is serialised by a lock: when two threads define a model
    under the same name, exactly one succeeds and the other receives
    :class:`DuplicateModelError`.
    """

    def __init__(self) -> None:
        self._models: dict[str, type[Model]] = {}
        self._lock = threading.Lock()

    def register(self, name: str, model: type[Model]) -> None:
        """Register *model* under *name*.

        Raises
        ------
        DuplicateModelError
            If *name* is already registered.
        """
        with self._lock:
            if name in self._models:
                raise DuplicateModelError(
                    f"Model '{name}' is already registered",
                    details={"name": name},
                )
            self._models[name] = model
        logger.debug("Registered model %r", name)

    def lookup(self, model_or_name: str | type[Model] | ModelDefinition) -> type[Model]:
        """Resolve a model name, class or definition to its model class.

        Raises
        ------
        UnknownModelError
            If a name (or a definition's name) is not registered here.
        TypeError
            If *model_or_name* is none of the accepted kinds.
        """
        if is_model_class(model_or_name):
            return model_or_name  # type: ignore[return-value]

        if isinstance(model_or_name, ModelDefinition):
            model = self._models.get(model_or_name.name)
            if model is None or model._definition is not model_or_name:
                raise UnknownModelError(
                    f"Model definition '{model_or_name.name}' is not registered",
                    details={"name": model_or_name.name},
                )
            return model

        if isinstance(model_or_name, str):
            try:
                return self._models[model_or_name]
            except KeyError:
                raise UnknownModelError(
                    f"Model '{model_or_name}' is not registered",
                    details={"name": model_or_name},
                ) from None

        raise TypeError(
            f"Expected a model class, definition or name, got {type(model_or_name).__name__}"
        )

    def get(self, name: str) -> type[Model] | None:
        """Return the model registered under *name*, or ``None``."""
        return self._models.get(name)

    def clear(self) -> None:
        """Remove every registered model so names can be defined again."""
        with self._lock:
            count = len(self._models)
            self._models.clear()
        logger.debug("Registry cleared (%d models removed)", count)

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._models))

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"ModelRegistry({sorted(self._models)!r})"


default_registry = ModelRegistry()
"""The process-wide default registry."""


class TypeRef:
    """A model reference resolved on first use.

    Parameters
    ----------
    target:
        A model class (resolved immediately) or a model name.
    resolver:
        The registry consulted for names.
    """

    __slots__ = ("_target", "_resolver", "_resolved")

    def __init__(self, target: str | type[Model], resolver: ModelResolver) -> None:
        self._target = target
        self._resolver = resolver
        self._resolved: type[Model] | None = target if is_model_class(target) else None

    @property
    def name(self) -> str:
        """The referenced model name."""
        if isinstance(self._target, str):
            return self._target
        return self._target._definition.name

    @property
    def resolved(self) -> bool:
        """Whether the reference has been bound to a class yet."""
        return self._resolved is not None

    def resolve(self) -> type[Model]:
        """Return the referenced model class, looking it up on first call."""
        if self._resolved is None:
            self._resolved = self._resolver.lookup(self._target)
            logger.debug("Resolved late-bound model reference %r", self.name)
        return self._resolved

    def __repr__(self) -> str:
        state = "resolved" if self._resolved is not None else "pending"
        return f"TypeRef({self.name!r}, {state})"
