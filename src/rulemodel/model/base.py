"""Model instance runtime.

:class:`Model` is the base class of every model created with
:func:`rulemodel.create`.  An instance wraps one raw data record (a
mapping or any object) without copying it, and links into a tree:

* ``model_parent`` -- the instance that materialized this one (``None``
  for a root);
* ``model_root`` -- the top of the tree, the instance itself for a root;
* ``model_context`` -- caller supplied state (session, viewer, ...)
  handed unchanged to every descendant.

The parent is held through a weak reference.  The root is held strongly,
so a descendant always reaches the top of its tree; a root keeps no
reference to itself.  Field values live in a per-instance cache managed by
the field descriptors (:class:`~rulemodel.rules.pipeline.FieldAccessor`).

All runtime members carry the ``model_`` prefix, which field and prop
names may not use.
"""
from __future__ import annotations

import logging
import weakref
from typing import TYPE_CHECKING, Any, ClassVar

from rulemodel.core.errors import DestroyedInstanceError

if TYPE_CHECKING:
    from rulemodel.core.types import ModelDefinition
    from rulemodel.model.props import Props

logger = logging.getLogger(__name__)


class Model:
    """Base class for rule-governed models.

    Parameters
    ----------
    data:
        The raw record.  Owned by the instance, never copied.
    context:
        Shared, read-only state passed to all descendants.
    parent:
        The instance this one was materialized from.
    root:
        The tree root; defaults to the parent's root, or to the instance
        itself when there is no parent.
    """

    _definition: ClassVar[ModelDefinition | None] = None

    def __init__(
        self,
        data: Any,
        context: Any = None,
        parent: Model | None = None,
        root: Model | None = None,
    ) -> None:
        if self._definition is None:
            raise TypeError(
                "Model cannot be instantiated directly; define a model with rulemodel.create()"
            )
        if root is None and parent is not None:
            root = parent.model_root
        self._data = data
        self._context = context
        self._parent = weakref.ref(parent) if parent is not None else None
        self._root: Model | None = root if root is not self else None
        self._cache: dict[str, Any] | None = {}
        self._props: Props | None = None
        self._destroyed = False

    # -- Liveness -----------------------------------------------------------

    def _check_alive(self) -> None:
        if self._destroyed:
            raise DestroyedInstanceError(
                f"{self.model_type_name} instance has been destroyed",
                details={"model": self.model_type_name},
            )

    def _live_cache(self) -> dict[str, Any]:
        self._check_alive()
        return self._cache  # type: ignore[return-value]

    # -- Definition ---------------------------------------------------------

    @property
    def model_definition(self) -> ModelDefinition:
        """The flattened definition shared by all instances of this model."""
        return self._definition  # type: ignore[return-value]

    @property
    def model_type_name(self) -> str:
        """The registered model name."""
        return self._definition.name  # type: ignore[union-attr]

    # -- Tree links ---------------------------------------------------------

    @property
    def model_data(self) -> Any:
        """The raw record, exactly as passed to the constructor."""
        self._check_alive()
        return self._data

    @property
    def model_context(self) -> Any:
        """The context shared by the whole tree."""
        self._check_alive()
        return self._context

    @property
    def model_parent(self) -> Model | None:
        """The parent instance, or ``None`` for a root (or a collected parent)."""
        self._check_alive()
        return self._parent() if self._parent is not None else None

    @property
    def model_root(self) -> Model:
        """The root of the tree, ``self`` for a root."""
        self._check_alive()
        return self._root if self._root is not None else self

    @property
    def model_props(self) -> Props:
        """The lazily created props container of this instance."""
        self._check_alive()
        if self._props is None:
            self._props = self.model_definition.props_class(self)
        return self._props

    @property
    def model_destroyed(self) -> bool:
        """Whether :meth:`model_destroy` has been called."""
        return self._destroyed

    # -- Children -----------------------------------------------------------

    def model_create_child(self, model: Any, data: Any) -> Model | None:
        """Wrap *data* in an instance of *model* parented to this instance.

        *model* may be a model class, definition or registered name.
        Returns ``None`` without constructing anything when *data* is
        ``None``.
        """
        if data is None:
            return None
        model_class = self.model_definition.registry.lookup(model)
        return model_class(data, self.model_context, self, self.model_root)

    def model_create_children(self, model: Any, items: Any) -> list[Model | None] | None:
        """Wrap every record of *items*; ``None`` when *items* is ``None``."""
        if items is None:
            return None
        model_class = self.model_definition.registry.lookup(model)
        return [self.model_create_child(model_class, item) for item in items]

    # -- Navigation ---------------------------------------------------------

    def model_parent_of_type(self, model: Any) -> Model | None:
        """Return the nearest ancestor that is an instance of *model*.

        The instance itself is not considered.  Returns ``None`` when no
        ancestor matches.
        """
        model_class = self.model_definition.registry.lookup(model)
        parent = self.model_parent
        while parent is not None:
            if isinstance(parent, model_class):
                return parent
            parent = parent.model_parent
        return None

    def model_implements(self, interface: Any) -> bool:
        """Whether *interface* was declared as an interface of this model.

        Membership is by identity; a model sharing the interface's fields
        without declaring it does not count.
        """
        definition = self.model_definition.registry.lookup(interface)._definition
        return any(declared is definition for declared in self.model_definition.interfaces)

    # -- Cache & lifecycle --------------------------------------------------

    def model_clear_cache(self, field: str | None = None) -> None:
        """Drop the cached value of *field*, or of every field."""
        cache = self._live_cache()
        if field is None:
            cache.clear()
        else:
            cache.pop(field, None)

    def model_destroy(self) -> None:
        """Release the raw data, tree links, context, cache and props.

        Any later field or ``model_*`` access raises
        :class:`~rulemodel.core.errors.DestroyedInstanceError`.
        Destroying twice is a no-op.
        """
        if self._destroyed:
            return
        self._destroyed = True
        self._data = None
        self._context = None
        self._parent = None
        self._root = None
        self._cache = None
        self._props = None
        logger.debug("Destroyed %s instance", self.model_type_name)

    def __repr__(self) -> str:
        state = " destroyed" if self._destroyed else ""
        return f"<{self.model_type_name} model{state}>"
