"""Model creation and composition.

:func:`create` compiles a model declaration into a new :class:`Model`
subclass and registers it.  Rules, props and plain class members are
flattened once, at definition time, in precedence order:

1. the model's own declarations;
2. the base model's (already flattened) declarations;
3. each interface's declarations, in the order given.

A name is taken from the first source that defines it, so a model always
overrides its base and interfaces, and an earlier interface wins over a
later one only for names neither the model nor its base defines.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from rulemodel.core.config import get_defaults
from rulemodel.core.errors import DefinitionError, DuplicateModelError, InvalidRuleError
from rulemodel.core.interfaces import ModelResolver
from rulemodel.core.types import FieldRule, ModelDefinition
from rulemodel.model.base import Model
from rulemodel.model.props import build_props_class
from rulemodel.registry import default_registry
from rulemodel.rules.compiler import compile_default_rule, compile_rule
from rulemodel.rules.pipeline import FieldAccessor

logger = logging.getLogger(__name__)


def _flatten(own: Mapping[str, Any], inherited: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    merged = dict(own)
    for source in inherited:
        for name, value in source.items():
            merged.setdefault(name, value)
    return merged


def _members(namespace: Mapping[str, Any] | type | None) -> dict[str, Any]:
    if namespace is None:
        return {}
    if isinstance(namespace, type):
        namespace = vars(namespace)
    return {
        name: value
        for name, value in namespace.items()
        if not (name.startswith("__") and name.endswith("__"))
    }


def _interface_members(interface: type[Model]) -> dict[str, Any]:
    definition = interface._definition
    return {
        name: value
        for name, value in _members(interface).items()
        if name != "_definition" and name not in definition.rules  # type: ignore[union-attr]
    }


def create(
    name: str,
    *,
    base: str | type[Model] | None = None,
    interfaces: Iterable[str | type[Model]] = (),
    rules: Mapping[str, Any] | None = None,
    props: Mapping[str, Callable[..., Any]] | None = None,
    default_rule: Any = None,
    namespace: Mapping[str, Any] | type | None = None,
    registry: ModelResolver | None = None,
) -> type[Model]:
    """Define, register and return a new model class.

    Parameters
    ----------
    name:
        Unique model name; also the class name.
    base:
        Model (or model name) to extend.  The new class subclasses it and
        inherits its rules, props and ``default_rule``.
    interfaces:
        Models (or names) whose rules, props and members are mixed in.
        Checked with :meth:`Model.model_implements`.
    rules:
        Field name to rule declaration.  See :mod:`rulemodel.rules.compiler`.
    props:
        Prop name to function of the instance, evaluated lazily.
    default_rule:
        Fallback ``pre_read``/``read``/``read_fail``/``cache`` for this
        model's rules.
    namespace:
        Extra class members (methods, properties), as a mapping or a
        class whose own members are copied.
    registry:
        Registry to register in and resolve names against.  Defaults to
        the process-wide registry.

    Returns
    -------
    type[Model]
        The new model class.

    Raises
    ------
    DuplicateModelError
        If *name* is already registered.
    InvalidRuleError
        If a rule, prop or ``default_rule`` is malformed.
    UnknownModelError
        If *base* or an interface is given by an unregistered name.
    """
    if not isinstance(name, str) or not name.isidentifier():
        raise DefinitionError(
            f"Model name must be a valid identifier, got {name!r}",
            details={"name": repr(name)},
        )
    resolver = registry if registry is not None else default_registry
    if name in resolver:
        raise DuplicateModelError(
            f"Model '{name}' is already registered",
            details={"name": name},
        )

    base_class = resolver.lookup(base) if base is not None else None
    base_def = base_class._definition if base_class is not None else None
    interface_classes = [resolver.lookup(interface) for interface in interfaces]
    interface_defs = tuple(cls._definition for cls in interface_classes)

    if default_rule is None and base_def is not None:
        compiled_default = base_def.default_rule
    else:
        compiled_default = compile_default_rule(default_rule)

    defaults = get_defaults()
    own_rules: dict[str, FieldRule] = {
        field: compile_rule(
            field,
            declaration,
            default_rule=compiled_default,
            defaults=defaults,
            resolver=resolver,
        )
        for field, declaration in (rules or {}).items()
    }

    sources = ([base_def] if base_def is not None else []) + list(interface_defs)
    flat_rules = _flatten(own_rules, (source.rules for source in sources))
    flat_props = _flatten(dict(props or {}), (source.props for source in sources))

    members = _members(namespace)
    for interface in interface_classes:
        for member, value in _interface_members(interface).items():
            if member in members or (base_class is not None and hasattr(base_class, member)):
                continue
            members[member] = value
    clashes = sorted(set(members) & set(flat_rules))
    if clashes:
        raise InvalidRuleError(
            f"Members of {name} clash with rule-governed fields: {', '.join(clashes)}",
            details={"model": name, "fields": clashes},
        )

    inherited_interfaces = base_def.interfaces if base_def is not None else ()
    definition = ModelDefinition(
        name=name,
        rules=MappingProxyType(flat_rules),
        props=MappingProxyType(flat_props),
        default_rule=compiled_default,
        props_class=build_props_class(name, flat_props),
        registry=resolver,
        base=base_def,
        interfaces=tuple(dict.fromkeys(interface_defs + inherited_interfaces)),
    )

    class_namespace: dict[str, Any] = {
        **members,
        "__module__": __name__,
        "__qualname__": name,
        "__doc__": f"Rule-governed model '{name}'.",
        "_definition": definition,
    }
    for field, rule in flat_rules.items():
        class_namespace[field] = FieldAccessor(rule)

    model_class = type(name, (base_class or Model,), class_namespace)
    resolver.register(name, model_class)
    logger.debug(
        "Created model %r (%d rules, %d props, base=%s, interfaces=%s)",
        name,
        len(flat_rules),
        len(flat_props),
        base_def.name if base_def is not None else None,
        [interface_def.name for interface_def in interface_defs],
    )
    return model_class
