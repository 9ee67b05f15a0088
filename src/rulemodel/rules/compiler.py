"""Rule compilation.

Turns the rule declarations given to :func:`rulemodel.create` into
canonical :class:`~rulemodel.core.types.FieldRule` records.

A field rule may be declared as:

* ``True`` / ``False`` -- always readable / always denied;
* a callable -- used as the ``read`` predicate;
* a string -- a child model name, ``"[Name]"`` for a list of ``Name``;
* a model class -- a child model;
* a mapping of rule options, or a :class:`~rulemodel.core.types.RuleSpec`.

Options left unset fall back to the model's ``default_rule``, then to the
process-wide defaults (:mod:`rulemodel.core.config`).

``read_fail`` handling:

* a callable is called with ``(model, field, value)`` and its result (or
  exception) is the outcome of the denied read;
* an exception *class* is raised, with the message ``Cannot read '<field>'``;
* anything else -- an exception *instance* included -- is returned as the
  field value.  It is never raised.
"""
from __future__ import annotations

import functools
import inspect
import re
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from rulemodel.core.config import RuleDefaults
from rulemodel.core.errors import InvalidRuleError, RuleModelError
from rulemodel.core.interfaces import ModelResolver
from rulemodel.core.types import FieldRule, RuleSpec
from rulemodel.registry import TypeRef, is_model_class

_LIST_TYPE = re.compile(r"^\[\s*([^\[\]\s]+)\s*\]$")
_NAMED_TYPE = re.compile(r"^[^\[\]\s]+$")

_GATE_OPTIONS = ("pre_read", "read", "read_fail", "cache")
_FIELD_ONLY_OPTIONS = ("type", "list", "method", "read_list_item")

RESERVED_PREFIXES = ("_", "model_")


# ---------------------------------------------------------------------------
# Callable adaptation
# ---------------------------------------------------------------------------

def adapt_arity(fn: Callable[..., Any], arity: int) -> Callable[..., Any]:
    """Return *fn* adapted to be called with *arity* positional arguments.

    Rule callables commonly declare only the arguments they use (a
    ``read`` predicate often takes just the model).  Trailing arguments
    that *fn* cannot accept are dropped.  Callables whose signature cannot
    be inspected are returned unchanged.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return fn

    accepted = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return fn
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            accepted += 1

    if accepted >= arity:
        return fn

    @functools.wraps(fn)
    def adapted(*args: Any) -> Any:
        return fn(*args[:accepted])

    return adapted


def _compile_gate(value: bool | Callable[..., Any], arity: int) -> bool | Callable[..., Any]:
    if isinstance(value, bool):
        return value
    return adapt_arity(value, arity)


def compile_read_fail(value: Any) -> Callable[..., Any]:
    """Normalise a ``read_fail`` option into a ``(model, field, value)`` callable."""
    if isinstance(value, type) and issubclass(value, BaseException):
        error_class = value

        def raise_error(model: Any, field: str, _value: Any = None) -> Any:
            message = f"Cannot read '{field}'"
            if issubclass(error_class, RuleModelError):
                details = {"field": field}
                if model is not None:
                    details["model"] = model.model_type_name
                raise error_class(message, details=details)
            raise error_class(message)

        return raise_error

    if callable(value):
        return adapt_arity(value, 3)

    def constant(model: Any, field: str, _value: Any = None) -> Any:
        return value

    return constant


# ---------------------------------------------------------------------------
# Declaration coercion
# ---------------------------------------------------------------------------

def _validate_spec(options: Mapping[str, Any], where: str) -> RuleSpec:
    try:
        return RuleSpec.model_validate(dict(options))
    except ValidationError as exc:
        raise InvalidRuleError(
            f"Invalid rule for {where}: {exc.error_count()} error(s)",
            details={"field": where, "errors": exc.errors(include_url=False)},
        ) from exc


def coerce_rule(declaration: Any, where: str) -> RuleSpec:
    """Coerce any accepted rule declaration into a :class:`RuleSpec`.

    Raises
    ------
    InvalidRuleError
        If the declaration has an unsupported type or invalid options.
    """
    if isinstance(declaration, RuleSpec):
        return declaration
    if isinstance(declaration, bool):
        return RuleSpec(read=declaration)
    if isinstance(declaration, str) or is_model_class(declaration):
        return RuleSpec(type=declaration)
    if isinstance(declaration, Mapping):
        return _validate_spec(declaration, where)
    if callable(declaration):
        return RuleSpec(read=declaration)
    raise InvalidRuleError(
        f"Unsupported rule for {where}: {type(declaration).__name__}",
        details={"field": where, "type": type(declaration).__name__},
    )


def compile_default_rule(declaration: Any) -> RuleSpec:
    """Compile a model's ``default_rule``.

    Only ``pre_read``, ``read``, ``read_fail`` and ``cache`` may be set.
    ``None`` yields an empty rule (everything falls through to the
    process-wide defaults).
    """
    if declaration is None:
        return RuleSpec()
    spec = coerce_rule(declaration, "default_rule")
    misplaced = sorted(set(_FIELD_ONLY_OPTIONS) & spec.model_fields_set)
    if misplaced:
        raise InvalidRuleError(
            f"default_rule cannot set {', '.join(misplaced)}",
            details={"field": "default_rule", "options": misplaced},
        )
    return spec


def _parse_type(spec: RuleSpec, where: str) -> tuple[Any, bool]:
    target = spec.type
    is_list = bool(spec.list)
    if target is None:
        if is_list:
            raise InvalidRuleError(
                f"Rule for {where} sets list without a type",
                details={"field": where},
            )
        return None, False
    if is_model_class(target):
        return target, is_list
    if isinstance(target, str):
        name = target.strip()
        match = _LIST_TYPE.match(name)
        if match:
            return match.group(1), True
        if _NAMED_TYPE.match(name):
            return name, is_list
    raise InvalidRuleError(
        f"Invalid type for {where}: {target!r}",
        details={"field": where, "type": repr(target)},
    )


def check_field_name(name: Any) -> str:
    """Validate a field or prop name, returning it unchanged."""
    if not isinstance(name, str) or not name:
        raise InvalidRuleError(
            f"Field names must be non-empty strings, got {name!r}",
            details={"field": repr(name)},
        )
    if name.startswith(RESERVED_PREFIXES):
        raise InvalidRuleError(
            f"Field name '{name}' is reserved (names may not start with "
            f"{' or '.join(repr(p) for p in RESERVED_PREFIXES)})",
            details={"field": name},
        )
    return name


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def compile_rule(
    name: str,
    declaration: Any,
    *,
    default_rule: RuleSpec,
    defaults: RuleDefaults,
    resolver: ModelResolver,
) -> FieldRule:
    """Compile one field declaration into a :class:`FieldRule`.

    Parameters
    ----------
    name:
        The field name.
    declaration:
        The rule as declared by the user.
    default_rule:
        The owning model's compiled ``default_rule``.
    defaults:
        The process-wide defaults to fall back on.
    resolver:
        Registry used to resolve named child models on first use.

    Raises
    ------
    InvalidRuleError
        If the name is reserved or the declaration is malformed.
    """
    check_field_name(name)
    spec = coerce_rule(declaration, name)

    resolved: dict[str, Any] = {}
    for option in _GATE_OPTIONS:
        if option in spec.model_fields_set:
            resolved[option] = getattr(spec, option)
        elif option in default_rule.model_fields_set:
            resolved[option] = getattr(default_rule, option)
        else:
            resolved[option] = getattr(defaults, option)

    for option in ("pre_read", "read", "cache"):
        if resolved[option] is None:
            raise InvalidRuleError(
                f"Rule for {name} sets {option} to None",
                details={"field": name, "option": option},
            )

    target, is_list = _parse_type(spec, name)
    read_list_item = spec.read_list_item
    if read_list_item is not None and not is_list:
        raise InvalidRuleError(
            f"Rule for {name} sets read_list_item on a non-list field",
            details={"field": name},
        )

    return FieldRule(
        name=name,
        pre_read=_compile_gate(resolved["pre_read"], 2),
        read=_compile_gate(resolved["read"], 3),
        read_fail=compile_read_fail(resolved["read_fail"]),
        cache=resolved["cache"],
        is_method=bool(spec.method),
        type_ref=TypeRef(target, resolver) if target is not None else None,
        is_list=is_list,
        read_list_item=adapt_arity(read_list_item, 3) if read_list_item else None,
    )
