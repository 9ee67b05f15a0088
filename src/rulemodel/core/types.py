"""rulemodel shared types.

Key design decisions:
* ``RuleSpec`` is the user-facing, pydantic-validated rule declaration.
  Every option is optional; which options were actually given is read
  from ``model_fields_set`` so that an explicit ``read_fail=None`` is
  distinguishable from "not set".
* ``FieldRule`` and ``ModelDefinition`` are frozen dataclasses produced
  by the compiler.  They hold callables and classes, which are not
  meaningful to serialise.
* Option names are snake_case; camelCase aliases (``preRead``,
  ``readFail``, ``readListItem``) are accepted on input.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from rulemodel.core.interfaces import (
        ListItemPredicate,
        ModelResolver,
        PreReadPredicate,
        PropFunction,
        ReadFailHandler,
        ReadPredicate,
    )
    from rulemodel.model.props import Props
    from rulemodel.registry import TypeRef


# ---------------------------------------------------------------------------
# Rule declarations
# ---------------------------------------------------------------------------

class RuleSpec(BaseModel):
    """A structured field rule declaration.

    Shorthand declarations (``True``, ``False``, a predicate, a type name)
    are coerced into this form by the compiler.
    """

    model_config = ConfigDict(
        strict=True,
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        arbitrary_types_allowed=True,
    )

    type: Any = Field(
        default=None,
        description=(
            "Child model for the field: a model class, or a registered "
            "name.  ``'[Name]'`` declares a list of ``Name``."
        ),
    )
    list: bool | None = Field(
        default=None,
        description="Whether the raw value is a list of child records.",
    )
    pre_read: bool | Callable[..., Any] | None = Field(
        default=None,
        description="Gate evaluated with (model, field) before reading.",
    )
    read: bool | Callable[..., Any] | None = Field(
        default=None,
        description="Gate evaluated with (model, field, value) after reading.",
    )
    read_fail: Any = Field(
        default=None,
        description="Result of a denied read (callable, exception class or value).",
    )
    cache: bool | None = Field(
        default=None,
        description="Whether the resolved value is cached on the instance.",
    )
    method: bool | None = Field(
        default=None,
        description="Expose the raw callable as a method instead of a value.",
    )
    read_list_item: Callable[..., Any] | None = Field(
        default=None,
        description="Per-item filter (item, field, items) for list fields.",
    )


# ---------------------------------------------------------------------------
# Compiled forms
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FieldRule:
    """A compiled, canonical field rule.

    Attributes
    ----------
    name:
        The field (attribute) name.
    pre_read:
        ``True``, ``False`` or a predicate ``(model, field)``.
    read:
        ``True``, ``False`` or a predicate ``(model, field, value)``.
    read_fail:
        Always a callable ``(model, field, value)`` producing the value of
        a denied read (or raising).
    cache:
        Whether the accessor stores its result on the instance.
    is_method:
        Whether the field is exposed as a callable.
    type_ref:
        Late-bound reference to the child model, or ``None``.
    is_list:
        Whether the raw value holds a list of child records.
    read_list_item:
        Optional per-item predicate ``(item, field, items)``.
    """

    name: str
    pre_read: bool | PreReadPredicate
    read: bool | ReadPredicate
    read_fail: ReadFailHandler
    cache: bool = True
    is_method: bool = False
    type_ref: TypeRef | None = None
    is_list: bool = False
    read_list_item: ListItemPredicate | None = None


@dataclass(frozen=True, slots=True, eq=False)
class ModelDefinition:
    """The flattened, immutable definition shared by all instances of a model.

    ``rules`` and ``props`` already include everything inherited from the
    base definition and the interfaces, with the model's own declarations
    taking precedence.
    """

    name: str
    rules: Mapping[str, FieldRule]
    props: Mapping[str, PropFunction]
    default_rule: RuleSpec
    props_class: type[Props]
    registry: ModelResolver = field(repr=False)
    base: ModelDefinition | None = None
    interfaces: tuple[ModelDefinition, ...] = ()

    @property
    def field_names(self) -> list[str]:
        """Names of every field with a rule, in declaration order."""
        return list(self.rules)
