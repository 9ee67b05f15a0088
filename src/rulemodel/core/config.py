"""Process-wide rule defaults.

Rules that leave ``pre_read``, ``read``, ``read_fail`` or ``cache`` unset,
and whose model ``default_rule`` does not set them either, take their
value from the :class:`RuleDefaults` held here.  Defaults are resolved
when a model is created, so call :func:`config` before defining models.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from rulemodel.core.errors import InvalidRuleError

logger = logging.getLogger(__name__)


class RuleDefaults(BaseModel):
    """Fallback rule options shared by every model.

    Accepts both snake_case and camelCase option names (``read_fail`` and
    ``readFail``), so that rule declarations written against JSON-style
    configuration keep working.
    """

    model_config = ConfigDict(
        strict=True,
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        arbitrary_types_allowed=True,
    )

    pre_read: bool | Callable[..., Any] = Field(
        default=True,
        description="Gate evaluated before the raw value is read.",
    )
    read: bool | Callable[..., Any] = Field(
        default=True,
        description="Gate evaluated after the value has been resolved.",
    )
    read_fail: Any = Field(
        default=None,
        description=(
            "Result of a denied read: a callable, an exception class to "
            "raise, or a constant returned as the field value."
        ),
    )
    cache: bool = Field(
        default=True,
        description="Whether resolved values are cached on the instance.",
    )


_defaults = RuleDefaults()


def get_defaults() -> RuleDefaults:
    """Return the process-wide rule defaults currently in effect."""
    return _defaults


def config(**options: Any) -> RuleDefaults:
    """Update the process-wide rule defaults.

    Only the options passed are changed; every other option keeps its
    prior value.

    Parameters
    ----------
    **options:
        Any of ``pre_read``, ``read``, ``read_fail`` and ``cache``
        (camelCase spellings accepted).

    Returns
    -------
    RuleDefaults
        The defaults now in effect.

    Raises
    ------
    InvalidRuleError
        If an unknown option is passed or a value has the wrong type.
    """
    global _defaults

    try:
        update = RuleDefaults.model_validate(options)
    except ValidationError as exc:
        raise InvalidRuleError(
            f"Invalid default rule options: {sorted(options)}",
            details={"errors": exc.errors(include_url=False)},
        ) from exc

    changed = {name: getattr(update, name) for name in update.model_fields_set}
    _defaults = _defaults.model_copy(update=changed)
    logger.debug("Rule defaults updated: %s", sorted(changed))
    return _defaults


def reset_defaults() -> RuleDefaults:
    """Restore the shipped defaults (read allowed, ``None`` on failure, cached)."""
    global _defaults

    _defaults = RuleDefaults()
    logger.debug("Rule defaults reset")
    return _defaults
