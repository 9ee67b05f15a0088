"""rulemodel error hierarchy.

Hierarchy
---------
::

    RuleModelError
    +-- DefinitionError
    |   +-- DuplicateModelError
    |   +-- InvalidRuleError
    +-- ResolutionError
    |   +-- UnknownModelError
    +-- InstanceError
    |   +-- DestroyedInstanceError
    +-- AccessDenied

Usage
-----
Raise concrete subclasses directly::

    raise UnknownModelError("Profile")

Catch by category::

    try:
        create("User", rules={...})
    except DefinitionError:
        # handles DuplicateModelError and InvalidRuleError
        ...

Errors raised by user supplied callables (``read``, ``pre_read``,
``read_fail``, props) are never wrapped; they reach the caller of the
attribute access unchanged.
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class RuleModelError(Exception):
    """Base exception for all rulemodel errors.

    Attributes
    ----------
    code : str
        Stable machine-readable error code, e.g. ``"duplicate_model"``.
    message : str
        Human-readable description.
    details : dict[str, Any]
        Context for this occurrence.  ``model`` (or ``name``) and ``field``
        keys name the model and field the error is about.
    resolution : str
        Suggested action for the caller.
    """

    code: str = "rulemodel_error"
    message: str = "Unknown rulemodel error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        super().__init__(message if message is not None else self.message)
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        self.details: dict[str, Any] = dict(details) if details else {}

    @property
    def model(self) -> str | None:
        """Name of the model the error is about, if known."""
        return self.details.get("model", self.details.get("name"))

    @property
    def field(self) -> str | None:
        """Name of the field the error is about, if known."""
        return self.details.get("field")

    def to_dict(self) -> dict[str, Any]:
        """Describe the error as a flat mapping.

        ``model`` and ``field`` are lifted out of :attr:`details`; the
        remaining details, if any, are kept under ``"details"``.
        """
        payload: dict[str, Any] = {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
        }
        if self.model is not None:
            payload["model"] = self.model
        if self.field is not None:
            payload["field"] = self.field
        lifted = {"field", "model" if "model" in self.details else "name"}
        rest = {k: v for k, v in self.details.items() if k not in lifted}
        if rest:
            payload["details"] = rest
        if self.resolution:
            payload["resolution"] = self.resolution
        return payload

    def __repr__(self) -> str:
        location = ".".join(part for part in (self.model, self.field) if part)
        if location:
            return f"{type(self).__name__}({self.code!r} at {location!r}: {self.message!r})"
        return f"{type(self).__name__}({self.code!r}: {self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class DefinitionError(RuleModelError):
    """Errors raised while a model is being defined."""

    code = "definition_error"


class ResolutionError(RuleModelError):
    """Errors raised while resolving a model reference."""

    code = "resolution_error"


class InstanceError(RuleModelError):
    """Errors raised by operations on a model instance."""

    code = "instance_error"


# ===================================================================
# Definition errors
# ===================================================================

class DuplicateModelError(DefinitionError):
    """A model with the same name is already registered."""

    code = "duplicate_model"
    message = "A model with this name is already registered"
    resolution = (
        "Pick a unique model name, or call rulemodel.clear() before "
        "redefining models (e.g. between tests)."
    )


class InvalidRuleError(DefinitionError):
    """A rule specification has an unsupported shape."""

    code = "invalid_rule"
    message = "Invalid rule specification"
    resolution = (
        "Declare a rule as True, False, a callable, a type name string, "
        "a mapping of rule options, or a RuleSpec."
    )


# ===================================================================
# Resolution errors
# ===================================================================

class UnknownModelError(ResolutionError):
    """A model name could not be found in the registry at time of use."""

    code = "unknown_model"
    message = "Model is not registered"
    resolution = "Define the model with rulemodel.create() before it is used."


# ===================================================================
# Instance errors
# ===================================================================

class DestroyedInstanceError(InstanceError):
    """An attribute of a destroyed model instance was accessed.

    Not an :class:`AttributeError`: ``getattr(model, name, default)``
    does not swallow it.
    """

    code = "destroyed_instance"
    message = "Model instance has been destroyed"
    resolution = "Do not keep references to destroyed model instances."


# ===================================================================
# Policy errors
# ===================================================================

class AccessDenied(RuleModelError):
    """Convenience error for ``read_fail`` handlers.

    The engine never raises this on its own; pass it as ``read_fail``
    (the class) to have a denied read raise it.
    """

    code = "access_denied"
    message = "Access denied"

