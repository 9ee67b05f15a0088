"""rulemodel -- lazy, rule-governed object graphs.

Wrap raw nested data (API payloads, dicts, plain objects) in model
instances whose fields are read through declarative rules: gated before
and after the value is read, materialized into child models, cached on
first access, and able to resolve asynchronously.

Quick example::

    import rulemodel

    User = rulemodel.create(
        "User",
        props={"is_owner": lambda m: m.model_data["id"] == m.model_context["user_id"]},
        rules={
            "id": True,
            "email": {"read": lambda m: m.model_props.is_owner, "read_fail": None},
            "password": False,
            "profile": "Profile",
        },
    )
    rulemodel.create("Profile", rules={"name": True})

    user = User(payload, session)
    user.email          # None unless the session user owns the record
    user.profile.name   # a Profile instance, parented to ``user``

Layers
------
* Core types, errors, configuration, deferred values (:mod:`rulemodel.core`)
* Registry and late-bound references (:mod:`rulemodel.registry`)
* Rule compilation and field accessors (:mod:`rulemodel.rules`)
* Model runtime, props and ``create`` (:mod:`rulemodel.model`)
"""
from __future__ import annotations

__version__ = "1.0.0a1"

# ---------------------------------------------------------------------------
# Core -- config, errors, types, deferred values
# ---------------------------------------------------------------------------
from rulemodel.core.config import RuleDefaults, config, get_defaults, reset_defaults
from rulemodel.core.deferred import Deferred
from rulemodel.core.errors import (
    AccessDenied,
    DefinitionError,
    DestroyedInstanceError,
    DuplicateModelError,
    InstanceError,
    InvalidRuleError,
    ResolutionError,
    RuleModelError,
    UnknownModelError,
)
from rulemodel.core.interfaces import ModelResolver
from rulemodel.core.types import FieldRule, ModelDefinition, RuleSpec

# ---------------------------------------------------------------------------
# Model runtime
# ---------------------------------------------------------------------------
from rulemodel.model import Model, Props, create

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
from rulemodel.registry import ModelRegistry, TypeRef, default_registry


def clear() -> None:
    """Remove every model from the process-wide registry.

    Mainly a test isolation hook: afterwards, previously used names can be
    defined again.  Process-wide rule defaults are left untouched; see
    :func:`reset_defaults`.
    """
    default_registry.clear()


__all__ = [
    "__version__",
    # Entry points
    "clear",
    "config",
    "create",
    "get_defaults",
    "reset_defaults",
    # Runtime
    "Deferred",
    "Model",
    "ModelRegistry",
    "Props",
    "TypeRef",
    "default_registry",
    # Types
    "FieldRule",
    "ModelDefinition",
    "ModelResolver",
    "RuleDefaults",
    "RuleSpec",
    # Errors
    "AccessDenied",
    "DefinitionError",
    "DestroyedInstanceError",
    "DuplicateModelError",
    "InstanceError",
    "InvalidRuleError",
    "ResolutionError",
    "RuleModelError",
    "UnknownModelError",
]
