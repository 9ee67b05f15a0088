"""Model runtime and model definition.

This subpackage provides:

* **Model** -- base class of every model instance: raw data, tree links,
  child materialization, navigation, cache and lifecycle.
* **Props** -- lazily evaluated, per-instance derived properties.
* **create** -- compiles a declaration (rules, props, base, interfaces)
  into a registered model class.
"""
from __future__ import annotations

from rulemodel.model.base import Model
from rulemodel.model.factory import create
from rulemodel.model.props import Props, build_props_class

__all__ = [
    "Model",
    "Props",
    "build_props_class",
    "create",
]
