"""Rule compilation and field accessors.

This subpackage provides:

* **compile_rule** / **compile_default_rule** -- normalisation of rule
  declarations into canonical :class:`~rulemodel.core.types.FieldRule`
  records, applying model and process-wide defaults.
* **FieldAccessor** -- the descriptor running a field's pipeline
  (pre-read gate, raw read, model materialization, access check) and
  caching its result.
"""
from __future__ import annotations

from rulemodel.rules.compiler import (
    adapt_arity,
    coerce_rule,
    compile_default_rule,
    compile_read_fail,
    compile_rule,
)
from rulemodel.rules.pipeline import FieldAccessor, build_getter, build_method

__all__ = [
    "FieldAccessor",
    "adapt_arity",
    "build_getter",
    "build_method",
    "coerce_rule",
    "compile_default_rule",
    "compile_read_fail",
    "compile_rule",
]
