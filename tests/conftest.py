"""Shared fixtures for rulemodel unit tests.

Every test starts with an empty process-wide registry and the shipped
rule defaults, so model names can be reused freely across tests.
"""
from __future__ import annotations

from collections.abc import Iterator

import pytest

import rulemodel
from rulemodel.registry import ModelRegistry


@pytest.fixture(autouse=True)
def _fresh_models() -> Iterator[None]:
    """Clear the default registry and restore defaults around each test."""
    rulemodel.clear()
    rulemodel.reset_defaults()
    yield
    rulemodel.clear()
    rulemodel.reset_defaults()


@pytest.fixture
def registry() -> ModelRegistry:
    """A private registry, isolated from the process-wide one."""
    return ModelRegistry()

