"""Shared fixtures for rulemodel conformance scenarios.

Each scenario runs against an empty default registry with the rule
defaults the scenarios were written for: reads allowed, ``None`` on a
denied read.
"""
from __future__ import annotations

from collections.abc import Iterator

import pytest

import rulemodel


@pytest.fixture(autouse=True)
def _clean_slate() -> Iterator[None]:
    rulemodel.clear()
    rulemodel.reset_defaults()
    rulemodel.config(read=True, read_fail=None)
    yield
    rulemodel.clear()
    rulemodel.reset_defaults()


@pytest.fixture()
def session() -> dict[str, object]:
    """A logged-in, non-admin viewer."""
    return {"user_id": "session_user_id", "admin": False}


@pytest.fixture()
def user_data() -> dict[str, object]:
    return {
        "id": "user_id",
        "email": "user@example.com",
        "password": "secret",
        "profile": {
            "name": "John Doe",
            "phone": "123-456-7890",
        },
    }
