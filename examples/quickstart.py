#!/usr/bin/env python3
"""rulemodel quickstart -- guarding an API payload.

Demonstrates the core workflow:

1. Configure the process-wide default for denied reads.
2. Define a ``User`` model with props and per-field rules.
3. Define the ``Profile`` child model it refers to by name.
4. Wrap a raw payload together with the viewer's session.
5. Read fields as the session owner, as a stranger and asynchronously.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import asyncio
import logging

import rulemodel
from rulemodel import AccessDenied


async def fetch_avatar(user_id: str) -> str:
    await asyncio.sleep(0)
    return f"https://avatars.example.com/{user_id}.png"


def define_models() -> type[rulemodel.Model]:
    rulemodel.config(read_fail=AccessDenied)

    User = rulemodel.create(
        "User",
        props={
            "is_admin": lambda m: m.model_context["admin"],
            "is_owner": lambda m: m.model_data["id"] == m.model_context["user_id"],
        },
        rules={
            "id": True,
            "email": {
                "read": lambda m: m.model_props.is_admin or m.model_props.is_owner,
                "read_fail": None,
            },
            "password": False,
            "profile": "Profile",
            "avatar": {"method": True},
        },
    )
    rulemodel.create(
        "Profile",
        rules={
            "name": True,
            "phone": lambda m: m.model_parent.model_props.is_owner,
        },
    )
    return User


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    User = define_models()

    payload = {
        "id": "u1",
        "email": "ada@example.com",
        "password": "hunter2",
        "profile": {"name": "Ada", "phone": "555-0100"},
        "avatar": lambda: fetch_avatar("u1"),
    }

    owner = User(payload, {"user_id": "u1", "admin": False})
    print(f"[1] owner sees email:    {owner.email}")
    print(f"[2] owner sees phone:    {owner.profile.phone}")

    stranger = User(payload, {"user_id": "u2", "admin": False})
    print(f"[3] stranger sees email: {stranger.email}")
    try:
        stranger.password
    except AccessDenied as exc:
        print(f"[4] stranger password:   {exc.to_dict()['code']} on {exc.model}.{exc.field}")
    try:
        stranger.profile.phone
    except AccessDenied as exc:
        print(f"[5] stranger phone:      {exc}")

    print(f"[6] avatar (async):      {await owner.avatar()}")

    print("\nDone. Raw payload untouched:", sorted(payload))


if __name__ == "__main__":
    asyncio.run(main())
