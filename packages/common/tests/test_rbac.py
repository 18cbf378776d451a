"""Tests for role resolution and capability flags."""

import itertools

import pytest

from packages.common.baas import BaaSError, NETWORK_ERROR
from packages.common.rbac import RoleLookup, lookup_collaborator_role, permission_for, resolve_role
from packages.common.testing import FakeBaaS

ROLES = ("owner", "editor", "viewer", "none")


@pytest.mark.parametrize(
    "user_id, owner_id, lookup, expected",
    [
        (None, "u1", RoleLookup(role="editor"), "none"),
        ("u1", "u1", None, "owner"),
        ("u1", "u1", RoleLookup(error="timeout"), "owner"),
        ("u2", "u1", None, "none"),
        ("u2", "u1", RoleLookup(), "none"),
        ("u2", "u1", RoleLookup(role="editor"), "editor"),
        ("u2", "u1", RoleLookup(role="viewer"), "viewer"),
        ("u2", "u1", RoleLookup(role="admin"), "none"),
        ("u2", "u1", RoleLookup(role="editor", error="partial"), "none"),
        ("u2", None, RoleLookup(role="viewer"), "viewer"),
    ],
)
def test_resolve_role(user_id, owner_id, lookup, expected) -> None:
    role = resolve_role(user_id, owner_id, lookup)
    if role != expected:
        pytest.fail(f"Expected {expected}, got {role}")


def test_resolve_role_is_total() -> None:
    users = (None, "", "u1", "u2")
    owners = (None, "u1")
    lookups = (None, RoleLookup(), RoleLookup(role="editor"), RoleLookup(role="???"), RoleLookup(error="x"))
    for user_id, owner_id, lookup in itertools.product(users, owners, lookups):
        if resolve_role(user_id, owner_id, lookup) not in ROLES:
            pytest.fail(f"Out-of-range role for {(user_id, owner_id, lookup)}")


def test_capabilities_follow_role() -> None:
    table = {
        "owner": (True, True, True, True),
        "editor": (True, True, False, False),
        "viewer": (True, False, False, False),
        "none": (False, False, False, False),
    }
    for role, expected in table.items():
        p = permission_for(role, "private")
        got = (p.can_view, p.can_edit, p.can_delete, p.can_manage_visibility)
        if got != expected:
            pytest.fail(f"{role}: expected {expected}, got {got}")


def test_visibility_grants_view_only() -> None:
    if not permission_for("none", "public").can_view:
        pytest.fail("Public languages are viewable by anyone")
    if permission_for("none", "friends").can_view:
        pytest.fail("Friends-only languages need a friendship")
    p = permission_for("none", "friends", is_friend=True)
    if not p.can_view or p.can_edit:
        pytest.fail("A friend may view but never edit")
    if permission_for("superuser").role != "none":
        pytest.fail("Unknown roles collapse to none")


@pytest.mark.asyncio
async def test_lookup_reports_missing_row_and_errors() -> None:
    fake = FakeBaaS()
    fake.seed("language_collaborators", {"language_id": "l1", "user_id": "u2", "role": "editor"})
    found = await lookup_collaborator_role(fake, "l1", "u2")
    if found != RoleLookup(role="editor"):
        pytest.fail(f"Unexpected lookup {found}")
    missing = await lookup_collaborator_role(fake, "l1", "u3")
    if missing != RoleLookup():
        pytest.fail(f"A missing row is not an error, got {missing}")
    fake.fail("select", "language_collaborators", BaaSError(code=NETWORK_ERROR, message="offline"))
    failed = await lookup_collaborator_role(fake, "l1", "u2")
    if failed.error != "offline" or resolve_role("u2", "u1", failed) != "none":
        pytest.fail(f"Lookup failures must fail closed, got {failed}")


@pytest.mark.asyncio
async def test_lookup_survives_client_exceptions() -> None:
    class Exploding:
        async def select(self, *args, **kwargs):
            raise RuntimeError("socket closed")

    result = await lookup_collaborator_role(Exploding(), "l1", "u2")
    if result.error != "socket closed":
        pytest.fail(f"Unexpected lookup {result}")
