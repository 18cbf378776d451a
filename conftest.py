"""Shared pytest fixtures.

Settings are read once and cached, so the BaaS environment is set here
before any application module is imported.
"""

import os
import time

os.environ.setdefault("BAAS_URL", "https://baas.test")
os.environ.setdefault("BAAS_ANON_KEY", "anon-test-key")
os.environ.setdefault("BAAS_JWT_SECRET", "linguafabric-test-secret-0123456789abcdef")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import jwt  # noqa: E402
import pytest  # noqa: E402

from packages.common.testing import FakeBaaS  # noqa: E402


def make_rls_policy(fake: FakeBaaS):
    """Row policies modelled on the production store.

    languages: owner and collaborators read; public rows are readable by all,
    friends rows by accepted friends of the owner; owner and editors update;
    only the owner deletes. language_collaborators: readable by the member and
    the language owner; written only by the language owner.
    """

    def owner_of(language_id):
        for row in fake.rows("languages"):
            if row.get("id") == language_id:
                return row.get("owner_id")
        return None

    def role_of(language_id, user_id):
        for row in fake.rows("language_collaborators"):
            if row.get("language_id") == language_id and row.get("user_id") == user_id:
                return row.get("role")
        return None

    def friends(a, b):
        for row in fake.rows("friendships"):
            if row.get("status") == "accepted" and {row.get("user_id_1"), row.get("user_id_2")} == {a, b}:
                return True
        return False

    def policy(op, table, row, user_id):
        if table == "languages":
            if op == "insert":
                return user_id is not None and row.get("owner_id") == user_id
            if user_id is not None and row.get("owner_id") == user_id:
                role = "owner"
            else:
                role = role_of(row.get("id"), user_id) if user_id else None
            if op == "select":
                return (
                    role is not None
                    or row.get("visibility") == "public"
                    or (row.get("visibility") == "friends" and friends(user_id, row.get("owner_id")))
                )
            if op == "update":
                return role in ("owner", "editor")
            return role == "owner"
        if table == "language_collaborators":
            if op == "select":
                return user_id is not None and (
                    row.get("user_id") == user_id or owner_of(row.get("language_id")) == user_id
                )
            return user_id is not None and owner_of(row.get("language_id")) == user_id
        return True

    return policy


@pytest.fixture
def fake() -> FakeBaaS:
    """Empty store with no row policies."""
    return FakeBaaS()


@pytest.fixture
def store() -> FakeBaaS:
    """Store enforcing the production-like row policies."""
    fake = FakeBaaS()
    fake.policy = make_rls_policy(fake)
    return fake


@pytest.fixture
def login():
    """Return `login(fake, user_id)` -> Authorization headers for a signed session JWT."""

    def _login(fake: FakeBaaS, user_id: str, email: str | None = None) -> dict[str, str]:
        claims = {
            "sub": user_id,
            "email": email or f"{user_id}@example.com",
            "aud": "authenticated",
            "role": "authenticated",
            "exp": int(time.time()) + 3600,
        }
        token = jwt.encode(claims, os.environ["BAAS_JWT_SECRET"], algorithm="HS256")
        fake.tokens[token] = user_id
        return {"Authorization": f"Bearer {token}"}

    return _login
