"""Tests for profile and settings access."""

import pytest

from packages.common.baas import BaaSError
from packages.common.errors import NotFoundError, RemoteError, ValidationError
from packages.common.testing import FakeBaaS
from packages.schemas.user import SettingsUpdate
from services.users.service import UserService


def _seed_user(fake: FakeBaaS) -> None:
    fake.seed("users", {"auth_id": "u1", "email": "ana@example.com", "display_name": "Ana",
                        "theme": "dark", "default_language_depth": "realistic", "activity_permissions": "private"})


@pytest.mark.asyncio
async def test_get_profile() -> None:
    fake = FakeBaaS()
    _seed_user(fake)
    profile = await UserService(fake).get_profile("u1")
    if profile.display_name != "Ana" or profile.theme != "dark":
        pytest.fail(f"Unexpected profile {profile}")
    with pytest.raises(NotFoundError):
        await UserService(fake).get_profile("ghost")


@pytest.mark.asyncio
async def test_update_settings_writes_only_set_fields() -> None:
    fake = FakeBaaS()
    _seed_user(fake)
    profile = await UserService(fake).update_settings("u1", SettingsUpdate(theme="light", display_name=" Ana L. "))
    if profile.theme != "light" or profile.display_name != "Ana L." or profile.default_language_depth != "realistic":
        pytest.fail(f"Unexpected profile {profile}")
    written = fake.calls_of("update", "users")[0][2]["values"]
    if set(written) != {"theme", "display_name", "updated_at"}:
        pytest.fail(f"Unexpected columns {written}")


@pytest.mark.asyncio
async def test_update_settings_rejects_blank_name_and_reports_failures() -> None:
    fake = FakeBaaS()
    _seed_user(fake)
    svc = UserService(fake)
    with pytest.raises(ValidationError):
        await svc.update_settings("u1", SettingsUpdate(display_name="   "))
    if (await svc.update_settings("u1", SettingsUpdate())).display_name != "Ana":
        pytest.fail("An empty update returns the stored profile")
    fake.fail("update", "users", BaaSError(code="42501", message="denied", status=403))
    with pytest.raises(RemoteError):
        await svc.update_settings("u1", SettingsUpdate(theme="light"))


@pytest.mark.asyncio
async def test_display_name_falls_back() -> None:
    fake = FakeBaaS()
    _seed_user(fake)
    fake.seed("users", {"auth_id": "u2", "email": "bo@example.com", "display_name": None})
    svc = UserService(fake)
    names = [await svc.display_name(uid) for uid in ("u1", "u2", "ghost")]
    if names != ["Ana", "bo@example.com", "Unknown"]:
        pytest.fail(f"Unexpected names {names}")
