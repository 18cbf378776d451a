"""Tests for AuthService and SessionContext."""

import pytest

from packages.common.baas import NETWORK_ERROR, BaaSError, BaaSResult
from packages.common.errors import AuthError, RemoteError, ValidationError
from packages.common.testing import FakeBaaS
from services.auth.service import (
    SIGNED_IN,
    SIGNED_OUT,
    STORE_KEY,
    TOKEN_REFRESHED,
    AuthService,
    SessionContext,
)


@pytest.mark.asyncio
async def test_sign_up_pending_confirmation() -> None:
    fake = FakeBaaS()
    result = await AuthService(fake).sign_up("ana@example.com", "secret123", " Ana ")
    if not result.pending_confirmation or result.session is not None:
        pytest.fail(f"Expected a pending sign-up, got {result}")
    if result.user.email != "ana@example.com" or result.user.display_name != "Ana":
        pytest.fail(f"Unexpected user {result.user}")
    with pytest.raises(AuthError) as exc:
        await AuthService(fake).sign_in("ana@example.com", "secret123")
    if exc.value.code != "email_not_confirmed":
        pytest.fail(f"Unexpected code {exc.value.code}")


@pytest.mark.asyncio
async def test_sign_up_with_auto_confirm_returns_session() -> None:
    fake = FakeBaaS()
    fake.auto_confirm = True
    result = await AuthService(fake).sign_up("bo@example.com", "secret123", "Bo")
    if result.pending_confirmation or result.session is None or result.session.user.display_name != "Bo":
        pytest.fail(f"Expected an immediate session, got {result}")


@pytest.mark.asyncio
async def test_sign_up_validation_and_duplicate() -> None:
    fake = FakeBaaS()
    with pytest.raises(ValidationError) as exc:
        await AuthService(fake).sign_up("not-an-email", "123", "  ")
    if set(exc.value.errors) != {"email", "password", "displayName"}:
        pytest.fail(f"Unexpected errors {exc.value.errors}")
    await AuthService(fake).sign_up("ana@example.com", "secret123", "Ana")
    with pytest.raises(AuthError):
        await AuthService(fake).sign_up("ana@example.com", "secret123", "Ana")


@pytest.mark.asyncio
async def test_sign_in_current_user_refresh_and_sign_out() -> None:
    fake = FakeBaaS()
    fake.auto_confirm = True
    auth = AuthService(fake)
    await auth.sign_up("ana@example.com", "secret123", "Ana")
    with pytest.raises(AuthError):
        await auth.sign_in("ana@example.com", "wrong-password")
    session = await auth.sign_in("ana@example.com", "secret123")
    me = await auth.current_user(session.access_token)
    if me.id != session.user.id or me.display_name != "Ana":
        pytest.fail(f"Unexpected user {me}")
    fresh = await auth.refresh(session)
    if fresh.access_token == session.access_token:
        pytest.fail("Refresh should issue a new access token")
    with pytest.raises(AuthError):
        await auth.refresh(session)
    await auth.sign_out(fresh)
    with pytest.raises(AuthError):
        await auth.current_user(fresh.access_token)


@pytest.mark.asyncio
async def test_transport_failure_is_remote_error() -> None:
    class Offline(FakeBaaS):
        async def sign_in_with_password(self, email, password):
            return BaaSResult(error=BaaSError(code=NETWORK_ERROR, message="offline"))

    with pytest.raises(RemoteError):
        await AuthService(Offline()).sign_in("ana@example.com", "secret123")


def test_oauth_url_uses_configured_redirect() -> None:
    auth = AuthService(FakeBaaS())
    url = auth.oauth_url("google")
    if "provider=google" not in url or "redirect_to=http://localhost:5173/auth/callback" not in url:
        pytest.fail(f"Unexpected url {url}")
    with pytest.raises(ValidationError):
        auth.oauth_url("myspace")


@pytest.mark.asyncio
async def test_session_context_events() -> None:
    fake = FakeBaaS()
    fake.auto_confirm = True
    auth = AuthService(fake)
    await auth.sign_up("ana@example.com", "secret123", "Ana")
    context = SessionContext(auth)
    events = []
    unsubscribe = context.subscribe(lambda event, session: events.append((event, session.user.id if session else None)))
    store: dict[str, str] = {}
    if await context.restore(store) is not None or context.loading:
        pytest.fail("Nothing stored means no session, and loading ends")
    session = await context.sign_in("ana@example.com", "secret123")
    if context.user_id != session.user.id or STORE_KEY not in store:
        pytest.fail("Sign-in should establish and persist the session")
    await context.refresh()
    await context.sign_out()
    if context.user_id is not None or STORE_KEY in store:
        pytest.fail("Sign-out should clear the session")
    expected = [(SIGNED_IN, session.user.id), (TOKEN_REFRESHED, session.user.id), (SIGNED_OUT, None)]
    if events != expected:
        pytest.fail(f"Unexpected events {events}")
    unsubscribe()
    context.establish(session)
    if len(events) != 3:
        pytest.fail("Unsubscribed listeners must not be called")


@pytest.mark.asyncio
async def test_restore_refreshes_revoked_token() -> None:
    fake = FakeBaaS()
    fake.auto_confirm = True
    auth = AuthService(fake)
    await auth.sign_up("ana@example.com", "secret123", "Ana")
    first = SessionContext(auth)
    store: dict[str, str] = {}
    await first.restore(store)
    session = await first.sign_in("ana@example.com", "secret123")
    fake.tokens.pop(session.access_token)

    second = SessionContext(auth)
    events = []
    second.subscribe(lambda event, s: events.append(event))
    restored = await second.restore(store)
    if restored is None or restored.access_token == session.access_token or events != [TOKEN_REFRESHED]:
        pytest.fail(f"Expected a refreshed session, got {restored} {events}")

    fake.tokens.clear()
    third = SessionContext(auth)
    if await third.restore(store) is not None or STORE_KEY in store:
        pytest.fail("An unrecoverable session should be dropped")


def test_listener_errors_do_not_break_others() -> None:
    context = SessionContext(AuthService(FakeBaaS()))
    seen = []

    def broken(event, session):
        raise RuntimeError("listener bug")

    context.subscribe(broken)
    context.subscribe(lambda event, session: seen.append(event))
    context.clear()
    if seen != [SIGNED_OUT]:
        pytest.fail(f"Unexpected events {seen}")


@pytest.mark.asyncio
async def test_unreadable_stored_session_is_discarded() -> None:
    store = {STORE_KEY: "{not json"}
    if await SessionContext(AuthService(FakeBaaS())).restore(store) is not None or store:
        pytest.fail("Garbage in the store should be removed")
