"""Email/password and OAuth authentication against the BaaS auth service.

`SessionContext` is the single place that knows who is signed in. It is
restored once at startup, replaced on sign-in and sign-out, and notifies
subscribers of every change.
"""

import json
import logging
from typing import Any, Callable, MutableMapping, Optional

from packages.common.baas import NETWORK_ERROR, BaaSError
from packages.common.config import get_settings
from packages.common.errors import AuthError, RemoteError, ValidationError
from packages.schemas.user import AuthUser, Session, SignUpResult

log = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

OAUTH_PROVIDERS = ("google", "github")
MIN_PASSWORD = 6
STORE_KEY = "linguafabric.session"

Listener = Callable[[str, Optional[Session]], None]


def _auth_user(data: dict) -> AuthUser:
    metadata = data.get("user_metadata") or {}
    return AuthUser(id=data["id"], email=data.get("email") or "", display_name=metadata.get("display_name"))


def _session(data: dict) -> Session:
    return Session(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_at=data.get("expires_at"),
        user=_auth_user(data["user"]),
    )


def _raise(operation: str, err: BaaSError) -> None:
    if err.code == NETWORK_ERROR or (err.status or 0) >= 500:
        raise RemoteError(operation, err.message, code=err.code)
    log.info("%s rejected: %s", operation, err.message, extra={"operation": operation, "code": err.code})
    raise AuthError(err.message, code=err.code)


class AuthService:
    """Sign-up, sign-in, sign-out and token refresh.

    Args:
        client: `BaaSClient` (or a compatible double).
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    async def sign_up(self, email: str, password: str, display_name: str) -> SignUpResult:
        """Register a user; a session comes back only when no email confirmation is pending."""
        errors = {}
        if "@" not in email:
            errors["email"] = "Enter a valid email address"
        if len(password) < MIN_PASSWORD:
            errors["password"] = f"Password must be at least {MIN_PASSWORD} characters"
        if not display_name.strip():
            errors["displayName"] = "Display name is required"
        if errors:
            raise ValidationError(errors)
        res = await self.client.sign_up(email, password, display_name.strip())
        if res.error is not None:
            _raise("sign_up", res.error)
        data = res.data or {}
        if data.get("access_token"):
            session = _session(data)
            return SignUpResult(user=session.user, session=session, pending_confirmation=False)
        user = _auth_user(data["user"] if "user" in data else data)
        log.info("sign-up pending email confirmation", extra={"operation": "sign_up", "entity_id": user.id})
        return SignUpResult(user=user, pending_confirmation=True)

    async def sign_in(self, email: str, password: str) -> Session:
        res = await self.client.sign_in_with_password(email, password)
        if res.error is not None:
            _raise("sign_in", res.error)
        return _session(res.data)

    def oauth_url(self, provider: str, redirect_to: Optional[str] = None) -> str:
        """URL that starts the provider's consent flow and returns to `redirect_to`."""
        if provider not in OAUTH_PROVIDERS:
            raise ValidationError.single("provider", f"Unsupported provider '{provider}'")
        return self.client.oauth_url(provider, redirect_to or get_settings().OAUTH_REDIRECT_URL)

    async def sign_out(self, session: Session | str) -> None:
        token = session.access_token if isinstance(session, Session) else session
        res = await self.client.sign_out(token)
        if res.error is not None:
            _raise("sign_out", res.error)

    async def current_user(self, access_token: str) -> AuthUser:
        res = await self.client.get_user(access_token)
        if res.error is not None:
            _raise("current_user", res.error)
        return _auth_user(res.data)

    async def refresh(self, session: Session) -> Session:
        if not session.refresh_token:
            raise AuthError("Session has no refresh token", code="refresh_token_missing")
        res = await self.client.refresh_session(session.refresh_token)
        if res.error is not None:
            _raise("refresh_session", res.error)
        return _session(res.data)


class SessionContext:
    """Holds the current session and fans out auth-state changes.

    Listeners are called as ``listener(event, session)`` where `event` is one
    of SIGNED_IN, SIGNED_OUT or TOKEN_REFRESHED and `session` is the new
    session or None.
    """

    def __init__(self, auth: AuthService) -> None:
        self.auth = auth
        self.session: Optional[Session] = None
        self.loading = True
        self._store: Optional[MutableMapping[str, str]] = None
        self._listeners: list[Listener] = []

    @property
    def user(self) -> Optional[AuthUser]:
        return self.session.user if self.session else None

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user.id if self.session else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self.session)
            except Exception:
                log.exception("auth listener failed", extra={"operation": event})

    def _persist(self) -> None:
        if self._store is None:
            return
        if self.session is None:
            self._store.pop(STORE_KEY, None)
        else:
            self._store[STORE_KEY] = self.session.model_dump_json()

    async def restore(self, store: MutableMapping[str, str]) -> Optional[Session]:
        """Load a persisted session, refreshing it once if the token was rejected."""
        self._store = store
        try:
            raw = store.get(STORE_KEY)
            if not raw:
                return None
            try:
                candidate = Session.model_validate(json.loads(raw))
            except ValueError:
                log.warning("discarding unreadable stored session", extra={"operation": "restore_session"})
                store.pop(STORE_KEY, None)
                return None
            try:
                user = await self.auth.current_user(candidate.access_token)
            except AuthError:
                return await self._restore_by_refresh(candidate)
            self.session = candidate.model_copy(update={"user": user})
            return self.session
        finally:
            self.loading = False

    async def _restore_by_refresh(self, stale: Session) -> Optional[Session]:
        try:
            self.session = await self.auth.refresh(stale)
        except AuthError:
            log.info("stored session expired", extra={"operation": "restore_session"})
            self._persist()
            return None
        self._persist()
        self._emit(TOKEN_REFRESHED)
        return self.session

    def establish(self, session: Session) -> None:
        self.session = session
        self._persist()
        self._emit(SIGNED_IN)

    async def refresh(self) -> Session:
        if self.session is None:
            raise AuthError("Not signed in", code="no_session")
        self.session = await self.auth.refresh(self.session)
        self._persist()
        self._emit(TOKEN_REFRESHED)
        return self.session

    def clear(self) -> None:
        self.session = None
        self._persist()
        self._emit(SIGNED_OUT)

    async def sign_in(self, email: str, password: str) -> Session:
        session = await self.auth.sign_in(email, password)
        self.establish(session)
        return session

    async def sign_out(self) -> None:
        """Revoke the session remotely, then clear it locally even if revocation failed."""
        if self.session is None:
            return
        try:
            await self.auth.sign_out(self.session)
        finally:
            self.clear()
