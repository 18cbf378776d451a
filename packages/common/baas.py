"""Async client for the backend-as-a-service (auth + REST tables).

Talks to the two HTTP surfaces the BaaS exposes:
- `/auth/v1`: sign-up, password and refresh-token grants, logout, user lookup
- `/rest/v1`: PostgREST-style table reads and writes

Every data call returns a `BaaSResult`; store-reported failures come back as a
`BaaSError` value instead of an exception so services can reclassify them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence
from urllib.parse import urlencode

import httpx

from .config import get_settings

log = logging.getLogger(__name__)

NO_ROWS = "PGRST116"
INSUFFICIENT_PRIVILEGE = "42501"
UNIQUE_VIOLATION = "23505"
NETWORK_ERROR = "network_error"

_OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


@dataclass
class BaaSError:
    """Structured error reported by the store (or synthesized for transport failures)."""
    code: str
    message: str
    hint: Optional[str] = None
    details: Optional[str] = None
    status: Optional[int] = None

    @property
    def is_no_rows(self) -> bool:
        return self.code == NO_ROWS

    @property
    def is_denied(self) -> bool:
        return self.code == INSUFFICIENT_PRIVILEGE or self.status in (401, 403)


@dataclass
class BaaSResult:
    """Uniform result shape: either `data` (row, rows or auth payload) or `error`."""
    data: Any = None
    error: Optional[BaaSError] = None
    count: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class Search:
    """Case-insensitive substring match over several columns joined by OR."""
    columns: Sequence[str]
    term: str

    def to_param(self) -> str:
        term = self.term.replace(",", " ").replace("(", " ").replace(")", " ")
        return "(" + ",".join(f"{c}.ilike.*{term}*" for c in self.columns) + ")"


def _fmt(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_error(response: httpx.Response) -> BaaSError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    code = body.get("code") or body.get("error_code") or body.get("error") or str(response.status_code)
    message = (
        body.get("message")
        or body.get("msg")
        or body.get("error_description")
        or response.reason_phrase
        or "request failed"
    )
    return BaaSError(
        code=str(code),
        message=str(message),
        hint=body.get("hint"),
        details=body.get("details"),
        status=response.status_code,
    )


def _parse_count(content_range: str | None) -> Optional[int]:
    # "0-24/3573" or "*/0"
    if not content_range or "/" not in content_range:
        return None
    total = content_range.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else None


class BaaSClient:
    """Thin async wrapper around the BaaS HTTP API.

    Args:
        url: Project base URL, e.g. "https://xyz.example.co".
        anon_key: Public API key sent as `apikey` on every request.
        access_token: Session JWT; when absent requests run as the anon role.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (used by tests).
        http: Connection pool to reuse; clients from `with_token` share their parent's.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        access_token: str | None = None,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=self.url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, access_token: str | None = None) -> "BaaSClient":
        """Build a client from application settings."""
        s = get_settings()
        return cls(s.BAAS_URL, s.BAAS_ANON_KEY, access_token=access_token, timeout=s.REQUEST_TIMEOUT)

    def with_token(self, access_token: str | None) -> "BaaSClient":
        """Return a client that acts on behalf of the given session token.

        The token travels in per-request headers, so the derived client reuses
        this client's connection pool and closing it leaves the pool open.
        """
        return BaaSClient(
            self.url, self.anon_key, access_token=access_token,
            timeout=self.timeout, transport=self._transport, http=self._http,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "BaaSClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # ---- plumbing -------------------------------------------------------------

    def _headers(self, token: str | None = None, **extra: str) -> dict[str, str]:
        bearer = token or self.access_token or self.anon_key
        headers = {"apikey": self.anon_key, "Authorization": f"Bearer {bearer}"}
        headers.update(extra)
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        params: Optional[Sequence[tuple[str, str]]] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> BaaSResult:
        try:
            response = await self._http.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            log.warning("BaaS transport failure: %s", e, extra={"operation": operation})
            return BaaSResult(error=BaaSError(code=NETWORK_ERROR, message=str(e) or "network failure"))
        if response.is_error:
            err = _parse_error(response)
            log.debug("BaaS error %s on %s: %s", err.code, operation, err.message,
                      extra={"operation": operation, "code": err.code})
            return BaaSResult(error=err)
        count = _parse_count(response.headers.get("content-range"))
        if not response.content:
            return BaaSResult(data=None, count=count)
        return BaaSResult(data=response.json(), count=count)

    @staticmethod
    def _filters(
        eq: Optional[Mapping[str, Any]] = None,
        in_: Optional[Mapping[str, Iterable[Any]]] = None,
        gte: Optional[Mapping[str, Any]] = None,
    ) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        for col, value in (eq or {}).items():
            params.append((col, f"is.{_fmt(value)}" if value is None else f"eq.{_fmt(value)}"))
        for col, values in (in_ or {}).items():
            params.append((col, "in.(" + ",".join(_fmt(v) for v in values) + ")"))
        for col, value in (gte or {}).items():
            params.append((col, f"gte.{_fmt(value)}"))
        return params

    # ---- data operations ------------------------------------------------------

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        eq: Optional[Mapping[str, Any]] = None,
        in_: Optional[Mapping[str, Iterable[Any]]] = None,
        gte: Optional[Mapping[str, Any]] = None,
        search: Optional[Search] = None,
        order: Optional[str] = None,
        ascending: bool = False,
        range_: Optional[tuple[int, int]] = None,
        single: bool = False,
        count: bool = False,
    ) -> BaaSResult:
        """Read rows from `table` filtered by equality / membership / lower bound / search."""
        params = [("select", columns)] + self._filters(eq, in_, gte)
        if search is not None:
            params.append(("or", search.to_param()))
        if order:
            params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
        headers = self._headers()
        if range_ is not None:
            start, end = range_
            params.append(("offset", str(start)))
            params.append(("limit", str(end - start + 1)))
        if count:
            headers["Prefer"] = "count=exact"
        if single:
            headers["Accept"] = _OBJECT_ACCEPT
        result = await self._send("GET", f"/rest/v1/{table}", operation=f"select:{table}",
                                  params=params, headers=headers)
        if result.ok and not single and result.data is None:
            result.data = []
        return result

    async def insert(self, table: str, rows: Mapping[str, Any] | Sequence[Mapping[str, Any]], *, single: bool = True) -> BaaSResult:
        """Insert one or more rows and return the stored representation."""
        payload = [dict(rows)] if isinstance(rows, Mapping) else [dict(r) for r in rows]
        headers = self._headers(Prefer="return=representation")
        if single:
            headers["Accept"] = _OBJECT_ACCEPT
        return await self._send("POST", f"/rest/v1/{table}", operation=f"insert:{table}",
                                json=payload, headers=headers)

    async def update(self, table: str, values: Mapping[str, Any], *, eq: Mapping[str, Any], single: bool = True) -> BaaSResult:
        """Update rows matching `eq` and return the refreshed representation."""
        headers = self._headers(Prefer="return=representation")
        if single:
            headers["Accept"] = _OBJECT_ACCEPT
        return await self._send("PATCH", f"/rest/v1/{table}", operation=f"update:{table}",
                                params=self._filters(eq), json=dict(values), headers=headers)

    async def delete(self, table: str, *, eq: Mapping[str, Any]) -> BaaSResult:
        """Delete rows matching `eq` and return the rows actually removed.

        A delete that matches nothing, or that row policies block, is not an
        error to the store: it comes back as an empty list.
        """
        result = await self._send("DELETE", f"/rest/v1/{table}", operation=f"delete:{table}",
                                  params=self._filters(eq), headers=self._headers(Prefer="return=representation"))
        if result.ok and result.data is None:
            result.data = []
        return result

    # ---- auth operations ------------------------------------------------------

    async def sign_up(self, email: str, password: str, display_name: str) -> BaaSResult:
        body = {"email": email, "password": password, "data": {"display_name": display_name}}
        return await self._send("POST", "/auth/v1/signup", operation="auth:signup",
                                json=body, headers=self._headers())

    async def sign_in_with_password(self, email: str, password: str) -> BaaSResult:
        return await self._send("POST", "/auth/v1/token", operation="auth:signin",
                                params=[("grant_type", "password")],
                                json={"email": email, "password": password},
                                headers=self._headers())

    async def refresh_session(self, refresh_token: str) -> BaaSResult:
        return await self._send("POST", "/auth/v1/token", operation="auth:refresh",
                                params=[("grant_type", "refresh_token")],
                                json={"refresh_token": refresh_token},
                                headers=self._headers())

    async def sign_out(self, access_token: str) -> BaaSResult:
        return await self._send("POST", "/auth/v1/logout", operation="auth:signout",
                                headers=self._headers(access_token))

    async def get_user(self, access_token: str) -> BaaSResult:
        return await self._send("GET", "/auth/v1/user", operation="auth:user",
                                headers=self._headers(access_token))

    def oauth_url(self, provider: str, redirect_to: str) -> str:
        """Build the redirect URL that starts an OAuth sign-in."""
        return f"{self.url}/auth/v1/authorize?" + urlencode({"provider": provider, "redirect_to": redirect_to})
