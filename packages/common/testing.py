"""In-memory stand-in for `BaaSClient` used by the service tests.

Mirrors the client's async interface and result shapes, stores rows in
dicts, and evaluates an optional row-level policy callable so tests can
simulate denied writes and read-back denials the way the real store reports
them.
"""

from __future__ import annotations

import copy
import itertools
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from .baas import BaaSError, BaaSResult, INSUFFICIENT_PRIVILEGE, NO_ROWS, UNIQUE_VIOLATION, Search

# policy(op, table, row, user_id) -> allowed
Policy = Callable[[str, str, Mapping[str, Any], Optional[str]], bool]

DEFAULT_UNIQUE = {
    "languages": [("owner_id", "name")],
    "language_collaborators": [("language_id", "user_id")],
    "friendships": [("user_id_1", "user_id_2")],
}

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _no_rows() -> BaaSError:
    return BaaSError(code=NO_ROWS, message="JSON object requested, multiple (or no) rows returned",
                     details="The result contains 0 rows", status=406)


def _denied(table: str) -> BaaSError:
    return BaaSError(code=INSUFFICIENT_PRIVILEGE,
                     message=f'new row violates row-level security policy for table "{table}"',
                     status=403)


class FakeBaaS:
    """Dict-backed BaaS double sharing one store across `with_token` views."""

    def __init__(
        self,
        user_id: str | None = None,
        policy: Policy | None = None,
        unique: Mapping[str, Sequence[tuple[str, ...]]] | None = None,
        _shared: "FakeBaaS | None" = None,
    ) -> None:
        self.user_id = user_id
        if _shared is not None:
            self._root = _shared._root
            return
        self._root = self
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.policy = policy
        self.unique = dict(DEFAULT_UNIQUE if unique is None else unique)
        self.calls: list[tuple[str, str, Any]] = []
        self.failures: dict[tuple[str, str], list[BaaSError]] = {}
        self.deny_read_back: set[str] = set()
        self.users: dict[str, dict[str, Any]] = {}
        self.tokens: dict[str, str] = {}
        self.auto_confirm = False
        self._clock = itertools.count(1)

    # ---- test helpers ---------------------------------------------------------

    def as_user(self, user_id: str | None) -> "FakeBaaS":
        """Return a view acting as `user_id` over the same store."""
        return FakeBaaS(user_id=user_id, _shared=self._root)

    def with_token(self, access_token: str | None) -> "FakeBaaS":
        return self.as_user(self._root.tokens.get(access_token or ""))

    def fail(self, op: str, table: str, error: BaaSError, times: int = 1) -> None:
        """Make the next `times` calls of `op` on `table` return `error`."""
        self._root.failures.setdefault((op, table), []).extend([error] * times)

    def seed(self, table: str, *rows: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Insert rows directly, bypassing policy and call logging."""
        stored = [self._stamp(table, dict(r)) for r in rows]
        self._root.tables.setdefault(table, []).extend(stored)
        return copy.deepcopy(stored)

    def rows(self, table: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self._root.tables.get(table, []))

    def calls_of(self, op: str, table: str | None = None) -> list[tuple[str, str, Any]]:
        return [c for c in self._root.calls if c[0] == op and (table is None or c[1] == table)]

    async def aclose(self) -> None:
        return None

    # ---- internals ------------------------------------------------------------

    def _now(self) -> str:
        return (_EPOCH + timedelta(seconds=next(self._root._clock))).isoformat()

    def _stamp(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        row.setdefault("id", str(uuid.uuid4()))
        now = self._now()
        ts_field = "timestamp" if table == "activity" else "created_at"
        row.setdefault(ts_field, now)
        if table == "languages":
            row.setdefault("updated_at", row.get("created_at", now))
        return row

    def _allowed(self, op: str, table: str, row: Mapping[str, Any]) -> bool:
        policy = self._root.policy
        return policy is None or policy(op, table, row, self.user_id)

    def _take_failure(self, op: str, table: str) -> BaaSError | None:
        queue = self._root.failures.get((op, table))
        return queue.pop(0) if queue else None

    @staticmethod
    def _match(row: Mapping[str, Any], eq: Mapping[str, Any] | None, in_: Mapping[str, Iterable[Any]] | None) -> bool:
        for col, value in (eq or {}).items():
            if row.get(col) != value:
                return False
        for col, values in (in_ or {}).items():
            if row.get(col) not in list(values):
                return False
        return True

    def _violates_unique(self, table: str, row: Mapping[str, Any], ignore_id: Any = None) -> bool:
        for cols in self._root.unique.get(table, []):
            key = tuple(row.get(c) for c in cols)
            for other in self._root.tables.get(table, []):
                if other.get("id") == ignore_id:
                    continue
                if tuple(other.get(c) for c in cols) == key:
                    return True
        return False

    def _read_back(self, table: str, rows: list[dict[str, Any]], single: bool) -> BaaSResult:
        visible = [copy.deepcopy(r) for r in rows
                   if table not in self._root.deny_read_back and self._allowed("select", table, r)]
        if single:
            if len(visible) != 1:
                return BaaSResult(error=_no_rows())
            return BaaSResult(data=visible[0])
        return BaaSResult(data=visible)

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
        self._root.calls.append(("select", table, {"eq": dict(eq or {}), "in": dict(in_ or {}), "gte": dict(gte or {})}))
        failure = self._take_failure("select", table)
        if failure:
            return BaaSResult(error=failure)
        rows = [r for r in self._root.tables.get(table, [])
                if self._match(r, eq, in_) and self._allowed("select", table, r)]
        for col, bound in (gte or {}).items():
            rows = [r for r in rows if r.get(col) is not None and r[col] >= bound]
        if search is not None:
            term = search.term.lower()
            rows = [r for r in rows if any(term in str(r.get(c) or "").lower() for c in search.columns)]
        if order:
            rows = sorted(rows, key=lambda r: (r.get(order) is None, "" if r.get(order) is None else r.get(order)),
                          reverse=not ascending)
        total = len(rows)
        if range_ is not None:
            rows = rows[range_[0]:range_[1] + 1]
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        rows = copy.deepcopy(rows)
        if single:
            if len(rows) != 1:
                return BaaSResult(error=_no_rows())
            return BaaSResult(data=rows[0])
        return BaaSResult(data=rows, count=total if count else None)

    async def insert(self, table: str, rows: Mapping[str, Any] | Sequence[Mapping[str, Any]], *, single: bool = True) -> BaaSResult:
        payload = [dict(rows)] if isinstance(rows, Mapping) else [dict(r) for r in rows]
        self._root.calls.append(("insert", table, copy.deepcopy(payload)))
        failure = self._take_failure("insert", table)
        if failure:
            return BaaSResult(error=failure)
        for row in payload:
            if not self._allowed("insert", table, row):
                return BaaSResult(error=_denied(table))
            if self._violates_unique(table, row):
                return BaaSResult(error=BaaSError(code=UNIQUE_VIOLATION,
                                                  message=f'duplicate key value violates unique constraint on "{table}"',
                                                  status=409))
        stored = [self._stamp(table, row) for row in payload]
        self._root.tables.setdefault(table, []).extend(stored)
        return self._read_back(table, stored, single)

    async def update(self, table: str, values: Mapping[str, Any], *, eq: Mapping[str, Any], single: bool = True) -> BaaSResult:
        self._root.calls.append(("update", table, {"values": copy.deepcopy(dict(values)), "eq": dict(eq)}))
        failure = self._take_failure("update", table)
        if failure:
            return BaaSResult(error=failure)
        touched = []
        for row in self._root.tables.get(table, []):
            if self._match(row, eq, None) and self._allowed("update", table, row):
                candidate = {**row, **values}
                if self._violates_unique(table, candidate, ignore_id=row.get("id")):
                    return BaaSResult(error=BaaSError(code=UNIQUE_VIOLATION, message="duplicate key value", status=409))
                row.update(copy.deepcopy(dict(values)))
                if table == "languages" and "updated_at" not in values:
                    row["updated_at"] = self._now()
                touched.append(row)
        return self._read_back(table, touched, single)

    async def delete(self, table: str, *, eq: Mapping[str, Any]) -> BaaSResult:
        self._root.calls.append(("delete", table, {"eq": dict(eq)}))
        failure = self._take_failure("delete", table)
        if failure:
            return BaaSResult(error=failure)
        kept, removed = [], []
        for row in self._root.tables.get(table, []):
            if self._match(row, eq, None) and self._allowed("delete", table, row):
                removed.append(row)
                continue
            kept.append(row)
        self._root.tables[table] = kept
        return BaaSResult(data=copy.deepcopy(removed))

    # ---- auth operations ------------------------------------------------------

    def _auth_user(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return {"id": record["id"], "email": record["email"],
                "user_metadata": {"display_name": record.get("display_name")}}

    def _issue(self, record: Mapping[str, Any]) -> dict[str, Any]:
        access, refresh = f"at-{uuid.uuid4().hex}", f"rt-{uuid.uuid4().hex}"
        self._root.tokens[access] = record["id"]
        self._root.tokens[refresh] = record["id"]
        return {"access_token": access, "refresh_token": refresh, "expires_in": 3600,
                "expires_at": 1_900_000_000, "user": self._auth_user(record)}

    async def sign_up(self, email: str, password: str, display_name: str) -> BaaSResult:
        self._root.calls.append(("auth", "signup", email))
        if email in self._root.users:
            return BaaSResult(error=BaaSError(code="user_already_exists", message="User already registered", status=422))
        record = {"id": str(uuid.uuid4()), "email": email, "password": password,
                  "display_name": display_name, "confirmed": self._root.auto_confirm}
        self._root.users[email] = record
        if record["confirmed"]:
            return BaaSResult(data=self._issue(record))
        return BaaSResult(data=self._auth_user(record))

    async def sign_in_with_password(self, email: str, password: str) -> BaaSResult:
        record = self._root.users.get(email)
        if not record or record["password"] != password:
            return BaaSResult(error=BaaSError(code="invalid_credentials", message="Invalid login credentials", status=400))
        if not record["confirmed"]:
            return BaaSResult(error=BaaSError(code="email_not_confirmed", message="Email not confirmed", status=400))
        return BaaSResult(data=self._issue(record))

    async def refresh_session(self, refresh_token: str) -> BaaSResult:
        user_id = self._root.tokens.pop(refresh_token, None)
        record = next((u for u in self._root.users.values() if u["id"] == user_id), None)
        if record is None:
            return BaaSResult(error=BaaSError(code="refresh_token_not_found", message="Invalid Refresh Token", status=400))
        return BaaSResult(data=self._issue(record))

    async def sign_out(self, access_token: str) -> BaaSResult:
        self._root.tokens.pop(access_token, None)
        return BaaSResult(data=None)

    async def get_user(self, access_token: str) -> BaaSResult:
        user_id = self._root.tokens.get(access_token)
        record = next((u for u in self._root.users.values() if u["id"] == user_id), None)
        if record is None:
            return BaaSResult(error=BaaSError(code="bad_jwt", message="invalid JWT", status=401))
        return BaaSResult(data=self._auth_user(record))

    def oauth_url(self, provider: str, redirect_to: str) -> str:
        return f"https://baas.test/auth/v1/authorize?provider={provider}&redirect_to={redirect_to}"
