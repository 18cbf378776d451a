"""Friendships: the symmetric user pairs behind friends-only visibility."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from packages.common.errors import NotFoundError, RemoteError, ValidationError
from packages.schemas.community import Friendship

log = logging.getLogger(__name__)

TABLE = "friendships"


class FriendshipService:
    """Request, accept, block and list friendships through a BaaS client."""

    def __init__(self, client: Any) -> None:
        self.client = client

    async def _pair(self, a: str, b: str) -> Optional[dict]:
        """The row linking a and b in either direction, if any."""
        for first, second in ((a, b), (b, a)):
            res = await self.client.select(TABLE, eq={"user_id_1": first, "user_id_2": second})
            if res.error is not None:
                raise RemoteError("get_friendship", res.error.message, entity_id=a, code=res.error.code)
            if res.data:
                return res.data[0]
        return None

    async def request(self, user_id: str, other_id: str) -> Friendship:
        """Send a friend request; an existing pair is returned unchanged."""
        if user_id == other_id:
            raise ValidationError.single("userId", "You cannot befriend yourself")
        existing = await self._pair(user_id, other_id)
        if existing is not None:
            return Friendship.model_validate(existing)
        res = await self.client.insert(TABLE, {"user_id_1": user_id, "user_id_2": other_id, "status": "pending"})
        if res.error is not None:
            raise RemoteError("request_friendship", res.error.message, entity_id=other_id, code=res.error.code)
        return Friendship.model_validate(res.data)

    async def _set_status(self, row: dict, status: str, **extra: Any) -> Friendship:
        res = await self.client.update(TABLE, {"status": status, **extra}, eq={"id": row["id"]})
        if res.error is not None:
            raise RemoteError(f"friendship_{status}", res.error.message, entity_id=row["id"], code=res.error.code)
        return Friendship.model_validate(res.data)

    async def accept(self, user_id: str, requester_id: str) -> Friendship:
        """Accept a pending request sent by `requester_id` to `user_id`."""
        row = await self._pair(user_id, requester_id)
        if row is None or row["user_id_2"] != user_id or row["status"] != "pending":
            raise NotFoundError("Friend request", requester_id)
        return await self._set_status(row, "accepted", accepted_at=datetime.now(timezone.utc).isoformat())

    async def block(self, user_id: str, other_id: str) -> Friendship:
        """Block `other_id`, creating the pair if it does not exist yet."""
        row = await self._pair(user_id, other_id)
        if row is not None:
            return await self._set_status(row, "blocked")
        res = await self.client.insert(TABLE, {"user_id_1": user_id, "user_id_2": other_id, "status": "blocked"})
        if res.error is not None:
            raise RemoteError("block_user", res.error.message, entity_id=other_id, code=res.error.code)
        return Friendship.model_validate(res.data)

    async def list_friends(self, user_id: str, status: str = "accepted") -> list[Friendship]:
        """Friendships of `user_id` in the given status, from both sides of the pair."""
        out: list[Friendship] = []
        for column in ("user_id_1", "user_id_2"):
            res = await self.client.select(TABLE, eq={column: user_id, "status": status}, order="created_at")
            if res.error is not None:
                raise RemoteError("list_friends", res.error.message, entity_id=user_id, code=res.error.code)
            out.extend(Friendship.model_validate(r) for r in res.data or [])
        return out

    async def are_friends(self, a: Optional[str], b: Optional[str]) -> bool:
        """True when an accepted friendship links a and b. Lookup failures read as False."""
        if not a or not b or a == b:
            return False
        try:
            row = await self._pair(a, b)
        except RemoteError as e:
            log.warning("friendship lookup failed: %s", e.message, extra=e.context())
            return False
        return row is not None and row.get("status") == "accepted"
