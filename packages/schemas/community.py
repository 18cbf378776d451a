"""Community schemas: friendships between users."""

from pydantic import BaseModel
from typing import Literal, Optional

FriendshipStatus = Literal["pending", "accepted", "blocked"]


class Friendship(BaseModel):
    """A symmetric friendship pair; `user_id_1` is the requester."""
    id: Optional[str] = None
    user_id_1: str
    user_id_2: str
    status: FriendshipStatus = "pending"
    created_at: Optional[str] = None
    accepted_at: Optional[str] = None

    def other(self, user_id: str) -> str:
        """Return the id on the other side of the pair."""
        return self.user_id_2 if self.user_id_1 == user_id else self.user_id_1
