# services/community/routes.py
from typing import Any, Literal

from fastapi import APIRouter, Depends

from packages.common.auth import User, get_current_user
from packages.common.deps import get_client
from packages.schemas.community import Friendship

from .service import FriendshipService

router = APIRouter(prefix="/friends", tags=["community"])


def get_friendship_service(client: Any = Depends(get_client)) -> FriendshipService:
    return FriendshipService(client)


@router.get("", response_model=list[Friendship])
async def list_friends(
    status: Literal["accepted", "pending", "blocked"] = "accepted",
    user: User = Depends(get_current_user),
    friends: FriendshipService = Depends(get_friendship_service),
) -> list[Friendship]:
    return await friends.list_friends(user.sub, status)


@router.post("/{user_id}", response_model=Friendship)
async def send_request(
    user_id: str,
    user: User = Depends(get_current_user),
    friends: FriendshipService = Depends(get_friendship_service),
) -> Friendship:
    return await friends.request(user.sub, user_id)


@router.post("/{user_id}/accept", response_model=Friendship)
async def accept_request(
    user_id: str,
    user: User = Depends(get_current_user),
    friends: FriendshipService = Depends(get_friendship_service),
) -> Friendship:
    return await friends.accept(user.sub, user_id)


@router.post("/{user_id}/block", response_model=Friendship)
async def block_user(
    user_id: str,
    user: User = Depends(get_current_user),
    friends: FriendshipService = Depends(get_friendship_service),
) -> Friendship:
    return await friends.block(user.sub, user_id)
