# services/users/routes.py
from typing import Any

from fastapi import APIRouter, Depends

from packages.common.auth import User, get_current_user
from packages.common.deps import get_client
from packages.schemas.user import SettingsUpdate, UserProfile

from .service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(client: Any = Depends(get_client)) -> UserService:
    return UserService(client)


@router.get("/me", response_model=UserProfile)
async def read_me(user: User = Depends(get_current_user), users: UserService = Depends(get_user_service)) -> UserProfile:
    return await users.get_profile(user.sub)


@router.patch("/me", response_model=UserProfile)
async def update_me(
    body: SettingsUpdate,
    user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfile:
    """Settings screen: display name, theme, default depth and activity visibility."""
    return await users.update_settings(user.sub, body)
