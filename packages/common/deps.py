"""FastAPI dependencies wiring the per-request BaaS client and storage."""

from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends

from .auth import User, get_optional_user
from .baas import BaaSClient
from .storage import ObjectStorage


@lru_cache()
def get_root_client() -> BaaSClient:
    """Anon-role client shared by the process; request clients derive from it."""
    return BaaSClient.from_settings()


async def get_client(
    user: User | None = Depends(get_optional_user),
    root: BaaSClient = Depends(get_root_client),
) -> AsyncIterator[BaaSClient]:
    """Client acting as the caller, so the store applies the caller's row policies."""
    client = root.with_token(user.access_token if user else None)
    try:
        yield client
    finally:
        await client.aclose()


@lru_cache()
def get_storage() -> ObjectStorage:
    return ObjectStorage()
