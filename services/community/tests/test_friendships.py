"""Tests for friendships."""

import pytest

from packages.common.baas import NETWORK_ERROR, BaaSError
from packages.common.errors import NotFoundError, ValidationError
from packages.common.testing import FakeBaaS
from services.community.service import FriendshipService


@pytest.mark.asyncio
async def test_request_accept_and_list_from_both_sides() -> None:
    fake = FakeBaaS()
    svc = FriendshipService(fake)
    pending = await svc.request("u1", "u2")
    if pending.status != "pending" or pending.other("u1") != "u2":
        pytest.fail(f"Unexpected request {pending}")
    again = await svc.request("u2", "u1")
    if again.id != pending.id or len(fake.rows("friendships")) != 1:
        pytest.fail("A reverse request must reuse the existing pair")
    if await svc.are_friends("u1", "u2"):
        pytest.fail("Pending requests are not friendships")
    with pytest.raises(NotFoundError):
        await svc.accept("u1", "u2")
    accepted = await svc.accept("u2", "u1")
    if accepted.status != "accepted" or not accepted.accepted_at:
        pytest.fail(f"Unexpected accept {accepted}")
    if not await svc.are_friends("u2", "u1"):
        pytest.fail("Friendship should be symmetric")
    for user in ("u1", "u2"):
        if [f.id for f in await svc.list_friends(user)] != [pending.id]:
            pytest.fail(f"{user} should see the friendship")


@pytest.mark.asyncio
async def test_block_and_self_request() -> None:
    fake = FakeBaaS()
    svc = FriendshipService(fake)
    with pytest.raises(ValidationError):
        await svc.request("u1", "u1")
    blocked = await svc.block("u1", "u3")
    if blocked.status != "blocked" or await svc.are_friends("u1", "u3"):
        pytest.fail(f"Unexpected block {blocked}")
    await svc.request("u1", "u4")
    if (await svc.block("u4", "u1")).status != "blocked":
        pytest.fail("Blocking an existing pair should update it")
    if len(await svc.list_friends("u1", status="blocked")) != 2:
        pytest.fail("Both blocked pairs should be listed")


@pytest.mark.asyncio
async def test_are_friends_fails_closed() -> None:
    fake = FakeBaaS()
    fake.seed("friendships", {"user_id_1": "u1", "user_id_2": "u2", "status": "accepted"})
    fake.fail("select", "friendships", BaaSError(code=NETWORK_ERROR, message="offline"))
    svc = FriendshipService(fake)
    if await svc.are_friends("u1", "u2"):
        pytest.fail("Lookup failures must read as not friends")
    if await svc.are_friends(None, "u2") or await svc.are_friends("u1", "u1"):
        pytest.fail("Anonymous or self pairs are never friends")
