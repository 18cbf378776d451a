"""Tests for the BaaS HTTP client against a mocked transport."""

import json

import httpx
import pytest

from packages.common.baas import NETWORK_ERROR, NO_ROWS, BaaSClient, Search


def _client(handler, token=None) -> BaaSClient:
    return BaaSClient("https://baas.test/", "anon", access_token=token, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_select_builds_postgrest_query() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=[{"id": "w1"}], headers={"Content-Range": "0-0/42"})

    async with _client(handler, token="user-jwt") as client:
        res = await client.select(
            "dictionaries",
            eq={"language_id": "l1", "approval_status": "approved"},
            search=Search(("word", "translation"), "sun"),
            order="created_at",
            range_=(20, 29),
            count=True,
        )
    request = seen["request"]
    params = request.url.params
    if request.url.path != "/rest/v1/dictionaries":
        pytest.fail(f"Unexpected path {request.url.path}")
    if params["language_id"] != "eq.l1" or params["approval_status"] != "eq.approved":
        pytest.fail(f"Bad filters {params}")
    if params["or"] != "(word.ilike.*sun*,translation.ilike.*sun*)":
        pytest.fail(f"Bad search {params['or']}")
    if params["order"] != "created_at.desc" or params["offset"] != "20" or params["limit"] != "10":
        pytest.fail(f"Bad paging {params}")
    if request.headers["Authorization"] != "Bearer user-jwt" or request.headers["apikey"] != "anon":
        pytest.fail("Auth headers missing")
    if request.headers["Prefer"] != "count=exact":
        pytest.fail("Count header missing")
    if res.data != [{"id": "w1"}] or res.count != 42:
        pytest.fail(f"Unexpected result {res}")


@pytest.mark.asyncio
async def test_error_body_becomes_baas_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.headers.get("Accept") != "application/vnd.pgrst.object+json":
            return httpx.Response(500)
        return httpx.Response(406, json={"code": NO_ROWS, "message": "0 rows", "details": "none"})

    async with _client(handler) as client:
        res = await client.select("languages", eq={"id": "missing"}, single=True)
    if res.ok or not res.error.is_no_rows or res.error.status != 406:
        pytest.fail(f"Expected no-rows error, got {res}")


@pytest.mark.asyncio
async def test_denial_is_classified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"code": "42501", "message": "row-level security"})

    async with _client(handler) as client:
        res = await client.update("languages", {"name": "x"}, eq={"id": "l1"})
    if res.error is None or not res.error.is_denied:
        pytest.fail(f"Expected a denial, got {res}")


@pytest.mark.asyncio
async def test_transport_failure_is_a_result_not_an_exception() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        res = await client.select("languages")
    if res.error is None or res.error.code != NETWORK_ERROR:
        pytest.fail(f"Expected network error result, got {res}")


@pytest.mark.asyncio
async def test_insert_sends_representation_and_list_body() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["prefer"] = request.headers.get("Prefer")
        return httpx.Response(201, json={"id": "l1", "name": "Elvish"})

    async with _client(handler) as client:
        res = await client.insert("languages", {"name": "Elvish"})
    if seen["body"] != [{"name": "Elvish"}] or seen["prefer"] != "return=representation":
        pytest.fail(f"Unexpected request {seen}")
    if res.data != {"id": "l1", "name": "Elvish"}:
        pytest.fail(f"Unexpected result {res}")


@pytest.mark.asyncio
async def test_delete_with_empty_body_and_in_filter() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        if request.method == "DELETE":
            seen["prefer"] = request.headers.get("Prefer")
        return httpx.Response(204)

    async with _client(handler) as client:
        res = await client.delete("languages", eq={"id": "l1"})
        rows = await client.select("languages", in_={"id": ["l1", "l2"]})
    if not res.ok or res.data != [] or seen["prefer"] != "return=representation":
        pytest.fail(f"An empty delete should read as no rows removed, got {res}")
    if rows.data != [] or seen["url"].params["id"] != "in.(l1,l2)":
        pytest.fail(f"Unexpected select {rows} {seen['url']}")


@pytest.mark.asyncio
async def test_password_grant_and_oauth_url() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(400, json={"error_code": "invalid_credentials", "msg": "Invalid login credentials"})

    async with _client(handler) as client:
        res = await client.sign_in_with_password("a@b.c", "wrong")
        url = client.oauth_url("google", "http://localhost:5173/auth/callback")
    if seen["request"].url.params["grant_type"] != "password":
        pytest.fail("Password grant type missing")
    if res.error is None or res.error.code != "invalid_credentials":
        pytest.fail(f"Unexpected result {res}")
    if not url.startswith("https://baas.test/auth/v1/authorize?provider=google&redirect_to="):
        pytest.fail(f"Unexpected url {url}")


@pytest.mark.asyncio
async def test_delete_returns_removed_rows() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"id": "l1"}])

    async with _client(handler) as client:
        res = await client.delete("languages", eq={"id": "l1"})
    if res.data != [{"id": "l1"}]:
        pytest.fail(f"Unexpected delete result {res}")


@pytest.mark.asyncio
async def test_token_clients_share_the_pool() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json=[])

    root = _client(handler)
    caller = root.with_token("user-jwt")
    if caller._http is not root._http:
        pytest.fail("Token clients must reuse the parent's connection pool")
    await caller.select("languages", gte={"updated_at": "2024-03-04T00:00:00+00:00"})
    await caller.aclose()
    if root._http.is_closed:
        pytest.fail("Closing a token client must leave the shared pool open")
    await root.select("languages")
    await root.aclose()
    if seen != ["Bearer user-jwt", "Bearer anon"] or not root._http.is_closed:
        pytest.fail(f"Unexpected auth headers {seen}")


@pytest.mark.asyncio
async def test_lower_bound_filter() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = request.url.params
        return httpx.Response(200, json=[])

    async with _client(handler) as client:
        await client.select("activity", eq={"user_id": "u1"}, gte={"timestamp": "2024-03-04T00:00:00+00:00"})
    if seen["params"]["timestamp"] != "gte.2024-03-04T00:00:00+00:00":
        pytest.fail(f"Unexpected filter {seen['params']}")
