import json

import httpx
import pytest

from wallet_exchange.providers.supabase_auth import (
    SupabaseAuthClient,
    SupabaseAuthError,
    SupabaseConflictError,
    SupabaseError,
    SupabaseRequestError,
)


def _client(handler) -> SupabaseAuthClient:
    return SupabaseAuthClient(
        project_url="https://example.supabase.co/",
        service_role_key="service-role",
        anon_key="anon",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_create_user_sends_admin_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["apikey"] = request.headers["apikey"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "user-1"})

    client = _client(handler)
    user = await client.create_user(
        email="wallet-abc@wallet.local",
        password="pw",
        user_metadata={"wallet_address": "W"},
        app_metadata={"provider": "wallet"},
    )
    await client.close()

    assert user == {"id": "user-1"}
    assert seen["url"] == "https://example.supabase.co/auth/v1/admin/users"
    assert seen["auth"] == "Bearer service-role"
    assert seen["apikey"] == "service-role"
    assert seen["body"]["email_confirm"] is True
    assert seen["body"]["user_metadata"] == {"wallet_address": "W"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body",
    [
        (422, {"code": 422, "error_code": "email_exists", "msg": "Email exists"}),
        (422, {"msg": "A user with this email address has already been registered"}),
        (409, {"error_code": "user_already_exists"}),
    ],
)
async def test_create_user_conflict(status, body):
    client = _client(lambda request: httpx.Response(status, json=body))

    with pytest.raises(SupabaseConflictError):
        await client.create_user(email="e@wallet.local", password="pw")


@pytest.mark.asyncio
async def test_generate_magic_link_normalizes_flat_response():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/admin/generate_link"
        assert json.loads(request.content) == {"type": "magiclink", "email": "e@wallet.local"}
        return httpx.Response(200, json={
            "id": "user-1",
            "email": "e@wallet.local",
            "user_metadata": {"wallet_address": "W"},
            "action_link": "https://example.supabase.co/auth/v1/verify?token=x",
            "hashed_token": "hashed",
            "verification_type": "magiclink",
        })

    link = await _client(handler).generate_magic_link("e@wallet.local")

    assert link["hashed_token"] == "hashed"
    assert link["user"]["id"] == "user-1"
    assert link["user"]["user_metadata"] == {"wallet_address": "W"}


@pytest.mark.asyncio
async def test_generate_magic_link_normalizes_nested_response():
    body = {"user": {"id": "user-2"}, "properties": {"hashed_token": "nested"}}

    link = await _client(lambda request: httpx.Response(200, json=body)).generate_magic_link("e@x")

    assert link == {"user": {"id": "user-2"}, "hashed_token": "nested"}


@pytest.mark.asyncio
async def test_generate_magic_link_requires_token():
    client = _client(lambda request: httpx.Response(200, json={"id": "user-1"}))

    with pytest.raises(SupabaseRequestError):
        await client.generate_magic_link("e@x")


@pytest.mark.asyncio
async def test_verify_uses_public_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["apikey"] = request.headers["apikey"]
        seen["has_auth"] = "authorization" in request.headers
        return httpx.Response(200, json={"access_token": "provider.jwt.token", "token_type": "bearer"})

    session = await _client(handler).verify_magic_link("hashed")

    assert session["access_token"] == "provider.jwt.token"
    assert seen == {"path": "/auth/v1/verify", "apikey": "anon", "has_auth": False}


@pytest.mark.asyncio
async def test_rejected_key_raises_auth_error():
    client = _client(lambda request: httpx.Response(401, json={"msg": "Invalid API key"}))

    with pytest.raises(SupabaseAuthError):
        await client.update_user("user-1", user_metadata={})


@pytest.mark.asyncio
async def test_server_error_and_transport_failure_are_request_errors():
    failing = _client(lambda request: httpx.Response(500, text="oops"))
    with pytest.raises(SupabaseRequestError):
        await failing.verify_magic_link("hashed")

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SupabaseRequestError) as exc_info:
        await _client(unreachable).create_user(email="e@x", password="pw")
    assert "service-role" not in str(exc_info.value)


def test_requires_configuration():
    with pytest.raises(SupabaseError):
        SupabaseAuthClient(project_url="https://example.supabase.co", service_role_key="")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"user": "user-1", "hashed_token": "hashed"},
        {"user": ["user-1"], "hashed_token": "hashed"},
        {"id": "user-1", "properties": "hashed"},
    ],
)
async def test_generate_magic_link_rejects_unexpected_shapes(body):
    client = _client(lambda request: httpx.Response(200, json=body))

    with pytest.raises(SupabaseRequestError):
        await client.generate_magic_link("e@x")
