import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_session_from_bearer_token(client: AsyncClient, registered_user, auth_headers):
    response = await client.get("/auth/session", headers=auth_headers(registered_user["token"]))

    assert response.status_code == 200
    assert response.json()["user"]["username"] == "dj_nexus"


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["not-a-jwt", "a.b.c"])
async def test_garbage_token_is_not_a_session(client: AsyncClient, auth_headers, token):
    response = await client.get("/auth/session", headers=auth_headers(token))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_and_clears_cookie(client: AsyncClient, registered_user, auth_headers):
    token = registered_user["token"]

    response = await client.post("/auth/logout", headers=auth_headers(token))

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert "Max-Age=0" in response.headers["set-cookie"]
    assert (await client.get("/auth/session", headers=auth_headers(token))).status_code == 401


@pytest.mark.asyncio
async def test_logout_without_session_succeeds(client: AsyncClient):
    response = await client.post("/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True}


@pytest.mark.asyncio
async def test_logout_only_ends_that_session(client: AsyncClient, registered_user, auth_headers):
    login = await client.post(
        "/auth/login", json={"email": "dj@example.com", "password": registered_user["password"]}
    )
    second_token = login.cookies.get("nexus_session")
    client.cookies.clear()

    await client.post("/auth/logout", headers=auth_headers(registered_user["token"]))

    assert (await client.get("/auth/session", headers=auth_headers(second_token))).status_code == 200
