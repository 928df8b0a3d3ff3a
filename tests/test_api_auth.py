"""API tests for registration, sign-in, tokens and profiles."""

import pytest


async def register(client, email="jane.doe@example.com", password="s3cretpass", name="Jane"):
    return await client.post(
        "/api/auth/register", json={"name": name, "email": email, "password": password}
    )


class TestRegister:
    """Tests for POST /api/auth/register."""

    async def test_register(self, client):
        response = await register(client)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user"]["email"] == "jane.doe@example.com"
        assert data["user"]["username"] == "janedoe"
        assert data["accessToken"]
        assert data["refreshToken"]
        assert "hashedPassword" not in data["user"]

    async def test_token_identifies_user(self, client):
        token = (await register(client)).json()["data"]["accessToken"]

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.json()["data"]["user"]["name"] == "Jane"

    async def test_username_collisions_get_numbered(self, client):
        await register(client, email="jane@example.com")
        second = await register(client, email="jane@other.org")
        third = await register(client, email="JANE@third.net")

        assert second.json()["data"]["user"]["username"] == "jane1"
        assert third.json()["data"]["user"]["username"] == "jane2"

    async def test_duplicate_email(self, client):
        await register(client)
        response = await register(client, email="Jane.Doe@Example.com")

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists with this email"

    @pytest.mark.parametrize(
        "body",
        [
            {"name": "Jane", "email": "not-an-email", "password": "s3cretpass"},
            {"name": "Jane", "email": "jane@example.com", "password": "short"},
            {"email": "jane@example.com", "password": "s3cretpass"},
        ],
    )
    async def test_invalid_input(self, client, body):
        response = await client.post("/api/auth/register", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"


class TestLogin:
    """Tests for login, refresh and logout."""

    async def test_login(self, client):
        await register(client)

        response = await client.post(
            "/api/auth/login", json={"email": "jane.doe@example.com", "password": "s3cretpass"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["accessToken"]

    @pytest.mark.parametrize(
        "email,password",
        [("jane.doe@example.com", "wrong-password"), ("nobody@example.com", "s3cretpass")],
    )
    async def test_invalid_credentials(self, client, email, password):
        await register(client)

        response = await client.post("/api/auth/login", json={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    async def test_refresh_rotates(self, client):
        old = (await register(client)).json()["data"]["refreshToken"]

        rotated = await client.post("/api/auth/refresh", json={"refreshToken": old})
        reused = await client.post("/api/auth/refresh", json={"refreshToken": old})

        assert rotated.status_code == 200
        assert rotated.json()["data"]["refreshToken"] != old
        assert reused.status_code == 401
        assert reused.json()["message"] == "Invalid refresh token"

    async def test_refresh_rejects_access_token(self, client):
        access = (await register(client)).json()["data"]["accessToken"]

        response = await client.post("/api/auth/refresh", json={"refreshToken": access})
        assert response.status_code == 401

    async def test_logout_revokes_refresh_token(self, client):
        data = (await register(client)).json()["data"]
        headers = {"Authorization": f"Bearer {data['accessToken']}"}

        await client.post("/api/auth/logout", headers=headers)
        response = await client.post(
            "/api/auth/refresh", json={"refreshToken": data["refreshToken"]}
        )

        assert response.status_code == 401

    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"


class TestProfiles:
    """Tests for /api/users."""

    async def test_email_only_for_owner(self, client, create_user, auth_headers):
        user = await create_user("cook@example.com")

        public = await client.get("/api/users/cook")
        own = await client.get("/api/users/cook", headers=auth_headers(user))

        assert "email" not in public.json()["data"]["user"]
        assert own.json()["data"]["user"]["email"] == "cook@example.com"

    async def test_unknown_user(self, client):
        response = await client.get("/api/users/ghost")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    async def test_update_profile(self, client, create_user, auth_headers):
        user = await create_user("cook@example.com")

        response = await client.put(
            "/api/users/profile",
            json={"bio": "Loves soup", "location": "Oslo"},
            headers=auth_headers(user),
        )

        updated = response.json()["data"]["user"]
        assert updated["bio"] == "Loves soup"
        assert updated["location"] == "Oslo"
        assert updated["name"] == "Home Cook"

    async def test_user_recipes(self, client, create_user, create_recipe):
        user = await create_user("cook@example.com")
        other = await create_user("other@example.com")
        await create_recipe(user, "Mine")
        await create_recipe(other, "Theirs")

        response = await client.get("/api/users/cook/recipes")

        assert [r["title"] for r in response.json()["data"]["recipes"]] == ["Mine"]
