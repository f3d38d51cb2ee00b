"""Integration tests for login and token enforcement."""

import pytest
import pytest_check
from conftest import TEST_PASSWORD
from httpx import AsyncClient

from itemkit.core.config import Settings
from itemkit.core.security import issue_token, now_millis


@pytest.mark.integration
class TestLogin:
    """Test POST /auth/login."""

    async def test_login_sets_token_and_cookie(self, client: AsyncClient) -> None:
        """A correct credential returns the token and sets it as a cookie."""
        response = await client.post("/auth/login", json={"password": TEST_PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        token = body["token"]

        cookie = response.headers["set-cookie"]
        lowered = cookie.lower()
        with pytest_check.check:
            assert cookie.startswith(f"authToken={token}")
        with pytest_check.check:
            assert "httponly" in lowered
        with pytest_check.check:
            assert "samesite=strict" in lowered
        with pytest_check.check:
            assert "max-age=86400" in lowered
        with pytest_check.check:
            assert "; secure" not in lowered

    async def test_issued_token_opens_protected_routes(
        self, client: AsyncClient
    ) -> None:
        """The returned token is accepted as a bearer token."""
        login = await client.post("/auth/login", json={"password": TEST_PASSWORD})
        token = login.json()["token"]

        response = await client.get(
            "/items", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200

    async def test_wrong_password(self, client: AsyncClient) -> None:
        """A mismatch is a 401 without a cookie."""
        response = await client.post("/auth/login", json={"password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid password"}
        assert "set-cookie" not in response.headers

    @pytest.mark.parametrize("payload", [{}, {"password": ""}, {"password": 123}])
    async def test_invalid_body(self, client: AsyncClient, payload: dict) -> None:
        """A missing or malformed credential fails validation."""
        response = await client.post("/auth/login", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request data"
        assert body["details"][0]["path"] == "password"

    async def test_malformed_json(self, client: AsyncClient) -> None:
        """A body that is not JSON fails validation on the body itself."""
        response = await client.post(
            "/auth/login",
            content=b"{password",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["path"] == "body"


@pytest.mark.integration
class TestTokenEnforcement:
    """Test the authentication guard on /items."""

    async def test_missing_token(self, client: AsyncClient) -> None:
        """No header and no cookie is a 401."""
        response = await client.get("/items")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Authentication token missing",
        }

    async def test_invalid_token(self, client: AsyncClient) -> None:
        """A token that does not verify is a 401."""
        response = await client.get(
            "/items", headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid token"

    async def test_expired_token(
        self, client: AsyncClient, test_settings: Settings
    ) -> None:
        """An authentic but stale token is reported as expired."""
        token = issue_token(
            test_settings.jwt_secret.get_secret_value(),
            60,
            issued_at_millis=now_millis() - 2 * 3600 * 1000,
        )

        response = await client.get(
            "/items", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Token expired"

    async def test_cookie_is_accepted(
        self, client: AsyncClient, auth_token: str
    ) -> None:
        """The cookie carries the token when no header is sent."""
        response = await client.get(
            "/items", headers={"Cookie": f"authToken={auth_token}"}
        )

        assert response.status_code == 200

    async def test_header_wins_over_cookie(
        self, client: AsyncClient, auth_token: str
    ) -> None:
        """The Authorization header is checked before the cookie."""
        response = await client.get(
            "/items",
            headers={
                "Authorization": "Bearer not.a.token",
                "Cookie": f"authToken={auth_token}",
            },
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid token"

    async def test_non_bearer_scheme_falls_back_to_cookie(
        self, client: AsyncClient, auth_token: str
    ) -> None:
        """Only Bearer credentials are read from the header."""
        response = await client.get(
            "/items",
            headers={
                "Authorization": "Basic dXNlcjpwYXNz",
                "Cookie": f"authToken={auth_token}",
            },
        )

        assert response.status_code == 200

    async def test_auth_runs_before_validation(self, client: AsyncClient) -> None:
        """An unauthenticated request with bad input is a 401, not a 400."""
        response = await client.get("/items/not-a-number")

        assert response.status_code == 401
