"""Tests for the admin auth gate and middleware.

Verifies the three rejection stages, that only mutating requests under
/api/ are gated, and that excluded path matching uses segment boundaries
to prevent accidental auth bypass via similar path prefixes.
"""

import pytest
from fastapi import Request

from portfolio_admin.middleware.admin_auth import (
    ADMIN_COOKIE_NAME,
    EXCLUDED_PATHS,
    AuthorizationResult,
    is_excluded_path,
    requires_admin,
)


@pytest.fixture(autouse=True)
def content_routes(app):
    """Stand-in for the content API the gate protects."""

    @app.get("/api/content")
    async def read_content():
        return {"success": True, "content": "public"}

    @app.put("/api/content")
    async def update_content(request: Request):
        return {"success": True, "editor": request.state.admin_identity}

    @app.delete("/api/content")
    async def delete_content():
        return {"success": True}


def cookie_header(token: str) -> dict[str, str]:
    return {"Cookie": f"{ADMIN_COOKIE_NAME}={token}"}


class TestExcludedPathMatching:
    """Tests for EXCLUDED_PATHS matching logic."""

    def test_exact_excluded_path_matches(self):
        for excluded in EXCLUDED_PATHS:
            assert is_excluded_path(excluded)

    def test_excluded_subpath_matches(self):
        assert is_excluded_path("/api/auth/login")
        assert is_excluded_path("/api/auth/update-credentials")

    def test_similar_prefix_does_not_match(self):
        """Paths with similar prefixes but different segments don't match.

        This is the key security test: /api/authors should NOT match /api/auth.
        """
        for path in ["/api/authors", "/api/auth-admin", "/api/authenticate"]:
            assert not is_excluded_path(path), f"Path '{path}' should NOT be excluded"


class TestRequiresAdmin:
    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_mutating_api_requests(self, method):
        assert requires_admin(method, "/api/projects/1")

    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS"])
    def test_reads_are_public(self, method):
        assert not requires_admin(method, "/api/projects/1")

    def test_auth_endpoints_are_not_gated(self):
        assert not requires_admin("POST", "/api/auth/login")
        assert not requires_admin("POST", "/api/auth/logout")

    def test_non_api_paths_are_not_gated(self):
        assert not requires_admin("POST", "/apiary")
        assert not requires_admin("POST", "/health")

    def test_similar_prefix_is_still_gated(self):
        assert requires_admin("POST", "/api/authors")


@pytest.mark.asyncio
class TestAdminAuthMiddleware:
    async def test_no_cookie(self, async_client):
        response = await async_client.put("/api/content")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Not authenticated"}

    async def test_invalid_token(self, async_client):
        response = await async_client.put("/api/content", headers=cookie_header("not-a-jwt"))

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid token"}

    async def test_token_signed_with_another_secret(self, async_client):
        from portfolio_admin.services.tokens import TokenIssuer

        forged = TokenIssuer("someone-elses-signing-secret-" + "z" * 32).issue("admin@portfolio.com")
        response = await async_client.put("/api/content", headers=cookie_header(forged))

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid token"

    async def test_valid_token_without_session(self, app, async_client):
        token = app.state.auth_service.tokens.issue("admin@portfolio.com")

        response = await async_client.put("/api/content", headers=cookie_header(token))

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Session expired"}

    async def test_superseded_session(self, logged_in_client, admin_credentials):
        old_token = logged_in_client.cookies.get(ADMIN_COOKIE_NAME)
        await logged_in_client.post("/api/auth/login", json=admin_credentials)

        response = await logged_in_client.put("/api/content", headers=cookie_header(old_token))

        assert response.status_code == 401
        assert response.json()["error"] == "Session expired"

    async def test_valid_session(self, logged_in_client):
        response = await logged_in_client.put("/api/content")

        assert response.status_code == 200
        assert response.json() == {"success": True, "editor": "admin@portfolio.com"}

    async def test_delete_is_gated(self, async_client):
        response = await async_client.delete("/api/content")
        assert response.status_code == 401

    async def test_get_passes_without_cookie(self, async_client):
        response = await async_client.get("/api/content")

        assert response.status_code == 200
        assert response.json()["content"] == "public"

    async def test_options_preflight_is_not_gated(self, async_client):
        response = await async_client.options(
            "/api/content",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "PUT",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    async def test_rejection_carries_cors_headers(self, async_client):
        response = await async_client.put(
            "/api/content",
            headers={"Origin": "http://localhost:3000"},
        )

        assert response.status_code == 401
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    async def test_rejection_without_response_is_still_401(self, app, async_client, monkeypatch):
        """Test a rejected result that carries no response cannot fall through."""

        async def reject(request):
            return AuthorizationResult(authenticated=False)

        monkeypatch.setattr(app.state.auth_gate, "authorize", reject)

        response = await async_client.put("/api/content")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Not authenticated"}
