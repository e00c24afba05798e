from datetime import datetime, timedelta, timezone

import pytest

from siwe_auth.services.route_guard import GuardState, RouteGuard
from siwe_auth.services.session_tokens import SessionTokenService

ADDRESS = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def tokens():
    return SessionTokenService("test-secret-which-is-long-enough-for-hs256")


@pytest.fixture
def guard(tokens):
    return RouteGuard(["/profile", "/settings/"], "/", tokens)


class TestRouteGuard:
    """Tests for per-path session checks"""

    @pytest.mark.parametrize("path", ["/profile", "/profile/", "/profile/edit", "/settings"])
    def test_protected_paths(self, guard, path):
        assert guard.is_protected(path)

    @pytest.mark.parametrize("path", ["/", "/profiles", "/about", "/api/v1/profile", "/users/abc123"])
    def test_unprotected_paths(self, guard, path):
        assert not guard.is_protected(path)

    def test_unprotected_path_is_allowed_without_token(self, guard):
        decision = guard.check("/about", None)

        assert decision.state == GuardState.ALLOWED
        assert decision.redirect_to is None

    def test_protected_path_without_token_redirects(self, guard):
        decision = guard.check("/profile", None)

        assert decision.state == GuardState.DENIED
        assert decision.redirect_to == "/"

    def test_protected_path_with_valid_token(self, guard, tokens):
        decision = guard.check("/profile/edit", tokens.issue(ADDRESS, "111111"))

        assert decision.state == GuardState.ALLOWED
        assert decision.claims.address == ADDRESS

    def test_protected_path_with_expired_token(self, guard, tokens):
        token = tokens.issue(ADDRESS, "111111", now=datetime.now(timezone.utc) - timedelta(days=91))

        assert guard.check("/profile", token).state == GuardState.DENIED

    def test_protected_path_with_forged_token(self, guard):
        forged = SessionTokenService("another-secret-of-sufficient-length").issue(ADDRESS, "111111")

        assert guard.check("/settings", forged).state == GuardState.DENIED


class TestRouteGuardMiddleware:
    """The guard wired in front of the application routes"""

    @pytest.fixture
    def page_client(self, app, client):
        @app.get("/profile")
        def profile_page():
            return {"page": "profile"}

        return client

    def test_redirects_to_landing_without_session(self, page_client):
        response = page_client.get("/profile", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/"

    def test_serves_page_with_session_cookie(self, page_client, container, settings):
        page_client.cookies.set(settings.session_cookie_name, container.tokens.issue(ADDRESS, "111111"))

        response = page_client.get("/profile")

        assert response.status_code == 200
        assert response.json() == {"page": "profile"}

    def test_serves_page_with_bearer_token(self, page_client, container):
        token = container.tokens.issue(ADDRESS, "111111")

        response = page_client.get("/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200

    def test_api_routes_are_not_redirected(self, page_client):
        response = page_client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
