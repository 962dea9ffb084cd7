"""Tests for session tokens and the access-control guard."""

from datetime import timedelta

import pytest
from jose import jwt

from app.services.auth import TokenClaims, has_role, issue_token, require_self, verify_token
from app.utils.base import Role
from app.utils.config import settings
from app.utils.errors import Forbidden, InvalidCredential, Unauthenticated

from conftest import login, make_user


class TestTokens:
    def test_round_trip_keeps_claims(self) -> None:
        token = issue_token(TokenClaims(email="a@example.com", name="A", role="moderator"))
        claims = verify_token(token)
        assert claims.email == "a@example.com"
        assert claims.name == "A"
        assert claims.role == "moderator"

    def test_default_lifetime_is_session_hours(self) -> None:
        claims = verify_token(issue_token(TokenClaims(email="a@example.com")))
        assert claims.exp - claims.iat == settings.session_token_expires_hours * 3600

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token) -> None:
        with pytest.raises(Unauthenticated):
            verify_token(token)

    def test_expired_token(self) -> None:
        token = issue_token(TokenClaims(email="a@example.com"), expires_delta=timedelta(seconds=-10))
        with pytest.raises(InvalidCredential):
            verify_token(token)

    def test_foreign_signature(self) -> None:
        token = jwt.encode({"email": "a@example.com", "typ": "access"}, "other-secret",
                           algorithm=settings.jwt_algorithm)
        with pytest.raises(InvalidCredential):
            verify_token(token)

    def test_garbage(self) -> None:
        with pytest.raises(InvalidCredential):
            verify_token("not.a.jwt")

    def test_wrong_token_type(self) -> None:
        token = jwt.encode({"email": "a@example.com", "typ": "refresh"}, settings.jwt_secret_key,
                           algorithm=settings.jwt_algorithm)
        with pytest.raises(InvalidCredential):
            verify_token(token)


class TestGuard:
    def test_require_self_matches_case_insensitively(self) -> None:
        require_self(TokenClaims(email="a@example.com"), "A@Example.com")

    @pytest.mark.parametrize("role", Role.values())
    def test_require_self_denies_others_regardless_of_role(self, role: str) -> None:
        with pytest.raises(Forbidden):
            require_self(TokenClaims(email="a@example.com", role=role), "b@example.com")

    def test_role_from_token_snapshot(self) -> None:
        make_user("mod@example.com", role="none")
        claims = TokenClaims(email="mod@example.com", role="moderator")
        assert has_role(claims, Role.MODERATOR)
        # The stored role wins when a fresh check is requested
        assert not has_role(claims, Role.MODERATOR, fresh=True)


class TestSessionRoutes:
    def test_register_is_idempotent(self, client) -> None:
        first = client.post("/api/users", json={"email": "New@Example.com", "name": "New"})
        second = client.post("/api/users", json={"email": "new@example.com", "name": "Other"})
        assert first.status_code == 200 and first.json() == {"inserted": True}
        assert second.json() == {"inserted": False}

    def test_jwt_sets_cookie_and_authenticates(self, client) -> None:
        client.post("/api/users", json={"email": "a@example.com", "name": "A"})
        response = client.post("/api/auth/jwt", json={"email": "a@example.com"})
        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=strict" in set_cookie

        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["email"] == "a@example.com"
        assert me.json()["role"] == "none"

    def test_jwt_for_unknown_user(self, client) -> None:
        response = client.post("/api/auth/jwt", json={"email": "ghost@example.com"})
        assert response.status_code == 404
        assert response.json()["kind"] == "NotFound"

    def test_logout_clears_cookie_only(self, client) -> None:
        make_user("a@example.com")
        client.post("/api/auth/jwt", json={"email": "a@example.com"})
        token = client.cookies.get(settings.token_cookie_name)

        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert settings.token_cookie_name in response.headers["set-cookie"]
        # Stateless tokens stay valid until expiry
        assert verify_token(token).email == "a@example.com"

    def test_unauthenticated_and_invalid(self, client) -> None:
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"kind": "Unauthenticated", "message": "Access denied"}

        client.cookies.set(settings.token_cookie_name, "tampered")
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["kind"] == "InvalidCredential"


class TestRoleManagement:
    def test_role_lookup_is_self_only(self, client) -> None:
        make_user("a@example.com", role="moderator")
        login(client, "a@example.com")
        response = client.get("/api/users/a@example.com/role")
        assert response.status_code == 200
        assert response.json()["moderator"] is True
        assert response.json()["admin"] is False

        assert client.get("/api/users/b@example.com/role").status_code == 403

    def test_admin_changes_role_with_fresh_check(self, client) -> None:
        make_user("admin@example.com", role="admin")
        make_user("a@example.com")
        login(client, "admin@example.com", role="admin")

        response = client.patch("/api/users/a@example.com/role", json={"role": "moderator"})
        assert response.status_code == 200
        assert client.get("/api/users").status_code == 200

    def test_stale_admin_token_cannot_change_roles(self, client) -> None:
        make_user("former@example.com", role="none")
        make_user("a@example.com")
        login(client, "former@example.com", role="admin")
        response = client.patch("/api/users/a@example.com/role", json={"role": "admin"})
        assert response.status_code == 403
        assert response.json()["kind"] == "Forbidden"

    def test_moderator_cannot_make_admins(self, client) -> None:
        make_user("mod@example.com", role="moderator")
        login(client, "mod@example.com", role="moderator")
        assert client.patch("/api/users/mod@example.com/role", json={"role": "admin"}).status_code == 403

    def test_invalid_role_value(self, client) -> None:
        make_user("admin@example.com", role="admin")
        login(client, "admin@example.com", role="admin")
        response = client.patch("/api/users/admin@example.com/role", json={"role": "owner"})
        assert response.status_code == 422
        assert response.json()["kind"] == "InvalidInput"

    def test_role_change_applies_from_next_token(self, client) -> None:
        make_user("admin@example.com", role="admin")
        make_user("a@example.com")
        client.post("/api/auth/jwt", json={"email": "a@example.com"})
        assert client.get("/api/products/reported").status_code == 403

        old_cookie = client.cookies.get(settings.token_cookie_name)
        login(client, "admin@example.com", role="admin")
        client.patch("/api/users/a@example.com/role", json={"role": "moderator"})

        client.cookies.clear()
        client.cookies.set(settings.token_cookie_name, old_cookie)
        assert client.get("/api/products/reported").status_code == 403
        client.cookies.clear()
        client.post("/api/auth/jwt", json={"email": "a@example.com"})
        assert client.get("/api/products/reported").status_code == 200
