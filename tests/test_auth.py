"""
Tests for authentication, token handling and the authorization policy.
"""
from datetime import timedelta

import pytest
from jose import jwt

from blogapi.auth import (
    Relationship,
    TokenExpired,
    TokenInvalid,
    authorize,
    create_access_token,
    decode_token,
    ensure_owner,
    require_admin,
)
from blogapi.config import get_settings, parse_duration
from blogapi.models.post import Post
from blogapi.responses import ApiException

from conftest import PASSWORD, headers_for


class TestTokens:
    """Test token issuance and verification."""

    def test_token_carries_only_user_id_and_expiry(self, test_user):
        settings = get_settings()
        token = create_access_token(test_user.id)
        claims = jwt.get_unverified_claims(token)
        assert set(claims) == {"sub", "exp"}
        assert decode_token(token, settings) == test_user.id

    def test_expired_token(self):
        token = create_access_token(1, expires_delta=timedelta(seconds=-10))
        with pytest.raises(TokenExpired):
            decode_token(token)

    def test_malformed_token(self):
        with pytest.raises(TokenInvalid):
            decode_token("not-a-jwt")

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "1"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(TokenInvalid):
            decode_token(token)

    def test_non_numeric_subject(self):
        settings = get_settings()
        token = jwt.encode({"sub": "abc"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(TokenInvalid):
            decode_token(token)

    @pytest.mark.parametrize("value,expected", [
        ("7d", timedelta(days=7)),
        ("12h", timedelta(hours=12)),
        ("30m", timedelta(minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("3600", timedelta(seconds=3600)),
    ])
    def test_parse_duration(self, value, expected):
        assert parse_duration(value) == expected

    def test_parse_duration_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_duration("soon")


class TestRequiredAuth:
    """Test the required-auth dependency through a protected endpoint."""

    def test_missing_token(self, client):
        response = client.get("/api/auth/verify")
        assert response.status_code == 401
        assert response.json()["message"] == "Access token required"

    def test_expired_token_is_distinct_from_malformed(self, client, test_user):
        expired = create_access_token(test_user.id, expires_delta=timedelta(seconds=-10))
        response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {expired}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Token expired"
        assert response.json()["error_code"] == "TOKEN_EXPIRED"

        response = client.get("/api/auth/verify", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"
        assert response.json()["error_code"] == "TOKEN_INVALID"

    def test_deleted_user(self, client, db, test_user):
        headers = headers_for(test_user)
        db.delete(test_user)
        db.commit()
        response = client.get("/api/auth/verify", headers=headers)
        assert response.status_code == 401

    def test_inactive_user(self, client, db, test_user):
        headers = headers_for(test_user)
        test_user.is_active = False
        db.commit()
        response = client.get("/api/auth/verify", headers=headers)
        assert response.status_code == 401
        assert response.json()["error_code"] == "USER_NOT_FOUND"

    def test_valid_token(self, client, test_user, auth_headers):
        response = client.get("/api/auth/verify", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert response.json()["user"]["id"] == test_user.id


class TestOptionalAuth:
    """Optional-auth endpoints never reject."""

    def test_no_token_is_anonymous(self, client, make_post):
        post = make_post()
        response = client.get(f"/api/blogs/{post.slug}")
        assert response.status_code == 200
        assert response.json()["blog"]["is_liked"] is False

    @pytest.mark.parametrize("header", [
        "Bearer garbage",
        "Bearer " + create_access_token(1, expires_delta=timedelta(seconds=-10)),
    ])
    def test_bad_token_is_anonymous(self, client, make_post, header):
        post = make_post()
        response = client.get(f"/api/blogs/{post.slug}", headers={"Authorization": header})
        assert response.status_code == 200


class TestAuthorizationPolicy:
    """Test the identity/owner policy function."""

    def test_owner_allowed(self, test_user):
        decision = authorize(test_user, test_user.id)
        assert decision.allowed and decision.reason == "owner"

    def test_owner_id_compared_as_string(self, test_user):
        assert authorize(test_user, str(test_user.id))

    def test_non_owner_denied(self, test_user, other_user):
        decision = authorize(other_user, test_user.id)
        assert not decision
        assert decision.reason == "not_owner"

    def test_admin_bypasses_ownership(self, admin_user, test_user):
        assert authorize(admin_user, test_user.id).reason == "admin"

    def test_anonymous_denied(self, test_user):
        assert authorize(None, test_user.id).reason == "unauthenticated"

    def test_admin_relationship(self, test_user, admin_user):
        assert not authorize(test_user, test_user.id, Relationship.ADMIN)
        assert authorize(admin_user, None, Relationship.ADMIN)

    def test_ensure_owner_uses_configurable_field(self, test_user, other_user):
        class Profile:
            user_id = test_user.id

        ensure_owner(test_user, Profile(), owner_field="user_id")
        with pytest.raises(ApiException) as exc_info:
            ensure_owner(other_user, Profile(), owner_field="user_id")
        assert exc_info.value.status_code == 403

    def test_ensure_owner_defaults_to_author(self, test_user, other_user):
        post = Post(author_id=test_user.id)
        ensure_owner(test_user, post)
        with pytest.raises(ApiException):
            ensure_owner(other_user, post)

    def test_require_admin(self, test_user, admin_user):
        assert require_admin(admin_user) is admin_user
        with pytest.raises(ApiException) as exc_info:
            require_admin(test_user)
        assert exc_info.value.status_code == 403


class TestAuthEndpoints:
    """Test auth endpoints."""

    def test_register_user(self, client):
        response = client.post(
            "/api/auth/register",
            json={
                "username": "newuser",
                "email": "NewUser@Example.com",
                "password": "securepassword123",
                "first_name": "New",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["role"] == "user"
        assert "hashed_password" not in data["user"]
        assert decode_token(data["token"]) == data["user"]["id"]

    def test_register_duplicate(self, client, test_user):
        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "other@example.com", "password": "anotherpassword"},
        )
        assert response.status_code == 400
        assert "already exists" in response.json()["message"]

    def test_register_validation(self, client):
        response = client.post(
            "/api/auth/register",
            json={"username": "x", "email": "not-an-email", "password": "123"},
        )
        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"username", "email", "password"} <= fields

    def test_login_success(self, client, test_user):
        response = client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": PASSWORD},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == "alice"

    def test_login_wrong_password(self, client, test_user):
        response = client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "wrongpassword"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_login_deactivated(self, client, db, test_user):
        test_user.is_active = False
        db.commit()
        response = client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": PASSWORD},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Account is deactivated"

    def test_profile(self, client, make_post, auth_headers):
        make_post()
        make_post(status="draft")
        response = client.get("/api/auth/profile", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["user"]["blog_count"] == 2

    def test_update_profile(self, client, auth_headers):
        response = client.put(
            "/api/auth/profile",
            headers=auth_headers,
            json={"bio": "Writes about databases", "first_name": "Alicia"},
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["bio"] == "Writes about databases"
        assert user["first_name"] == "Alicia"

    def test_update_profile_username_taken(self, client, other_user, auth_headers):
        response = client.put("/api/auth/profile", headers=auth_headers, json={"username": "bob"})
        assert response.status_code == 400
