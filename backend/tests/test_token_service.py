"""
Session token tests.

Verifies:
- Tokens round-trip the email and nothing else
- Expired, tampered and foreign-secret tokens are rejected
- Cookie attributes follow APP_ENV
- Login and logout set and clear the cookie
"""

import jwt
import pytest

from garments.services import token_service
from garments.services.token_service import TokenError


class TestIssueAndVerify:
    def test_round_trip(self, app):
        token = token_service.issue_token("A@X.com")
        claims = token_service.verify_token(token)
        assert claims.email == "a@x.com"
        assert claims.expires_at > claims.issued_at

    def test_identity_only(self, app):
        token = token_service.issue_token("a@x.com")
        payload = jwt.decode(token, options={"verify_signature": False})
        assert set(payload) == {"sub", "iat", "exp"}

    def test_expired(self, app):
        token = token_service.issue_token("a@x.com", ttl_seconds=-1)
        with pytest.raises(TokenError, match="expired"):
            token_service.verify_token(token)

    def test_wrong_secret(self, app):
        token = token_service.issue_token("a@x.com", secret="somebody-else")
        with pytest.raises(TokenError, match="Invalid token"):
            token_service.verify_token(token)

    def test_swapped_payload(self, app):
        mine = token_service.issue_token("a@x.com").split(".")
        theirs = token_service.issue_token("admin@x.com").split(".")
        forged = ".".join([mine[0], theirs[1], mine[2]])
        with pytest.raises(TokenError):
            token_service.verify_token(forged)

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing(self, app, token):
        with pytest.raises(TokenError, match="Authentication required"):
            token_service.verify_token(token)

    def test_cannot_issue_without_email(self, app):
        with pytest.raises(TokenError):
            token_service.issue_token("  ")


class TestCookie:
    def _set_cookie_header(self, app):
        with app.test_request_context():
            response = app.response_class()
            token_service.set_token_cookie(response, "abc")
            return response.headers["Set-Cookie"]

    def test_development_cookie(self, app):
        header = self._set_cookie_header(app)
        assert header.startswith("token=abc")
        assert "HttpOnly" in header
        assert "SameSite=Strict" in header
        assert "Max-Age=3600" in header
        assert "Secure" not in header

    def test_production_cookie(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "APP_ENV", "production")
        header = self._set_cookie_header(app)
        assert "Secure" in header
        assert "SameSite=None" in header
        assert "HttpOnly" in header


class TestAuthRoutes:
    def test_login_sets_cookie(self, client, buyer):
        resp = client.post("/api/v1/auth/jwt", json={"email": "A@X.COM"})
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "role": "buyer", "status": "verified"}
        assert "token=" in resp.headers["Set-Cookie"]

        me = client.get("/api/v1/auth/me")
        assert me.status_code == 200
        assert me.get_json()["user"]["email"] == "a@x.com"

    def test_login_unregistered(self, client):
        resp = client.post("/api/v1/auth/jwt", json={"email": "new@x.com"})
        assert resp.status_code == 401
        assert "Set-Cookie" not in resp.headers

    def test_login_invalid_email(self, client):
        resp = client.post("/api/v1/auth/jwt", json={"email": "not-an-email"})
        assert resp.status_code == 400

    def test_logout_expires_cookie(self, login, buyer):
        client = login(buyer.email)
        resp = client.post("/api/v1/auth/logout")
        assert resp.status_code == 200
        assert "Max-Age=0" in resp.headers["Set-Cookie"]
        assert client.get("/api/v1/auth/me").status_code == 401
