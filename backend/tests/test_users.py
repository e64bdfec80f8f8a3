"""
User registration, profile and admin management tests.
"""

import pytest

from garments.models import User


class TestRegistration:
    def test_creates_pending_buyer(self, client, db_session):
        resp = client.post(
            "/api/v1/users",
            json={"email": "New@Mill.com", "displayName": "New Mill", "role": "admin"},
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["user"]["email"] == "new@mill.com"
        assert body["user"]["role"] == "buyer"
        assert body["user"]["status"] == "pending"
        assert body["insertedId"] == body["user"]["id"]

    def test_registration_is_idempotent(self, client, db_session):
        client.post("/api/v1/users", json={"email": "a@x.com"})
        resp = client.post("/api/v1/users", json={"email": "A@x.com"})
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "user already exists", "insertedId": None}
        assert db_session.query(User).count() == 1

    @pytest.mark.parametrize("email", [None, "", "no-at-sign", "a@b"])
    def test_invalid_email(self, client, email):
        assert client.post("/api/v1/users", json={"email": email}).status_code == 400


class TestRoleLookup:
    def test_known_user(self, client, manager):
        resp = client.get(f"/api/v1/users/role/{manager.email}")
        assert resp.status_code == 200
        assert resp.get_json() == {"role": "manager", "status": "verified"}

    def test_unknown_user(self, client):
        resp = client.get("/api/v1/users/role/ghost@x.com")
        assert resp.status_code == 404
        assert resp.get_json() == {"role": "unknown", "status": "not_found"}


class TestAdminListing:
    @pytest.fixture
    def population(self, make_user):
        make_user("b1@x.com")
        make_user("b2@x.com", status="pending", display_name="Knitwear Co")
        make_user("m1@x.com", role="manager")

    def test_list_all(self, login, admin, population):
        body = login(admin.email).get("/api/v1/users").get_json()
        assert body["count"] == 4

    def test_filters(self, login, admin, population):
        client = login(admin.email)
        assert client.get("/api/v1/users?role=manager").get_json()["count"] == 1
        assert client.get("/api/v1/users?status=pending").get_json()["count"] == 1

        found = client.get("/api/v1/users?search=knitwear").get_json()["items"]
        assert [u["email"] for u in found] == ["b2@x.com"]

    def test_pagination(self, login, admin, population):
        body = login(admin.email).get("/api/v1/users?page=1&per_page=3").get_json()
        assert body["count"] == 3
        assert body["pagination"]["total"] == 4
        assert body["pagination"]["total_pages"] == 2


class TestAdminActions:
    def test_set_role(self, login, admin, buyer):
        resp = login(admin.email).patch(f"/api/v1/users/role/{buyer.id}", json={"role": "Manager"})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["role"] == "manager"

    def test_invalid_role(self, login, admin, buyer):
        resp = login(admin.email).patch(f"/api/v1/users/role/{buyer.id}", json={"role": "owner"})
        assert resp.status_code == 400

    def test_admin_cannot_demote_self(self, login, admin):
        resp = login(admin.email).patch(f"/api/v1/users/role/{admin.id}", json={"role": "buyer"})
        assert resp.status_code == 409

    def test_unknown_user(self, login, admin):
        assert login(admin.email).patch("/api/v1/users/role/999", json={"role": "buyer"}).status_code == 404

    def test_suspend_and_reinstate(self, login, admin, buyer):
        admin_client = login(admin.email)
        buyer_client = login(buyer.email)

        resp = admin_client.patch(
            f"/api/v1/users/suspend/{buyer.id}",
            json={"reason": "Repeated cancellations", "feedback": "Talk to support"},
        )
        assert resp.status_code == 200
        assert resp.get_json()["user"]["status"] == "suspended"

        denied = buyer_client.patch("/api/v1/users/me", json={"displayName": "Renamed"})
        assert denied.status_code == 403
        assert denied.get_json()["suspensionReason"] == "Repeated cancellations"
        assert denied.get_json()["suspensionFeedback"] == "Talk to support"

        resp = admin_client.patch(f"/api/v1/users/status/{buyer.id}", json={"status": "verified"})
        user = resp.get_json()["user"]
        assert user["status"] == "verified"
        assert user["suspensionReason"] is None

        assert buyer_client.patch("/api/v1/users/me", json={"displayName": "Renamed"}).status_code == 200

    def test_suspend_requires_reason(self, login, admin, buyer):
        resp = login(admin.email).patch(f"/api/v1/users/suspend/{buyer.id}", json={})
        assert resp.status_code == 400

    def test_status_endpoint_cannot_suspend(self, login, admin, buyer):
        resp = login(admin.email).patch(f"/api/v1/users/status/{buyer.id}", json={"status": "suspended"})
        assert resp.status_code == 400

    def test_non_admin_denied(self, login, manager, buyer):
        resp = login(manager.email).patch(f"/api/v1/users/status/{buyer.id}", json={"status": "verified"})
        assert resp.status_code == 403


class TestProfile:
    def test_update_profile(self, login, buyer):
        resp = login(buyer.email).patch(
            "/api/v1/users/me", json={"displayName": "Acme Retail", "photoURL": "https://img/acme.png"}
        )
        assert resp.status_code == 200
        user = resp.get_json()["user"]
        assert user["displayName"] == "Acme Retail"
        assert user["photoURL"] == "https://img/acme.png"

    @pytest.mark.parametrize("payload,message", [
        ({"displayName": "x" * 129}, "displayName exceeds max length 128"),
        ({"photoURL": "https://img/" + "p" * 502}, "photoURL exceeds max length 512"),
    ])
    def test_profile_field_lengths(self, login, buyer, db_session, payload, message):
        resp = login(buyer.email).patch("/api/v1/users/me", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == message

        db_session.refresh(buyer)
        assert buyer.display_name is None
        assert buyer.photo_url is None

    @pytest.mark.parametrize("field", ["role", "status", "email"])
    def test_protected_fields(self, login, buyer, field):
        resp = login(buyer.email).patch("/api/v1/users/me", json={field: "admin"})
        assert resp.status_code == 400
