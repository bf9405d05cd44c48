"""
HTTP surface for project member invites.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from project_access.api.deps import get_context
from project_access.api.main import app

CUSTOMER = {"X-User-Id": "10", "X-User-Email": "cust@example.com"}
COPILOT = {"X-User-Id": "12", "X-User-Email": "copilot@example.com"}
ALICE = {"X-User-Id": "100", "X-User-Email": "alice@example.com"}
ADMIN = {"X-User-Id": "1", "X-User-Email": "admin@example.com", "X-User-Roles": "connect_admin"}


class BrokenIdentityService:
    def resolve_emails_to_users(self, emails):
        raise ConnectionError("identity service down")

    def get_platform_roles(self, user_id):
        raise ConnectionError("identity service down")


@pytest.fixture
def client(test_ctx):
    app.dependency_overrides[get_context] = lambda: test_ctx
    yield TestClient(app)
    app.dependency_overrides.clear()


def invite_url(project_id: int = 1) -> str:
    return f"/api/projects/{project_id}/members/invite"


class TestCreateInvites:
    def test_all_created(self, client, test_ctx):
        resp = client.post(invite_url(), json={"userIds": [100], "role": "customer"}, headers=CUSTOMER)

        assert resp.status_code == 201
        body = resp.json()
        assert body["failed"] == []
        assert body["success"][0]["userId"] == 100
        assert body["success"][0]["status"] == "pending"
        assert len(test_ctx.event_bus.events) == 1

    def test_partial_success(self, client):
        resp = client.post(
            invite_url(),
            json={"userIds": [100, 12], "emails": ["dave@external.com"], "role": "customer"},
            headers=CUSTOMER,
        )

        assert resp.status_code == 207
        body = resp.json()
        assert len(body["success"]) == 2
        assert body["failed"][0]["code"] == "already_member"
        assert body["failed"][0]["userId"] == 12

    def test_all_failed(self, client):
        resp = client.post(invite_url(), json={"userIds": [12], "role": "customer"}, headers=CUSTOMER)

        assert resp.status_code == 403
        assert resp.json()["success"] == []
        assert resp.json()["failed"][0]["message"] == (
            "User with such handle is already a member of the team."
        )

    def test_emails_masked_for_customer(self, client):
        resp = client.post(
            invite_url(), json={"emails": ["dave@external.com"], "role": "customer"}, headers=CUSTOMER
        )

        assert resp.json()["success"][0]["email"] == "d**e@external.com"

    def test_emails_clear_for_admin(self, client):
        resp = client.post(
            invite_url(), json={"emails": ["dave@external.com"], "role": "customer"}, headers=ADMIN
        )

        assert resp.status_code == 201
        assert resp.json()["success"][0]["email"] == "dave@external.com"

    def test_validation_error(self, client):
        resp = client.post(invite_url(), json={"role": "customer"}, headers=CUSTOMER)

        assert resp.status_code == 400
        assert resp.json()["code"] == "identities_required"

    def test_role_escalation(self, client, test_ctx):
        resp = client.post(invite_url(), json={"userIds": [102], "role": "manager"}, headers=CUSTOMER)

        assert resp.status_code == 403
        assert resp.json() == {
            "code": "role_escalation",
            "message": "You are not allowed to invite user as manager",
            "details": {"role": "manager"},
        }
        assert test_ctx.invites.list_pending(1) == []
        assert test_ctx.event_bus.events == []

    def test_enterprise_customer_denied(self, client):
        resp = client.post(invite_url(2), json={"userIds": [100], "role": "customer"}, headers=CUSTOMER)

        assert resp.status_code == 403
        assert resp.json()["code"] == "policy_denied"

    def test_unknown_project(self, client):
        resp = client.post(invite_url(404), json={"userIds": [100], "role": "customer"}, headers=ADMIN)

        assert resp.status_code == 404

    def test_requires_actor(self, client):
        resp = client.post(invite_url(), json={"userIds": [100], "role": "customer"})

        assert resp.status_code == 401

    def test_identity_outage(self, client, test_ctx):
        test_ctx.invite_manager.identity = BrokenIdentityService()

        resp = client.post(
            invite_url(), json={"emails": ["alice@example.com"], "role": "customer"}, headers=CUSTOMER
        )

        assert resp.status_code == 503
        assert resp.json()["code"] == "identity_unavailable"


class TestRespondToInvite:
    def _create(self, client, **body) -> int:
        resp = client.post(invite_url(), json={"role": "customer", **body}, headers=CUSTOMER)
        return resp.json()["success"][0]["id"]

    def test_accept_then_conflict(self, client, test_ctx):
        invite_id = self._create(client, userIds=[100])

        resp = client.patch(f"{invite_url()}/{invite_id}", json={"status": "accepted"}, headers=ALICE)
        assert resp.status_code == 200
        assert resp.json()["status"] == "accepted"
        assert test_ctx.members.get_active(1, 100) is not None

        again = client.patch(f"{invite_url()}/{invite_id}", json={"status": "rejected"}, headers=ALICE)
        assert again.status_code == 409
        assert again.json()["code"] == "invite_not_pending"

    def test_invalid_status(self, client):
        invite_id = self._create(client, userIds=[100])

        resp = client.patch(f"{invite_url()}/{invite_id}", json={"status": "pending"}, headers=ALICE)

        assert resp.status_code == 422

    def test_get_own_and_others(self, client):
        invite_id = self._create(client, emails=["dave@external.com"])

        own = client.get(
            f"{invite_url()}/{invite_id}",
            headers={"X-User-Id": "300", "X-User-Email": "dave@external.com"},
        )
        assert own.status_code == 200
        assert own.json()["email"] == "dave@external.com"

        copilot = client.get(f"{invite_url()}/{invite_id}", headers=COPILOT)
        assert copilot.json()["email"] == "d**e@external.com"

        stranger = client.get(f"{invite_url()}/{invite_id}", headers=ALICE)
        assert stranger.status_code == 404


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
