from unittest.mock import AsyncMock

import pytest

from fieldlines.services import admin_service, booking_service, email_service, invitation_service, settings_service
from fieldlines.services.errors import InvalidTransitionError
from fieldlines.services.permissions import SelfActionError
from fieldlines.tests.conftest import make_client_with_auth


def booking_payload(status):
    return {
        "id": 9,
        "reference_number": "BK-2026-XYZ789",
        "status": status,
        "user": {"id": 1, "full_name": "Test Owner", "email": "owner@example.com", "phone": None},
    }


@pytest.mark.parametrize("path", ["/api/admin/stats", "/api/admin/users", "/api/admin/settings"])
def test_regular_user_is_forbidden(monkeypatch, path):
    client, headers = make_client_with_auth(monkeypatch, role="user")
    r = client.get(path, headers=headers)
    assert r.status_code == 403
    assert r.json() == {"error": "Admin access required"}


def test_stats(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")

    async def fake_stats(session):
        return {"users": {"total": 3, "by_role": {"user": 2, "admin": 1}, "suspended": 0}}

    monkeypatch.setattr(admin_service, "get_stats", fake_stats, raising=True)
    r = client.get("/api/admin/stats", headers=headers)
    assert r.status_code == 200
    assert r.json()["users"]["total"] == 3


def test_list_users_passes_filters(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")
    seen = {}

    async def fake_list_users(session, page, limit, search, role):
        seen.update(page=page, limit=limit, search=search, role=role)
        return {"users": [], "total": 0, "page": page, "limit": limit, "total_pages": 0}

    monkeypatch.setattr(admin_service, "list_users", fake_list_users, raising=True)
    r = client.get("/api/admin/users?page=2&limit=5&search=club", headers=headers)
    assert r.status_code == 200
    assert seen == {"page": 2, "limit": 5, "search": "club", "role": None}


def test_status_change_emails_customer(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")

    async def fake_update(session, booking_id, new_status):
        return {"booking": booking_payload(new_status), "old_status": "pending", "changed": True}

    status_email = AsyncMock(return_value=True)
    monkeypatch.setattr(booking_service, "admin_update_status", fake_update, raising=True)
    monkeypatch.setattr(email_service, "send_booking_status_email", status_email, raising=True)

    r = client.put("/api/admin/bookings/9/status", json={"status": "confirmed"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "confirmed"
    status_email.assert_awaited_once()
    assert status_email.await_args.args[2] == "pending"


def test_unchanged_status_sends_nothing(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")

    async def fake_update(session, booking_id, new_status):
        return {"booking": booking_payload(new_status), "old_status": new_status, "changed": False}

    status_email = AsyncMock(return_value=True)
    monkeypatch.setattr(booking_service, "admin_update_status", fake_update, raising=True)
    monkeypatch.setattr(email_service, "send_booking_status_email", status_email, raising=True)

    r = client.put("/api/admin/bookings/9/status", json={"status": "pending"}, headers=headers)
    assert r.status_code == 200
    status_email.assert_not_awaited()


def test_invalid_transition_is_400(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")

    async def fake_update(session, booking_id, new_status):
        raise InvalidTransitionError("Cannot change status from completed to pending")

    monkeypatch.setattr(booking_service, "admin_update_status", fake_update, raising=True)
    r = client.put("/api/admin/bookings/9/status", json={"status": "pending"}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Cannot change status from completed to pending"}


def test_self_delete_is_400_and_forbidden_target_is_403(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")

    async def fake_delete(session, actor, user_id):
        if user_id == actor["id"]:
            raise SelfActionError("Cannot delete your own account")
        raise PermissionError("You can only delete regular users")

    monkeypatch.setattr(admin_service, "delete_user", fake_delete, raising=True)
    assert client.delete("/api/admin/users/1", headers=headers).status_code == 400
    r = client.delete("/api/admin/users/2", headers=headers)
    assert r.status_code == 403
    assert r.json() == {"error": "You can only delete regular users"}


def test_reset_password_emails_user(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")

    async def fake_reset(session, actor, user_id):
        return {"email": "member@example.com", "token": "reset-token", "full_name": "Member"}

    reset_email = AsyncMock(return_value=False)
    monkeypatch.setattr(admin_service, "reset_user_password", fake_reset, raising=True)
    monkeypatch.setattr(email_service, "send_password_reset_email", reset_email, raising=True)

    r = client.post("/api/admin/users/2/reset-password", headers=headers)
    assert r.status_code == 200
    assert r.json()["email_sent"] is False
    reset_email.assert_awaited_once()
    assert reset_email.await_args.args[:3] == ("member@example.com", "Member", "reset-token")


def test_admin_invitations_need_super_admin(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")
    r = client.post("/api/admin/invitations", json={"email": "new@example.com"}, headers=headers)
    assert r.status_code == 403
    assert r.json() == {"error": "Super admin access required"}


def test_super_admin_creates_admin_invitation(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="super_admin", user_id=4)

    async def fake_create(session, kind, email, invited_by):
        assert kind == invitation_service.ADMIN
        assert invited_by == 4
        return {"invitation": {"id": 1, "email": email, "status": "pending"}, "token": "invite-token"}

    invite_email = AsyncMock(return_value=True)
    monkeypatch.setattr(invitation_service, "create_invitation", fake_create, raising=True)
    monkeypatch.setattr(email_service, "send_admin_invitation_email", invite_email, raising=True)

    r = client.post("/api/admin/invitations", json={"email": "new@example.com"}, headers=headers)
    assert r.status_code == 201
    assert r.json()["email_sent"] is True
    invite_email.assert_awaited_once()


def test_admin_may_invite_customers(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")

    async def fake_create(session, kind, email, invited_by):
        assert kind == invitation_service.USER
        return {"invitation": {"id": 2, "email": email, "status": "pending"}, "token": "invite-token"}

    monkeypatch.setattr(invitation_service, "create_invitation", fake_create, raising=True)
    monkeypatch.setattr(email_service, "send_user_invitation_email", AsyncMock(return_value=True), raising=True)
    r = client.post("/api/admin/user-invitations", json={"email": "club@example.com"}, headers=headers)
    assert r.status_code == 201


def test_update_setting_records_admin(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin", user_id=3)

    async def fake_set_setting(session, key, value, updated_by=None):
        return {"key": key, "value": value, "updated_by": updated_by, "updated_at": None}

    monkeypatch.setattr(settings_service, "set_setting", fake_set_setting, raising=True)
    r = client.put("/api/admin/settings/maintenance_mode", json={"value": "true"}, headers=headers)
    assert r.status_code == 200
    assert r.json() == {"key": "maintenance_mode", "value": "true", "updated_by": 3, "updated_at": None}


def test_unknown_user_lookup_resolves_to_401(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin")
    from fieldlines.services import user_service

    async def gone(session, uid):
        return None

    monkeypatch.setattr(user_service, "get_user_by_id", gone, raising=True)
    r = client.get("/api/admin/stats", headers=headers)
    assert r.status_code == 401
    assert r.json() == {"error": "User not found"}
