from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from fieldlines.editor.geometry import LatLng, geo_to_local, local_to_geo
from fieldlines.services import auth_service, booking_service, email_service, template_service
from fieldlines.services.errors import AccountLockedError, InvalidCredentialsError, NotFoundError
from fieldlines.tests.conftest import make_client_with_auth, make_user_dict

CENTER = LatLng(-33.8688, 151.2093)


def field_state(**overrides):
    state = {
        "center": CENTER.as_dict(),
        "length_meters": 100,
        "width_meters": 64,
        "rotation_degrees": 0,
        "line_color": "white",
        "sport": "soccer",
    }
    state.update(overrides)
    return state


def test_health(monkeypatch):
    client, _ = make_client_with_auth(monkeypatch)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_missing_token_is_401(monkeypatch):
    client, _ = make_client_with_auth(monkeypatch)
    r = client.get("/api/bookings")
    assert r.status_code == 401
    assert r.json() == {"error": "Authentication required"}


def test_suspended_user_is_403(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    from fieldlines.services import user_service

    async def fake_get_user_by_id(session, uid):
        return make_user_dict(uid, suspended=True)

    monkeypatch.setattr(user_service, "get_user_by_id", fake_get_user_by_id, raising=True)
    r = client.get("/api/bookings", headers=headers)
    assert r.status_code == 403
    assert "suspended" in r.json()["error"]


def test_auth_dependencies_are_the_ones_routes_use():
    from fieldlines.api import auth_dependencies

    public = {name for name in vars(auth_dependencies) if name.startswith(("get_", "require_"))}
    assert public == {"get_current_user", "get_db_session", "require_admin", "require_super_admin"}


def test_validation_error_is_400_with_field_name(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    r = client.post("/api/bookings", json={"preferred_time": "morning"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error"].startswith("configuration_id:")


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def test_login_success(monkeypatch):
    client, _ = make_client_with_auth(monkeypatch)

    async def fake_authenticate(session, email, password):
        return {"token": "jwt", "user": make_user_dict()}

    monkeypatch.setattr(auth_service, "authenticate_user", fake_authenticate, raising=True)
    r = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "password123"})
    assert r.status_code == 200
    assert r.json()["token"] == "jwt"
    assert r.json()["user"]["email"] == "owner@example.com"


@pytest.mark.parametrize(
    "error,status",
    [
        (InvalidCredentialsError("Invalid email or password"), 401),
        (AccountLockedError("Account temporarily locked"), 423),
        (PermissionError("Please verify your email before logging in"), 403),
    ],
)
def test_login_failures(monkeypatch, error, status):
    client, _ = make_client_with_auth(monkeypatch)

    async def fake_authenticate(session, email, password):
        raise error

    monkeypatch.setattr(auth_service, "authenticate_user", fake_authenticate, raising=True)
    r = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "wrong-pass"})
    assert r.status_code == status
    assert r.json() == {"error": str(error)}


def test_forgot_password_answers_the_same_for_unknown_email(monkeypatch):
    client, _ = make_client_with_auth(monkeypatch)
    sent = AsyncMock(return_value=True)
    monkeypatch.setattr(email_service, "send_password_reset_email", sent, raising=True)

    async def no_account(session, email):
        return None

    monkeypatch.setattr(auth_service, "issue_reset_token", no_account, raising=True)
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    async def issued(session, email):
        return {"email": email, "token": "reset-token", "full_name": "Owner"}

    monkeypatch.setattr(auth_service, "issue_reset_token", issued, raising=True)
    known = client.post("/api/auth/forgot-password", json={"email": "owner@example.com"})

    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()
    sent.assert_awaited_once()


def test_forgot_password_hides_failures(monkeypatch):
    client, _ = make_client_with_auth(monkeypatch)

    async def broken(session, email):
        raise RuntimeError("database down")

    monkeypatch.setattr(auth_service, "issue_reset_token", broken, raising=True)
    r = client.post("/api/auth/forgot-password", json={"email": "owner@example.com"})
    assert r.status_code == 200


# ---------------------------------------------------------------------------
# Editor
# ---------------------------------------------------------------------------


def test_layout(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    r = client.post("/api/editor/layout", json=field_state(rotation_degrees=370), headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["layout"]["rotation_degrees"] == pytest.approx(370)
    assert body["layout"]["color_hex"] == "#FFFFFF"
    assert body["layout"]["lines"]
    assert len(body["handles"]) == 9
    assert all(h["icon_rotation"] == pytest.approx(10) for h in body["handles"])


def test_layout_rejects_unknown_color(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    r = client.post("/api/editor/layout", json=field_state(line_color="pink"), headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid line color: pink"}


def test_layout_rejects_non_positive_size(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    r = client.post("/api/editor/layout", json=field_state(length_meters=0), headers=headers)
    assert r.status_code == 400


def test_resize_clamps_to_bounds(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    drag = local_to_geo(CENTER, 0, 100, 0)
    payload = field_state(
        edge="top",
        drag_point=drag.as_dict(),
        bounds={"min_length": 90, "max_length": 120, "min_width": 45, "max_width": 90},
    )
    r = client.post("/api/editor/resize", json=payload, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["clamped"] is True
    assert body["length_meters"] == pytest.approx(120)
    assert body["width_meters"] == pytest.approx(64)
    new_center = geo_to_local(CENTER, LatLng(**body["center"]), 0)
    assert new_center.y == pytest.approx(10, abs=1e-6)
    assert body["layout"]["length_meters"] == pytest.approx(120)


def rugby_template(monkeypatch):
    template = SimpleNamespace(
        id=5, sport="rugby", min_length=94, max_length=100, min_width=68, max_width=70
    )

    async def fake_get_template_model(session, template_id):
        assert template_id == 5
        return template

    monkeypatch.setattr(template_service, "get_template_model", fake_get_template_model, raising=True)


def test_layout_draws_template_sport(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    rugby_template(monkeypatch)
    r = client.post("/api/editor/layout", json=field_state(template_id=5), headers=headers)
    assert r.status_code == 200, r.text
    names = [line["name"] for line in r.json()["layout"]["lines"]]
    assert names == ["outline", "halfway_line"]


def test_resize_uses_template_bounds_and_sport(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    rugby_template(monkeypatch)
    drag = local_to_geo(CENTER, 0, 100, 0)
    payload = field_state(
        template_id=5,
        edge="top",
        drag_point=drag.as_dict(),
        bounds={"min_length": 10, "max_length": 500, "min_width": 10, "max_width": 500},
    )
    r = client.post("/api/editor/resize", json=payload, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["clamped"] is True
    assert body["length_meters"] == pytest.approx(100)
    assert [line["name"] for line in body["layout"]["lines"]] == ["outline", "halfway_line"]


def test_rotate_draws_template_sport(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    rugby_template(monkeypatch)
    drag = local_to_geo(CENTER, 32, 50, 30)
    payload = field_state(template_id=5, corner="top_right", drag_point=drag.as_dict())
    r = client.post("/api/editor/rotate", json=payload, headers=headers)
    assert r.status_code == 200, r.text
    assert [line["name"] for line in r.json()["layout"]["lines"]] == ["outline", "halfway_line"]


def test_unknown_template_is_404(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)

    async def missing(session, template_id):
        raise NotFoundError("Template not found")

    monkeypatch.setattr(template_service, "get_template_model", missing, raising=True)
    r = client.post("/api/editor/layout", json=field_state(template_id=99), headers=headers)
    assert r.status_code == 404
    assert r.json() == {"error": "Template not found"}


def test_resize_unknown_edge(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    payload = field_state(edge="middle", drag_point=CENTER.as_dict())
    r = client.post("/api/editor/resize", json=payload, headers=headers)
    assert r.status_code == 400
    assert "Unknown edge handle" in r.json()["error"]


def test_rotate(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    drag = local_to_geo(CENTER, 32, 50, 30)
    payload = field_state(corner="top_right", drag_point=drag.as_dict())
    r = client.post("/api/editor/rotate", json=payload, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["rotation_degrees"] == pytest.approx(30, abs=1e-6)
    assert body["layout"]["rotation_degrees"] == pytest.approx(30, abs=1e-6)


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


def test_create_booking_sends_both_emails(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    created = {}

    async def fake_create_booking(session, user_id, **fields):
        created.update(fields, user_id=user_id)
        return {"id": 7, "reference_number": "BK-2026-ABC123", "status": "pending"}

    confirmation = AsyncMock(return_value=True)
    provider = AsyncMock(return_value=True)
    monkeypatch.setattr(booking_service, "create_booking", fake_create_booking, raising=True)
    monkeypatch.setattr(email_service, "send_booking_confirmation_email", confirmation, raising=True)
    monkeypatch.setattr(email_service, "send_provider_notification_email", provider, raising=True)

    payload = {
        "configuration_id": 3,
        "preferred_date": "2026-12-01",
        "preferred_time": "morning",
        "contact_preference": "email",
    }
    r = client.post("/api/bookings", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    assert r.json()["reference_number"] == "BK-2026-ABC123"
    assert created["user_id"] == 1
    assert created["configuration_id"] == 3
    confirmation.assert_awaited_once()
    provider.assert_awaited_once()


@pytest.mark.parametrize(
    "error,status",
    [
        (ValueError("Bookings can only be cancelled at least 48 hours before the preferred date"), 400),
        (NotFoundError("Booking not found"), 404),
    ],
)
def test_cancel_booking_errors(monkeypatch, error, status):
    client, headers = make_client_with_auth(monkeypatch)

    async def fake_cancel(session, booking_id, user_id):
        raise error

    monkeypatch.setattr(booking_service, "cancel_booking", fake_cancel, raising=True)
    r = client.post("/api/bookings/5/cancel", headers=headers)
    assert r.status_code == status
    assert r.json() == {"error": str(error)}


def test_unexpected_error_is_500_with_action(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)

    async def fake_cancel(session, booking_id, user_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(booking_service, "cancel_booking", fake_cancel, raising=True)
    r = client.post("/api/bookings/5/cancel", headers=headers)
    assert r.status_code == 500
    assert r.json() == {"error": "Error cancelling booking: boom"}


# ---------------------------------------------------------------------------
# Maintenance mode
# ---------------------------------------------------------------------------


def test_maintenance_blocks_regular_users(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, maintenance=True)
    r = client.get("/api/bookings", headers=headers)
    assert r.status_code == 503
    assert r.json() == {"error": "maintenance_mode", "message": "Back soon"}


def test_maintenance_lets_admins_through(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role="admin", maintenance=True)

    async def fake_list_bookings(session, user_id, status=None):
        return []

    monkeypatch.setattr(booking_service, "list_bookings", fake_list_bookings, raising=True)
    r = client.get("/api/bookings", headers=headers)
    assert r.status_code == 200
    assert r.json() == []


def test_maintenance_status_stays_reachable(monkeypatch):
    client, _ = make_client_with_auth(monkeypatch, maintenance=True)
    r = client.get("/api/maintenance/status")
    assert r.status_code == 200
    assert r.json() == {"maintenance_mode": True, "message": "Back soon"}
