"""
Integration tests for API endpoints.
"""
import pytest

from app.models import SamplePressure
from app.services.auth_service import set_user_active
from app.services.reference_service import list_sample_types


def _post(client, url, headers, json=None):
    response = client.post(url, headers=headers, json=json)
    assert response.status_code in (200, 201), response.text
    return response.json()["data"]


# ============================================================================
# HEALTH AND AUTH ENDPOINTS
# ============================================================================

def test_health_endpoint(client):
    """Test that the health endpoint works without a token."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_returns_token_and_roles(client, make_user):
    make_user("observer", "sampler", username="alice", password="pw-alice-1")
    response = client.post("/auth/login", json={"username": "alice", "password": "pw-alice-1"})
    assert response.status_code == 200

    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["roles"] == ["observer", "sampler"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["username"] == "alice"


@pytest.mark.parametrize(
    "username, password",
    [("alice", "wrong-password"), ("nobody", "pw-alice-1"), ("inactive", "pw-inactive")],
)
def test_login_failures_are_identical(client, db, make_user, username, password):
    make_user("observer", username="alice", password="pw-alice-1")
    inactive = make_user("observer", username="inactive", password="pw-inactive")
    set_user_active(db, inactive.user_id, False)

    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "InvalidCredentials",
        "detail": "Invalid username or password.",
    }


def test_login_missing_field_is_validation_error(client):
    response = client.post("/auth/login", json={"username": "alice"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "ValidationError"
    assert body["fields"] == ["password"]


def test_protected_route_requires_token(client):
    response = client.get("/casts/")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_garbage_token_rejected(client):
    response = client.get("/casts/", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_change_password(client, make_user, auth_headers):
    user = make_user("analyst", username="alice", password="old-password")
    response = client.post(
        "/auth/password",
        headers=auth_headers(user),
        json={"current_password": "old-password", "new_password": "new-password"},
    )
    assert response.status_code == 200
    assert client.post("/auth/login", json={"username": "alice", "password": "new-password"}).status_code == 200


# ============================================================================
# ROLE-CONDITIONAL ACCESS
# ============================================================================

def test_dashboard_navigation_by_role(client, make_user, auth_headers):
    admin = make_user("admin")
    analyst = make_user("analyst")

    data = client.get("/dashboard/", headers=auth_headers(admin)).json()["data"]
    assert [a["title"] for a in data["navigation"]] == [
        "New CTD Cast",
        "Sample Management",
        "User Management",
        "System Settings",
    ]
    assert data["stats"]["users"] == 2

    data = client.get("/dashboard/", headers=auth_headers(analyst)).json()["data"]
    assert data["navigation"] == []


def test_analyst_cannot_log_casts(client, make_user, auth_headers, reference):
    analyst = make_user("analyst")
    response = client.post(
        "/casts/",
        headers=auth_headers(analyst),
        json={
            "ship_id": reference["ship_id"],
            "station_id": reference["station_id"],
            "cruise_id": reference["cruise_id"],
            "cast_number": 1,
        },
    )
    assert response.status_code == 403
    assert response.json()["error"] == "InsufficientRole"


def test_user_management_is_admin_only(client, make_user, auth_headers):
    observer = make_user("observer")
    assert client.get("/users/", headers=auth_headers(observer)).status_code == 403


def test_admin_manages_users(client, admin, auth_headers):
    headers = auth_headers(admin)
    created = client.post(
        "/users/",
        headers=headers,
        json={"username": "bob", "password": "bob-password", "first_name": "Bob", "last_name": "Diver", "roles": ["sampler"]},
    )
    assert created.status_code == 201
    body = created.json()
    assert body["messages"] == [{"level": "success", "message": "User created successfully!"}]
    bob_id = body["data"]["user_id"]

    response = client.put(f"/users/{bob_id}/roles", headers=headers, json={"roles": ["bottlecop", "sampler"]})
    assert response.json()["data"]["roles"] == ["bottlecop", "sampler"]

    response = client.put(f"/users/{bob_id}/active", headers=headers, json={"active": False})
    assert response.json()["data"]["active"] is False

    assert client.delete(f"/users/{admin.user_id}", headers=headers).status_code == 400
    assert client.delete(f"/users/{bob_id}", headers=headers).status_code == 200


def test_unknown_role_rejected(client, admin, auth_headers):
    response = client.post(
        "/users/",
        headers=auth_headers(admin),
        json={"username": "eve", "password": "eve-password", "first_name": "Eve", "last_name": "X", "roles": ["captain"]},
    )
    assert response.status_code == 400


def test_search_users_needs_user_management(client, make_user, auth_headers):
    observer = make_user("observer", username="alice")
    response = client.get("/dashboard/search", headers=auth_headers(observer), params={"entity": "users", "term": "ali"})
    assert response.status_code == 403

    response = client.get("/dashboard/search", headers=auth_headers(observer), params={"entity": "tables", "term": "x"})
    assert response.status_code == 400


# ============================================================================
# CAST LIFECYCLE ENDPOINTS
# ============================================================================

def test_phase_put_returns_warnings_and_state(client, make_user, auth_headers, reference):
    console = make_user("console")
    headers = auth_headers(console)
    cast = _post(
        client,
        "/casts/",
        headers,
        {
            "ship_id": reference["ship_id"],
            "station_id": reference["station_id"],
            "cruise_id": reference["cruise_id"],
            "cast_number": 4,
        },
    )
    cast_id = cast["ctd_cast_log_id"]
    assert cast["observer_user_id"] == console.user_id

    response = client.put(f"/casts/{cast_id}/phases/at_depth", headers=headers, json={"latitude": 25.5, "longitude": -80.1, "depth": 3})
    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "at_depth_recorded"
    assert body["warnings"] == [
        "pre_cast has not been recorded yet",
        "beginning_position has not been recorded yet",
    ]
    assert body["messages"][0] == {"level": "success", "message": "At-depth position saved successfully!"}
    assert body["data"]["at_depth_depth"] == 3

    response = client.put(f"/casts/{cast_id}/phases/at_depth", headers=headers, json={"latitude": 25.6, "longitude": -80.1})
    assert response.json()["data"]["at_depth_depth"] is None

    response = client.put(f"/casts/{cast_id}/phases/ending_position", headers=headers, json={"depth": 3})
    assert response.status_code == 400
    assert set(response.json()["fields"]) == {"latitude", "longitude"}

    assert client.put(f"/casts/{cast_id}/phases/nap", headers=headers, json={}).status_code == 400
    assert client.put("/casts/999/phases/pre_cast", headers=headers, json={}).status_code == 404

    detail = client.get(f"/casts/{cast_id}", headers=headers).json()["data"]
    assert detail["phases"]["at_depth"]["at_depth_latitude"] == 25.6
    assert client.get(f"/casts/{cast_id}/state", headers=headers).json()["data"]["state"] == "at_depth_recorded"

    assert client.delete(f"/casts/{cast_id}", headers=headers).status_code == 200
    assert client.get(f"/casts/{cast_id}", headers=headers).status_code == 404


def test_bottle_lifecycle_over_http(client, make_user, auth_headers, reference, db):
    sampler = make_user("sampler")
    headers = auth_headers(sampler)
    bottle = _post(
        client,
        "/sampling/bottles",
        headers,
        {"niskin_id": reference["niskin_ids"][0], "sample_type_id": list_sample_types(db)[0].sample_type_id, "bottle_number": 7},
    )
    assert bottle["status"] == "empty"

    url = f"/sampling/bottles/{bottle['bottle_id']}/status"
    assert client.put(url, headers=headers, json={"status": "processed"}).status_code == 400
    assert client.put(url, headers=headers, json={"status": "filled"}).json()["data"]["status"] == "filled"
    assert client.put(url, headers=headers, json={"status": "filled"}).status_code == 200
    assert client.put(url, headers=headers, json={"status": "empty"}).status_code == 400


# ============================================================================
# END-TO-END SCENARIOS
# ============================================================================

def test_scenario_capture_summary_variance(client, make_user, auth_headers):
    """Cruise -> station -> cast -> position -> target depth -> capture -> summary."""
    admin = make_user("admin")
    user_x = make_user("console", username="userX")
    admin_headers = auth_headers(admin)
    headers = auth_headers(user_x)

    ship = _post(client, "/reference/ships", admin_headers, {"ship_name": "ShipA"})
    cruise = _post(client, "/reference/cruises", admin_headers, {"cruise_number": 24, "cruise_name": "AB-24"})
    station = _post(
        client,
        "/reference/stations",
        admin_headers,
        {"cruise_id": cruise["cruise_id"], "station_number": "1", "station_name": "STN1", "latitude": 10.0, "longitude": -20.0},
    )
    niskins = [_post(client, "/reference/niskins", admin_headers, {"niskin_number": n}) for n in (1, 2, 3)]

    cast = _post(
        client,
        "/casts/",
        headers,
        {"ship_id": ship["ship_id"], "station_id": station["station_id"], "cruise_id": cruise["cruise_id"], "cast_number": 1},
    )
    cast_id = cast["ctd_cast_log_id"]
    assert cast["observer_name"] == user_x.full_name

    response = client.put(
        f"/casts/{cast_id}/phases/beginning_position",
        headers=headers,
        json={"latitude": 10.01, "longitude": -20.01, "depth": 0},
    )
    assert response.status_code == 200

    target = _post(
        client,
        f"/reference/stations/{station['station_id']}/target-depths",
        admin_headers,
        {"target_pressure": 500, "sequence_order": 1},
    )
    _post(
        client,
        f"/sampling/casts/{cast_id}/pressures",
        headers,
        {"niskin_id": niskins[2]["niskin_id"], "target_depth_id": target["target_depth_id"], "actual_pressure": 505},
    )

    summary = client.get(f"/sampling/casts/{cast_id}/summary", headers=headers).json()["data"]
    assert len(summary) == 1
    assert summary[0]["niskin_number"] == 3
    assert summary[0]["target_pressure"] == 500
    assert summary[0]["actual_pressure"] == 505
    assert summary[0]["variance"] == 5


def test_scenario_unknown_niskin_rejected(client, db, make_user, auth_headers, cast):
    """A capture against a niskin that does not exist is rejected and nothing is stored."""
    console = make_user("console")
    response = client.post(
        f"/sampling/casts/{cast.ctd_cast_log_id}/pressures",
        headers=auth_headers(console),
        json={"niskin_id": 4242, "actual_pressure": 100},
    )
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"
    assert db.query(SamplePressure).count() == 0


def test_sampling_session_over_http(client, make_user, auth_headers, cast, db):
    bottlecop = make_user("bottlecop")
    console = make_user("console")
    cast_id = cast.ctd_cast_log_id

    response = client.post(f"/sampling/casts/{cast_id}/sessions", headers=auth_headers(bottlecop))
    assert response.status_code == 400

    client.put(f"/casts/{cast_id}/phases/on_deck", headers=auth_headers(console), json={"latitude": 25.5, "longitude": -80.1})
    session = _post(client, f"/sampling/casts/{cast_id}/sessions", auth_headers(bottlecop))

    timing = _post(
        client,
        f"/sampling/sessions/{session['session_id']}/timings",
        auth_headers(bottlecop),
        {"sample_type_id": list_sample_types(db)[0].sample_type_id, "time_limit_hours": 4},
    )
    assert timing["deadline_datetime"] is not None

    deadlines = client.get(f"/sampling/sessions/{session['session_id']}/deadlines", headers=auth_headers(console)).json()
    assert deadlines["total"] == 1
    assert deadlines["data"][0]["overdue"] is False
