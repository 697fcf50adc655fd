"""Tests for the appointment HTTP endpoints."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from realestate.domain.appointments import directory
from realestate.recaptcha import RecaptchaResult
from tests.utils.factories import auth_headers, create_payload, make_property, make_user, token_for

BASE = "/api/appointments"


def _submit(client, property_id, **overrides):
    return client.post(BASE, json=create_payload(property_id, **overrides))


@pytest.mark.integration
def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["success"] is True


# ============================================================================
# full lifecycle
# ============================================================================


@pytest.mark.integration
def test_viewing_lifecycle_end_to_end(client, db, admin):
    make_property(db, property_id=7, title="Sunny Loft")
    agent = make_user(db, role="agent", user_id=5, first_name="Maria", last_name="Santos")

    created = _submit(client, 7, name="Jane Doe", email="jane@example.com")
    assert created.status_code == 201
    body = created.json()
    assert body["success"] is True
    appointment_id = body["appointmentId"]

    assigned = client.put(f"{BASE}/{appointment_id}/assign", json={"agentId": 5}, headers=auth_headers(admin))
    assert assigned.status_code == 200
    assert assigned.json()["message"] == "Agent assigned successfully"
    assert assigned.json()["appointment"]["status"] == "assigned"
    assert assigned.json()["appointment"]["assignedAgentId"] == 5

    scheduled = client.put(
        f"{BASE}/{appointment_id}/schedule",
        json={"scheduledDate": "2025-03-01", "scheduledTime": "10:00"},
        headers=auth_headers(agent),
    )
    assert scheduled.status_code == 200
    assert scheduled.json()["appointment"]["scheduledDate"] == "2025-03-01"
    assert scheduled.json()["appointment"]["scheduledTime"] == "10:00:00"

    # a second request for the same property wants the same slot
    second_id = _submit(client, 7, name="John Roe").json()["appointmentId"]
    client.put(f"{BASE}/{second_id}/assign", json={"agentId": 5}, headers=auth_headers(admin))
    clash = client.put(
        f"{BASE}/{second_id}/schedule",
        json={"scheduledDate": "2025-03-01", "scheduledTime": "10:00"},
        headers=auth_headers(agent),
    )
    assert clash.status_code == 409
    assert clash.json()["kind"] == "conflict"
    assert "already booked" in clash.json()["message"]

    completed = client.put(
        f"{BASE}/{appointment_id}/complete",
        json={"outcome": "offer_made", "outcomeNotes": "Offer at asking price"},
        headers=auth_headers(agent),
    )
    assert completed.status_code == 200
    assert completed.json()["appointment"]["status"] == "completed"
    assert completed.json()["appointment"]["outcome"] == "offer_made"

    stats = client.get(f"{BASE}/stats", headers=auth_headers(admin)).json()
    assert stats["stats"]["completed"] == 1
    assert stats["stats"]["assigned"] == 1
    assert stats["outcomes"] == {"offer_made": 1}


# ============================================================================
# create
# ============================================================================


@pytest.mark.integration
def test_create_records_client_ip(client, db, admin, listing):
    appointment_id = _submit(client, listing.id).json()["appointmentId"]

    detail = client.get(f"{BASE}/{appointment_id}", headers=auth_headers(admin)).json()
    assert detail["ipAddress"] == "testclient"
    assert detail["priorityNumber"] == 1
    assert detail["propertyPrice"] == 12500000.0


@pytest.mark.integration
def test_create_validation_error(client, listing):
    response = client.post(BASE, json={"propertyId": listing.id, "customerName": "Jane"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["kind"] == "validation_error"
    fields = {error["field"] for error in body["errors"]}
    assert {"customerEmail", "customerPhone"} <= fields


@pytest.mark.integration
def test_create_unknown_property(client):
    response = _submit(client, 9999)

    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


@pytest.mark.integration
def test_create_duplicate(client, listing):
    _submit(client, listing.id, email="jane@example.com")
    response = _submit(client, listing.id, email="jane@example.com")

    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


@pytest.mark.integration
def test_create_low_recaptcha_score_blocked(client, listing):
    with patch(
        "realestate.domain.appointments.router.verify_recaptcha",
        new=AsyncMock(return_value=RecaptchaResult(success=True, score=0.1)),
    ) as verify:
        response = _submit(client, listing.id, recaptchaToken="browser-token")

    assert response.status_code == 403
    assert response.json()["message"] == "Request blocked due to suspicious activity"
    verify.assert_awaited_once_with("browser-token", "testclient")


@pytest.mark.integration
def test_create_without_token_skips_recaptcha(client, listing):
    with patch("realestate.domain.appointments.router.verify_recaptcha", new=AsyncMock()) as verify:
        response = _submit(client, listing.id)

    assert response.status_code == 201
    verify.assert_not_awaited()


# ============================================================================
# authentication and authorization
# ============================================================================


@pytest.mark.integration
@pytest.mark.parametrize(
    "method, path",
    [
        ("get", BASE),
        ("get", f"{BASE}/my"),
        ("get", f"{BASE}/stats"),
        ("get", f"{BASE}/calendar"),
        ("get", f"{BASE}/1"),
        ("put", f"{BASE}/1/cancel"),
    ],
)
def test_staff_endpoints_require_token(client, method, path):
    response = getattr(client, method)(path)

    assert response.status_code == 401
    assert response.json()["message"] == "Access token required"


@pytest.mark.integration
def test_expired_token_rejected(client, admin):
    token = token_for(admin, expires_in=timedelta(seconds=-1))
    response = client.get(BASE, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


@pytest.mark.integration
def test_agent_cannot_use_admin_endpoints(client, agent, listing):
    appointment_id = _submit(client, listing.id).json()["appointmentId"]

    listing_response = client.get(BASE, headers=auth_headers(agent))
    assign_response = client.put(
        f"{BASE}/{appointment_id}/assign", json={"agentId": agent.id}, headers=auth_headers(agent)
    )

    assert listing_response.status_code == 403
    assert listing_response.json()["message"] == "Admin access required"
    assert assign_response.status_code == 403


@pytest.mark.integration
def test_agent_cannot_touch_someone_elses_appointment(client, admin, agent, other_agent, listing):
    appointment_id = _submit(client, listing.id).json()["appointmentId"]
    client.put(f"{BASE}/{appointment_id}/assign", json={"agentId": agent.id}, headers=auth_headers(admin))

    response = client.put(
        f"{BASE}/{appointment_id}/schedule",
        json={"scheduledDate": "2025-03-01", "scheduledTime": "10:00"},
        headers=auth_headers(other_agent),
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Appointment is not assigned to you"


# ============================================================================
# transitions
# ============================================================================


@pytest.mark.integration
def test_invalid_transition(client, admin, listing):
    appointment_id = _submit(client, listing.id).json()["appointmentId"]

    response = client.put(
        f"{BASE}/{appointment_id}/complete", json={"outcome": "interested"}, headers=auth_headers(admin)
    )

    assert response.status_code == 409
    assert response.json()["kind"] == "invalid_transition"


@pytest.mark.integration
def test_cancel_without_body_uses_default_reason(client, admin, listing):
    first = _submit(client, listing.id).json()["appointmentId"]
    second = _submit(client, listing.id).json()["appointmentId"]

    response = client.put(f"{BASE}/{first}/cancel", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["message"] == "Appointment cancelled"
    assert response.json()["appointment"]["agentNotes"] == "Cancelled: No reason provided"
    moved_up = client.get(f"{BASE}/{second}", headers=auth_headers(admin)).json()
    assert moved_up["priorityNumber"] == 1


@pytest.mark.integration
def test_cancel_with_reason(client, admin, listing):
    appointment_id = _submit(client, listing.id).json()["appointmentId"]

    response = client.put(
        f"{BASE}/{appointment_id}/cancel", json={"reason": "Customer bought elsewhere"}, headers=auth_headers(admin)
    )

    assert response.json()["appointment"]["agentNotes"] == "Cancelled: Customer bought elsewhere"


@pytest.mark.integration
def test_schedule_rejects_bad_time(client, admin, agent, listing):
    appointment_id = _submit(client, listing.id).json()["appointmentId"]
    client.put(f"{BASE}/{appointment_id}/assign", json={"agentId": agent.id}, headers=auth_headers(admin))

    response = client.put(
        f"{BASE}/{appointment_id}/schedule",
        json={"scheduledDate": "2025-03-01", "scheduledTime": "25:00"},
        headers=auth_headers(agent),
    )

    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


@pytest.mark.integration
def test_unknown_appointment(client, admin):
    response = client.put(f"{BASE}/9999/cancel", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["message"] == "Appointment not found"


# ============================================================================
# projections
# ============================================================================


@pytest.mark.integration
def test_list_pagination_params(client, admin, listing):
    for _ in range(3):
        _submit(client, listing.id)

    body = client.get(f"{BASE}?page=2&limit=2", headers=auth_headers(admin)).json()

    assert len(body["appointments"]) == 1
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}


@pytest.mark.integration
@pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101"])
def test_list_rejects_bad_pagination(client, admin, query):
    response = client.get(f"{BASE}?{query}", headers=auth_headers(admin))

    assert response.status_code == 400


@pytest.mark.integration
def test_calendar_query_aliases(client, agent):
    response = client.get(f"{BASE}/calendar?startDate=2025-03-01&endDate=2025-03-31", headers=auth_headers(agent))

    assert response.status_code == 200
    assert response.json() == {"success": True, "appointments": []}


@pytest.mark.integration
def test_calendar_month_needs_year(client, agent):
    response = client.get(f"{BASE}/calendar?month=3", headers=auth_headers(agent))

    assert response.status_code == 400


@pytest.mark.integration
def test_my_appointments(client, admin, agent, listing):
    appointment_id = _submit(client, listing.id).json()["appointmentId"]
    client.put(f"{BASE}/{appointment_id}/assign", json={"agentId": agent.id}, headers=auth_headers(admin))

    body = client.get(f"{BASE}/my", headers=auth_headers(agent)).json()

    assert [a["id"] for a in body["appointments"]] == [appointment_id]


# ============================================================================
# store failures
# ============================================================================


@pytest.mark.integration
def test_lock_timeout_is_conflict(client, listing, monkeypatch):
    def locked(*args, **kwargs):
        raise OperationalError("SELECT ... FOR UPDATE", {}, Exception("database is locked"))

    monkeypatch.setattr(directory, "lock_property", locked)

    response = _submit(client, listing.id)

    assert response.status_code == 409
    assert response.json()["message"] == "The property is busy with another request. Please try again."


@pytest.mark.integration
def test_store_outage_is_unavailable(client, listing, monkeypatch):
    def down(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("could not connect to server"))

    monkeypatch.setattr(directory, "lock_property", down)

    response = _submit(client, listing.id)

    assert response.status_code == 503
    assert response.json()["kind"] == "unavailable"


@pytest.mark.unit
def test_endpoints_are_documented(client):
    paths = client.get("/openapi.json").json()["paths"]

    detail = paths[BASE + "/{appointment_id}"]["get"]
    assert detail["description"] == "Admin/Agent - one appointment with property and agent details"
    for path, operations in paths.items():
        if path.startswith(BASE):
            for method, operation in operations.items():
                assert operation.get("description"), f"{method.upper()} {path} has no description"
