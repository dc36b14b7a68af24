from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from app.features.ready_plans.domain.errors import DataFetchError, PreconditionError
from app.features.ready_plans.domain.models import GenerationResult, LocalNetwork, NoCandidate
from app.main import app

client = TestClient(app)

ROUTER = "app.features.ready_plans.api.router"
USER_ID = "11111111-1111-1111-1111-111111111111"
INVITEE_ID = "22222222-2222-2222-2222-222222222222"
START = datetime(2030, 1, 10, 18, tzinfo=UTC)


def _plan_row(**overrides):
    venue = {"name": "Blue Bottle", "address": "1 Main St", "rating": 4.6, "distance": "0.3 mi"}
    row = {
        "id": "33333333-3333-3333-3333-333333333333",
        "user_id": USER_ID,
        "city": "Oakland",
        "time_window_start": START,
        "time_window_end": START + timedelta(hours=2),
        "proposed_start_time": START + timedelta(minutes=30),
        "activity_type": "coffee",
        "activity_description": "Coffee at Blue Bottle",
        "venue_options": [venue],
        "selected_venue": venue,
        "invitee_ids": [INVITEE_ID],
        "commit_rule_min_acceptances": 2,
        "commit_rule_hours": 24,
        "commit_rule_expires_at": START + timedelta(hours=24),
        "shared_interests": ["coffee"],
        "compatibility_score": 0.72,
        "status": "pending",
        "created_at": START - timedelta(days=1),
    }
    row.update(overrides)
    return row


def test_generate_requires_authentication():
    response = client.post("/api/ready-plans/generate", json={"city": "Oakland"})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_generate_rejects_malformed_bearer_token():
    response = client.post(
        "/api/ready-plans/generate",
        json={"city": "Oakland"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_generate_requires_city(apply_auth_override):
    apply_auth_override(app)

    assert client.post("/api/ready-plans/generate", json={}).json() == {
        "error": "City is required"
    }
    response = client.post("/api/ready-plans/generate", json={"city": "   "})
    assert response.status_code == 400


def test_generate_returns_created_plans(apply_auth_override, monkeypatch):
    apply_auth_override(app)
    generate = AsyncMock(
        return_value=GenerationResult(plans=[_plan_row()], outcomes=[NoCandidate(1)])
    )
    monkeypatch.setattr(f"{ROUTER}.plan_generation_service.generate_plans", generate)

    response = client.post("/api/ready-plans/generate", json={"city": " Oakland "})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["plans_generated"] == 1
    plan = data["plans"][0]
    assert plan["invitee_ids"] == [INVITEE_ID]
    assert plan["selected_venue"]["name"] == "Blue Bottle"
    assert "yelp_url" not in plan["selected_venue"]
    generate.assert_awaited_once_with(USER_ID, "Oakland")


def test_generate_precondition_failure_carries_diagnostics(apply_auth_override, monkeypatch):
    apply_auth_override(app)
    monkeypatch.setattr(
        f"{ROUTER}.plan_generation_service.generate_plans",
        AsyncMock(
            side_effect=PreconditionError(
                "Insufficient local network density", local_friend_count=2, minimum_required=3
            )
        ),
    )

    response = client.post("/api/ready-plans/generate", json={"city": "Oakland"})

    assert response.status_code == 400
    assert response.json() == {
        "error": "Insufficient local network density",
        "local_friend_count": 2,
        "minimum_required": 3,
    }


def test_generate_store_failure_is_500(apply_auth_override, monkeypatch):
    apply_auth_override(app)
    monkeypatch.setattr(
        f"{ROUTER}.plan_generation_service.generate_plans",
        AsyncMock(side_effect=DataFetchError("connection refused")),
    )

    response = client.post("/api/ready-plans/generate", json={"city": "Oakland"})

    assert response.status_code == 500
    assert response.json() == {"error": "connection refused"}


def test_generate_unexpected_error_is_500(apply_auth_override, monkeypatch):
    apply_auth_override(app)
    monkeypatch.setattr(
        f"{ROUTER}.plan_generation_service.generate_plans",
        AsyncMock(side_effect=RuntimeError("something broke")),
    )

    response = client.post("/api/ready-plans/generate", json={"city": "Oakland"})

    assert response.status_code == 500
    assert response.json() == {"error": "something broke"}


def test_local_density(apply_auth_override, monkeypatch):
    apply_auth_override(app)
    monkeypatch.setattr(
        f"{ROUTER}.plan_generation_service.load_local_network",
        AsyncMock(
            return_value=LocalNetwork(
                connection_ids=["a", "b", "c", "d"], local_connection_ids=["a", "b", "c"]
            )
        ),
    )

    response = client.get("/api/ready-plans/local-density", params={"city": "Oakland"})

    assert response.status_code == 200
    assert response.json() == {
        "local_friend_count": 3,
        "city": "Oakland",
        "minimum_required": 3,
        "can_generate_plans": True,
        "recommended_count": 5,
    }


def test_local_density_without_connections(apply_auth_override, monkeypatch):
    apply_auth_override(app)
    monkeypatch.setattr(
        f"{ROUTER}.plan_generation_service.load_local_network",
        AsyncMock(return_value=LocalNetwork(connection_ids=[], local_connection_ids=[])),
    )

    response = client.get("/api/ready-plans/local-density", params={"city": "Oakland"})

    assert response.json() == {
        "local_friend_count": 0,
        "city": "Oakland",
        "minimum_required": 3,
        "can_generate_plans": False,
    }


def test_local_density_requires_city(apply_auth_override):
    apply_auth_override(app)

    response = client.get("/api/ready-plans/local-density")

    assert response.status_code == 400
    assert response.json() == {"error": "City is required"}


def test_list_plans_includes_responses(apply_auth_override, monkeypatch):
    apply_auth_override(app)
    rows = [
        _plan_row(
            ready_plan_responses=[
                {"user_id": INVITEE_ID, "response": "accepted", "responded_at": None}
            ]
        )
    ]
    list_plans = AsyncMock(return_value=rows)
    monkeypatch.setattr(f"{ROUTER}.ReadyPlanRepository.list_active_plans", list_plans)

    response = client.get("/api/ready-plans", params={"city": "Oakland"})

    assert response.status_code == 200
    plans = response.json()["plans"]
    assert len(plans) == 1
    assert plans[0]["ready_plan_responses"][0]["response"] == "accepted"
    list_plans.assert_awaited_once_with(USER_ID, "Oakland")
