"""
Tests for API endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from src.api.dependencies import get_current_user
from src.config import settings
from src.database.database import Base, get_db
from src.models.user import User


@pytest.fixture
def db_session():
    """Create a test database session shared with the app."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    # Override the get_db dependency
    def override_get_db():
        try:
            yield session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    yield session

    session.close()
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Enable test tokens and keep AI summaries off."""
    monkeypatch.setattr(settings, "ALLOW_TEST_USERS", True)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)


@pytest.fixture
def client(db_session):
    """Create a test client."""
    return TestClient(app)


def auth(username: str) -> dict:
    return {"Authorization": f"Bearer testuser-{username}"}


@pytest.fixture
def team(client):
    """Team created by test1 with test2 as a developer."""
    response = client.post("/api/teams/", headers=auth("test1"), json={
        "name": "Checkout Squad",
        "product_name": "Checkout",
        "description": "Payments",
        "settings": {"visibility": "PUBLIC"}
    })
    assert response.status_code == 201
    team = response.json()["data"]

    response = client.post(f"/api/teams/{team['id']}/members", headers=auth("test1"), json={
        "email": "test2@test.com",
        "name": "Test test2",
        "department": "DEV"
    })
    assert response.status_code == 200
    return response.json()["data"]


def member_id(team: dict, email: str) -> int:
    for member in team["members"]:
        if member["user"]["email"] == email:
            return member["user_id"]
    raise AssertionError(f"{email} is not a member")


@pytest.fixture
def link(client, team):
    response = client.post("/api/links/", headers=auth("test1"), json={
        "team_id": team["id"],
        "title": "API contract",
        "purpose": "Agree on the payment payload",
        "participants": [member_id(team, "test2@test.com")],
        "meeting_type": "QUICK_SYNC"
    })
    assert response.status_code == 201
    return response.json()["data"]


class TestPublicEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "Tether API"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "OK"


class TestAuth:
    """Test cases for authentication."""

    def test_missing_token(self, client):
        response = client.get("/api/users/me")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Unauthorized"

    def test_invalid_test_user(self, client):
        response = client.get("/api/users/me", headers=auth("nobody"))
        assert response.status_code == 401

    def test_first_request_creates_profile(self, client, db_session):
        response = client.get("/api/users/me", headers=auth("test3"))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["email"] == "test3@test.com"
        assert data["onboarded"] is False
        assert db_session.query(User).count() == 1

    def test_google_login_with_test_token(self, client):
        response = client.post("/api/auth/google", json={"id_token": "testuser-test1"})

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "test1@test.com"

    def test_mark_onboarded(self, client):
        response = client.put("/api/users/onboarded", headers=auth("test1"))

        assert response.status_code == 200
        assert response.json()["data"]["onboarded"] is True

    def test_current_user_override(self, client, db_session):
        user = User(name="Override", email="override@company.com")
        db_session.add(user)
        db_session.commit()
        app.dependency_overrides[get_current_user] = lambda: user

        response = client.get("/api/users/profile")

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "override@company.com"


class TestTeamEndpoints:
    """Test cases for team endpoints."""

    def test_create_team(self, client, team):
        assert team["name"] == "Checkout Squad"
        assert team["settings"]["visibility"] == "PUBLIC"
        assert team["stats"]["active_members"] == 2
        roles = {member["user"]["email"]: member["role"] for member in team["members"]}
        assert roles == {"test1@test.com": "OWNER", "test2@test.com": "DEV"}

    def test_create_team_validation(self, client):
        response = client.post("/api/teams/", headers=auth("test1"), json={
            "name": "ab",
            "product_name": "Checkout"
        })

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation error"
        assert body["details"][0]["field"] == "name"

    def test_duplicate_team(self, client, team):
        response = client.post("/api/teams/", headers=auth("test1"), json={
            "name": "Checkout Squad",
            "product_name": "Checkout"
        })
        assert response.status_code == 409

    def test_list_teams(self, client, team):
        response = client.get("/api/teams/", headers=auth("test2"))

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["user_role"] == "MEMBER"

    def test_get_unknown_team(self, client):
        response = client.get("/api/teams/999", headers=auth("test1"))

        assert response.status_code == 404
        assert response.json()["error"] == "Team not found"

    def test_add_existing_member(self, client, team):
        response = client.post(f"/api/teams/{team['id']}/members", headers=auth("test1"), json={
            "email": "TEST2@test.com",
            "name": "Test test2",
            "department": "DEV"
        })
        assert response.status_code == 409

    def test_add_member_invalid_email(self, client, team):
        response = client.post(f"/api/teams/{team['id']}/members", headers=auth("test1"), json={
            "email": "not-an-email",
            "name": "Someone",
            "department": "DEV"
        })
        assert response.status_code == 400

    def test_outsider_cannot_add_members(self, client, team):
        response = client.post(f"/api/teams/{team['id']}/members", headers=auth("test3"), json={
            "email": "someone@company.com",
            "name": "Someone",
            "department": "LEGAL"
        })
        assert response.status_code == 403

    def test_remove_member(self, client, team):
        user_id = member_id(team, "test2@test.com")
        response = client.delete(f"/api/teams/{team['id']}/members/{user_id}", headers=auth("test1"))

        assert response.status_code == 200
        assert response.json()["data"]["stats"]["active_members"] == 1

        profile = client.get("/api/users/profile", headers=auth("test2")).json()["data"]
        assert profile["teams"] == []

    def test_cannot_remove_owner(self, client, team):
        owner_id = member_id(team, "test1@test.com")
        response = client.delete(f"/api/teams/{team['id']}/members/{owner_id}", headers=auth("test1"))
        assert response.status_code == 400

    def test_update_team_owner_only(self, client, team):
        response = client.put(f"/api/teams/{team['id']}", headers=auth("test2"), json={"description": "x"})
        assert response.status_code == 403

        response = client.put(f"/api/teams/{team['id']}", headers=auth("test1"), json={
            "description": "Payments and refunds",
            "status": "PAUSED"
        })
        assert response.status_code == 200
        assert response.json()["data"]["description"] == "Payments and refunds"
        assert response.json()["data"]["status"] == "PAUSED"

    def test_team_stats(self, client, team):
        response = client.get(f"/api/teams/{team['id']}/stats", headers=auth("test1"))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["summary"]["total_members"] == 2
        assert data["team"]["reputation_badge"]["type"] == "GHOST_MODE"

    def test_list_members(self, client, team):
        response = client.get(f"/api/teams/{team['id']}/members", headers=auth("test1"))
        assert len(response.json()["data"]) == 2

    def test_delete_team(self, client, team):
        response = client.delete(f"/api/teams/{team['id']}", headers=auth("test1"))
        assert response.status_code == 200

        response = client.get(f"/api/teams/{team['id']}", headers=auth("test1"))
        assert response.status_code == 404


class TestLinkEndpoints:
    """Test cases for link endpoints."""

    def test_create_link(self, client, team, link):
        assert link["status"] == "PENDING"
        assert link["metrics"]["participant_count"] == 2
        assert link["priority"] == "MEDIUM"

        stats = client.get(f"/api/teams/{team['id']}/stats", headers=auth("test1")).json()["data"]
        assert stats["summary"]["total_links"] == 1

    def test_create_link_requires_participants(self, client, team):
        response = client.post("/api/links/", headers=auth("test1"), json={
            "team_id": team["id"],
            "title": "API contract",
            "purpose": "Agree on the payment payload",
            "participants": [],
            "meeting_type": "QUICK_SYNC"
        })
        assert response.status_code == 400

    def test_create_link_invalid_meeting_type(self, client, team):
        response = client.post("/api/links/", headers=auth("test1"), json={
            "team_id": team["id"],
            "title": "API contract",
            "purpose": "Agree on the payment payload",
            "participants": [1],
            "meeting_type": "COFFEE"
        })
        assert response.status_code == 400

    def test_outsider_cannot_create_link(self, client, team):
        response = client.post("/api/links/", headers=auth("test3"), json={
            "team_id": team["id"],
            "title": "API contract",
            "purpose": "Agree on the payment payload",
            "participants": [1],
            "meeting_type": "QUICK_SYNC"
        })
        assert response.status_code == 403

    def test_list_links(self, client, link):
        response = client.get("/api/links/", headers=auth("test2"))

        assert response.status_code == 200
        assert response.json()["count"] == 1

        response = client.get("/api/links/?status=COMPLETED", headers=auth("test2"))
        assert response.json()["count"] == 0

    def test_team_links(self, client, team, link):
        response = client.get(f"/api/links/team/{team['id']}", headers=auth("test1"))
        assert response.json()["data"][0]["id"] == link["id"]

        response = client.get(f"/api/links/team/{team['id']}", headers=auth("test3"))
        assert response.status_code == 403

    def test_non_participant_denied(self, client, link):
        response = client.get(f"/api/links/{link['id']}", headers=auth("test3"))

        assert response.status_code == 403
        assert response.json()["error"] == "Access denied"

    def test_unknown_link(self, client):
        response = client.get("/api/links/999", headers=auth("test1"))

        assert response.status_code == 404
        assert response.json()["error"] == "Link not found"

    def test_complete_before_start(self, client, link):
        response = client.post(f"/api/links/{link['id']}/complete", headers=auth("test1"), json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid status"

    def test_meeting_lifecycle(self, client, team, link):
        link_id = link["id"]

        response = client.post(f"/api/links/{link_id}/start", headers=auth("test2"))
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "IN_PROGRESS"

        response = client.post(f"/api/links/{link_id}/outcomes", headers=auth("test1"), json={
            "type": "ACTION_ITEM",
            "description": "Update the OpenAPI document"
        })
        assert response.status_code == 201
        outcome_id = response.json()["data"]["outcomes"][0]["id"]

        response = client.put(
            f"/api/links/{link_id}/outcomes/{outcome_id}",
            headers=auth("test1"),
            json={"status": "COMPLETED"}
        )
        assert response.json()["data"]["metrics"]["completion_rate"] == 100

        response = client.post(f"/api/links/{link_id}/complete", headers=auth("test1"), json={
            "duration": 30,
            "notes": "Payload agreed"
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "COMPLETED"
        assert data["duration"] == 30
        assert data["ai_summary"]["content"] == ""

        stats = client.get(f"/api/teams/{team['id']}/stats", headers=auth("test1")).json()["data"]
        assert stats["summary"]["response_rate"] == 100
        assert stats["team"]["reputation_badge"]["type"] == "SUPER_RESPONDERS"

    def test_negative_duration(self, client, link):
        client.post(f"/api/links/{link['id']}/start", headers=auth("test1"))
        response = client.post(f"/api/links/{link['id']}/complete", headers=auth("test1"), json={
            "duration": -5
        })
        assert response.status_code == 400

    def test_schedule_then_cancel(self, client, link):
        response = client.post(f"/api/links/{link['id']}/schedule", headers=auth("test1"), json={
            "scheduled_at": "2030-01-15T10:00:00"
        })
        assert response.json()["data"]["status"] == "SCHEDULED"

        response = client.post(f"/api/links/{link['id']}/cancel", headers=auth("test1"))
        assert response.json()["data"]["status"] == "CANCELLED"

        response = client.post(f"/api/links/{link['id']}/start", headers=auth("test1"))
        assert response.status_code == 400

    def test_no_show(self, client, link):
        response = client.post(f"/api/links/{link['id']}/no-show", headers=auth("test1"))
        assert response.json()["data"]["status"] == "NO_SHOW"

    def test_update_link(self, client, link):
        response = client.put(f"/api/links/{link['id']}", headers=auth("test1"), json={
            "title": "Payment API contract",
            "priority": "HIGH"
        })
        data = response.json()["data"]
        assert data["title"] == "Payment API contract"
        assert data["priority"] == "HIGH"
        assert data["status"] == "PENDING"

    def test_delete_link(self, client, link):
        response = client.delete(f"/api/links/{link['id']}", headers=auth("test1"))
        assert response.status_code == 200

        response = client.get(f"/api/links/{link['id']}", headers=auth("test1"))
        assert response.status_code == 404


class TestUserAndDashboardEndpoints:
    """Test cases for user and dashboard endpoints."""

    def test_update_profile(self, client):
        response = client.put("/api/users/profile", headers=auth("test1"), json={
            "name": "Tess One",
            "role": "DESIGN",
            "settings": {"notifications": {"email": False}, "timezone": "Europe/Paris"}
        })

        data = response.json()["data"]
        assert data["name"] == "Tess One"
        assert data["role"] == "DESIGN"
        assert data["settings"]["notifications"]["email"] is False
        assert data["settings"]["timezone"] == "Europe/Paris"

    def test_user_stats(self, client, link):
        response = client.get("/api/users/stats", headers=auth("test1"))

        data = response.json()["data"]
        assert data["total_links"] == 1
        assert data["reputation_score"] == 80
        assert data["recent_activity"][0]["title"] == "API contract"
        assert data["team_performance"][0]["team_name"] == "Checkout Squad"

    def test_leaderboard(self, client, link):
        response = client.get("/api/users/leaderboard", headers=auth("test1"))

        data = response.json()["data"]
        assert data[0]["rank"] == 1
        assert data[0]["user"]["email"] == "test1@test.com"

    def test_search(self, client, team):
        response = client.get("/api/users/search?q=test2", headers=auth("test1"))
        assert [user["email"] for user in response.json()["data"]] == ["test2@test.com"]

        response = client.get("/api/users/search?q=t", headers=auth("test1"))
        assert response.status_code == 400

    def test_get_user_by_id(self, client, team):
        user_id = member_id(team, "test2@test.com")
        response = client.get(f"/api/users/{user_id}", headers=auth("test1"))
        assert response.json()["data"]["email"] == "test2@test.com"

        response = client.get("/api/users/999", headers=auth("test1"))
        assert response.status_code == 404

    def test_overview(self, client, link):
        response = client.get("/api/dashboard/overview", headers=auth("test2"))

        data = response.json()["data"]
        assert data["summary"]["total_teams"] == 1
        assert len(data["recent_links"]) == 1

    def test_team_dashboard(self, client, team):
        response = client.get(f"/api/dashboard/team/{team['id']}", headers=auth("test1"))
        assert response.json()["data"]["user_role"] == "OWNER"

        response = client.get(f"/api/dashboard/team/{team['id']}", headers=auth("test3"))
        assert response.status_code == 403

    def test_organization_dashboard(self, client, team):
        response = client.get("/api/dashboard/cxo", headers=auth("test1"))

        data = response.json()["data"]
        assert data["org_metrics"]["total_teams"] == 1
        assert data["teams_needing_attention"][0]["name"] == "Checkout Squad"

    def test_analytics(self, client, link):
        response = client.get("/api/dashboard/analytics?period=7d", headers=auth("test1"))

        data = response.json()["data"]
        assert data["period"] == "7d"
        assert data["links_analytics"][0]["count"] == 1

    def test_analytics_unknown_period_defaults(self, client):
        response = client.get("/api/dashboard/analytics?period=1y", headers=auth("test1"))

        assert response.status_code == 200
        assert response.json()["data"]["period"] == "30d"
