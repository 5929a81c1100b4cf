"""
API tests for the user and exercise endpoints.

Each test gets a fresh in-memory store injected through
app.dependency_overrides, so no Snowflake account is needed.
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from exercise_tracker.api.dependencies import get_user_repository
from exercise_tracker.config.settings import Settings, get_settings
from exercise_tracker.core.tracking.errors import DuplicateRecordError, StoreUnavailableError
from exercise_tracker.infrastructure.snowflake.client import MockSnowflakeConnection
from exercise_tracker.infrastructure.snowflake.repositories.users import UserRepository
from exercise_tracker.main import app


def make_client(**settings_overrides) -> TestClient:
    connection = MockSnowflakeConnection()
    settings = Settings(snowflake_mock_mode=True, **settings_overrides)

    app.dependency_overrides[get_user_repository] = lambda: UserRepository(connection)
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


class DuplicatingRepository(UserRepository):
    """Repository whose store rejects every new user as a duplicate key."""

    def __init__(self):
        super().__init__(MockSnowflakeConnection())

    def create_user(self, user):
        raise DuplicateRecordError()


@pytest.fixture
def client():
    yield make_client()
    app.dependency_overrides.clear()


@pytest.fixture
def legacy_client():
    yield make_client(legacy_error_responses=True)
    app.dependency_overrides.clear()


def create_user(client: TestClient, username: str = "Alice") -> str:
    response = client.post("/api/users", json={"username": username})
    assert response.status_code == 200
    return response.json()["_id"]


# ---------------------------------------------------------------------------
# Happy Path
# ---------------------------------------------------------------------------

class TestEndToEnd:
    """Create a user, log an exercise, read it back."""

    def test_full_flow(self, client):
        response = client.post("/api/users", json={"username": "Alice"})
        body = response.json()
        assert body["username"] == "Alice"
        user_id = body["_id"]

        response = client.post(
            f"/api/users/{user_id}/exercises",
            json={"description": "run", "duration": 30, "date": "2023-05-01"},
        )
        assert response.status_code == 200
        assert response.json() == {
            "_id": user_id,
            "username": "Alice",
            "description": "run",
            "duration": 30,
            "date": "Mon May 01 2023",
        }

        response = client.get(f"/api/users/{user_id}/logs")
        assert response.status_code == 200
        assert response.json() == {
            "_id": user_id,
            "username": "Alice",
            "count": 1,
            "log": [{"description": "run", "duration": 30, "date": "Mon May 01 2023"}],
        }

    def test_form_encoded_bodies(self, client):
        response = client.post("/api/users", data={"username": "Bob"})
        user_id = response.json()["_id"]

        response = client.post(
            f"/api/users/{user_id}/exercises",
            data={"description": "swim", "duration": "45", "date": "2023-01-01"},
        )

        assert response.json()["duration"] == 45
        assert response.json()["date"] == "Sun Jan 01 2023"

    def test_list_users(self, client):
        alice = create_user(client, "Alice")
        bob = create_user(client, "Bob")
        client.post(f"/api/users/{alice}/exercises", json={"description": "run", "duration": 5})

        response = client.get("/api/users")

        assert response.status_code == 200
        assert response.json() == [
            {"username": "Alice", "_id": alice, "__v": 1},
            {"username": "Bob", "_id": bob, "__v": 0},
        ]

    def test_log_filters(self, client):
        user_id = create_user(client)
        for description, day in [
            ("a", "2023-01-15"),
            ("b", "2022-12-31"),
            ("c", "2023-01-02"),
            ("d", "2023-01-20"),
        ]:
            client.post(
                f"/api/users/{user_id}/exercises",
                json={"description": description, "duration": 10, "date": day},
            )

        response = client.get(
            f"/api/users/{user_id}/logs",
            params={"from": "2023-01-01", "to": "2023-01-31", "limit": "2"},
        )

        body = response.json()
        assert body["count"] == 2
        assert [entry["description"] for entry in body["log"]] == ["a", "c"]

    def test_root_and_health(self, client):
        assert client.get("/").json()["message"] == "Exercise Tracker API"
        assert client.get("/health").json()["status"] == "ok"

        ready = client.get("/health/ready")
        assert ready.status_code == 200
        assert ready.json()["status"] == "ready"


# ---------------------------------------------------------------------------
# Errors With Status Codes
# ---------------------------------------------------------------------------

class TestErrorStatusCodes:

    def test_unknown_user_log_is_404(self, client):
        response = client.get(f"/api/users/{uuid4()}/logs")
        assert response.status_code == 404
        assert response.json() == {"detail": "User not found."}

    def test_missing_fields_is_400(self, client):
        user_id = create_user(client)
        response = client.post(f"/api/users/{user_id}/exercises", json={"description": "run"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing fields."

    def test_invalid_duration_is_400(self, client):
        user_id = create_user(client)
        response = client.post(
            f"/api/users/{user_id}/exercises",
            json={"description": "run", "duration": "601"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == 'The duration "601" is not valid; must be in minutes'

    def test_invalid_date_is_400(self, client):
        user_id = create_user(client)
        response = client.post(
            f"/api/users/{user_id}/exercises",
            json={"description": "run", "duration": 5, "date": "2023-02-30"},
        )
        assert response.status_code == 400

    def test_invalid_user_id_is_400(self, client):
        response = client.post(
            "/api/users/not-a-uuid/exercises",
            json={"description": "run", "duration": 5},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid user ID."

    def test_unknown_user_exercise_is_404(self, client):
        response = client.post(
            f"/api/users/{uuid4()}/exercises",
            json={"description": "run", "duration": 5},
        )
        assert response.status_code == 404

    def test_blank_username_is_400(self, client):
        response = client.post("/api/users", json={"username": ""})
        assert response.status_code == 400

    def test_blank_username_keeps_specific_detail(self, client):
        response = client.post("/api/users", json={"username": ""})
        assert response.json() == {"detail": "Username is required."}

    def test_duplicate_user_is_409(self, client):
        app.dependency_overrides[get_user_repository] = DuplicatingRepository

        response = client.post("/api/users", json={"username": "Alice"})

        assert response.status_code == 409
        assert response.json() == {"detail": "Duplicate record."}

    def test_store_unavailable_is_503(self, client):
        def unavailable():
            raise StoreUnavailableError()

        app.dependency_overrides[get_user_repository] = unavailable

        response = client.get("/api/users")

        assert response.status_code == 503
        assert response.json() == {"detail": "Record store unavailable."}


# ---------------------------------------------------------------------------
# Legacy Error Bodies
# ---------------------------------------------------------------------------

class TestLegacyErrorBodies:
    """Every error is HTTP 200 with a plain message body."""

    def test_unknown_user_log(self, legacy_client):
        response = legacy_client.get(f"/api/users/{uuid4()}/logs")
        assert response.status_code == 200
        assert response.json() == "User not found."

    def test_missing_fields(self, legacy_client):
        user_id = create_user(legacy_client)
        response = legacy_client.post(f"/api/users/{user_id}/exercises", json={})
        assert response.status_code == 200
        assert response.json() == "Missing fields."

    def test_invalid_user_id(self, legacy_client):
        response = legacy_client.post(
            "/api/users/123/exercises",
            json={"description": "run", "duration": 5},
        )
        assert response.json() == "Invalid user ID."

    def test_invalid_date(self, legacy_client):
        user_id = create_user(legacy_client)
        response = legacy_client.post(
            f"/api/users/{user_id}/exercises",
            json={"description": "run", "duration": 5, "date": "01/05/2023"},
        )
        assert response.json() == 'The date "01/05/2023" is not in the correct format.'

    def test_invalid_date_is_reported_before_missing_fields(self, legacy_client):
        user_id = create_user(legacy_client)
        response = legacy_client.post(
            f"/api/users/{user_id}/exercises",
            json={"duration": 5, "date": "May 1"},
        )
        assert response.json() == 'The date "May 1" is not in the correct format.'

    def test_create_user_failure_is_generic_message_object(self, legacy_client):
        response = legacy_client.post("/api/users", json={})
        assert response.status_code == 200
        assert response.json() == {"message": "Unable to create new user."}

    def test_blank_username_is_generic_message_object(self, legacy_client):
        response = legacy_client.post("/api/users", json={"username": "  "})
        assert response.json() == {"message": "Unable to create new user."}

    def test_duplicate_user_is_duplicate_message_object(self, legacy_client):
        app.dependency_overrides[get_user_repository] = DuplicatingRepository

        response = legacy_client.post("/api/users", json={"username": "Alice"})

        assert response.status_code == 200
        assert response.json() == {"message": "Duplicate record."}
