import pytest
from fastapi.testclient import TestClient

from casedesk.main import create_app


@pytest.fixture
def client(desk):
    with TestClient(create_app(desk)) as test_client:
        yield test_client


def _login(client: TestClient, username: str, password: str = "abc123@") -> dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def alice_headers(client):
    return _login(client, "alice")


@pytest.fixture
def bob_headers(client):
    return _login(client, "bob")


@pytest.fixture
def profile_id(client, alice_headers):
    response = client.post(
        "/api/v1/profiles/",
        json={"phone_number": "0900000001", "cccd_front": "f", "cccd_back": "b"},
        headers=alice_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["profile"]["id"]


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_login_and_me(client, alice_headers):
    me = client.get("/api/v1/auth/me", headers=alice_headers)

    assert me.status_code == 200
    assert me.json()["username"] == "alice"
    assert "password" not in me.json()


def test_bad_login_and_missing_token(client):
    assert client.post("/api/v1/auth/login", json={"username": "alice", "password": "x"}).status_code == 401
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_created_profile_is_locked_by_creator(client, alice_headers, profile_id):
    listed = client.get("/api/v1/profiles/", headers=alice_headers).json()

    assert listed["counts"] == {"pending": 1, "approved": 0}
    assert listed["profiles"][0]["id"] == profile_id
    assert listed["profiles"][0]["viewedByName"] == "Alice Nguyen"


def test_lock_conflict_is_409(client, bob_headers, profile_id):
    response = client.post(f"/api/v1/profiles/{profile_id}/open", params={"mode": "view"}, headers=bob_headers)

    assert response.status_code == 409
    assert "Alice Nguyen" in response.json()["detail"]["message"]


def test_duplicate_phone_asks_for_confirmation(client, bob_headers, profile_id):
    body = {"phone_number": "0900000001", "cccd_front": "f", "cccd_back": "b"}

    refused = client.post("/api/v1/profiles/", json=body, headers=bob_headers)
    assert refused.status_code == 409
    assert refused.json()["detail"]["duplicates"] == [profile_id]

    dupes = client.get("/api/v1/profiles/duplicates", params={"phone": "0900000001"}, headers=bob_headers)
    assert dupes.json()["duplicates"] == [profile_id]

    confirmed = client.post("/api/v1/profiles/", json={**body, "confirm_duplicate": True}, headers=bob_headers)
    assert confirmed.status_code == 201


def test_document_flow_then_complete(client, alice_headers, profile_id):
    added = client.post(
        f"/api/v1/profiles/{profile_id}/documents",
        json={"type": "license", "image_front": "lf", "image_back": "lb"},
        headers=alice_headers,
    )
    assert added.status_code == 201
    assert added.json()["profile"]["documents"][0]["typeName"] == "Driving licence"

    completed = client.post(f"/api/v1/profiles/{profile_id}/complete", headers=alice_headers)
    assert completed.status_code == 200
    assert completed.json()["profile"]["status"] == "completed"
    assert completed.json()["view"] == "list"


def test_read_only_open_blocks_delete(client, alice_headers, bob_headers, profile_id):
    doc_id = client.post(
        f"/api/v1/profiles/{profile_id}/documents",
        json={"type": "license", "image_front": "lf", "image_back": "lb"},
        headers=alice_headers,
    ).json()["profile"]["documents"][0]["id"]
    client.post(f"/api/v1/profiles/{profile_id}/close", headers=alice_headers)

    opened = client.post(f"/api/v1/profiles/{profile_id}/open", params={"mode": "edit"}, headers=bob_headers)
    assert opened.status_code == 200
    assert opened.json()["read_only"] is True

    deleted = client.delete(f"/api/v1/profiles/{profile_id}/documents/{doc_id}", headers=bob_headers)
    assert deleted.status_code == 403


def test_approve_then_changes_are_409(client, alice_headers, profile_id):
    approved = client.post(
        f"/api/v1/profiles/{profile_id}/approve",
        json={"push_to_external": True},
        headers=alice_headers,
    )
    assert approved.status_code == 200
    assert approved.json()["profile"]["isPushedToExternal"] is True

    client.post(f"/api/v1/profiles/{profile_id}/open", params={"mode": "edit"}, headers=alice_headers)
    response = client.post(
        f"/api/v1/profiles/{profile_id}/documents",
        json={"type": "other", "image_front": "f", "image_back": "b"},
        headers=alice_headers,
    )
    assert response.status_code == 409

    listed = client.get("/api/v1/profiles/", params={"tab": "approved"}, headers=alice_headers).json()
    assert [p["id"] for p in listed["profiles"]] == [profile_id]


def test_unknown_profile_is_404(client, alice_headers):
    assert client.post("/api/v1/profiles/missing/open", headers=alice_headers).status_code == 404


def test_push_reports_failure_as_result(client, alice_headers, profile_id, push_client):
    push_client.result.success = False
    push_client.result.message = "offline"

    response = client.post(f"/api/v1/profiles/{profile_id}/push", headers=alice_headers)

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Upload failed: offline"}


def test_logout_releases_lock_and_token(client, alice_headers, bob_headers, profile_id):
    assert client.post("/api/v1/auth/logout", headers=alice_headers).status_code == 200
    assert client.get("/api/v1/auth/me", headers=alice_headers).status_code == 401

    opened = client.post(f"/api/v1/profiles/{profile_id}/open", headers=bob_headers)
    assert opened.status_code == 200


def test_user_management_is_admin_only(client, alice_headers):
    body = {"full_name": "Chi Le", "username": "chi", "area": "East Ward"}
    assert client.post("/api/v1/users/", json=body, headers=alice_headers).status_code == 403

    admin_headers = _login(client, "admin", "admin123")
    created = client.post("/api/v1/users/", json=body, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["role"] == "staff"
    assert client.post("/api/v1/users/", json=body, headers=admin_headers).status_code == 409
    assert len(client.get("/api/v1/users/", headers=admin_headers).json()) == 4


def test_dashboard(client, alice_headers, profile_id):
    stats = client.get("/api/v1/reports/dashboard", headers=alice_headers).json()

    assert stats["total_profiles"] == 1
    assert stats["areas"] == []
