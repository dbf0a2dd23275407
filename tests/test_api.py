"""HTTP tests for the FastAPI application."""

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from rosterlink.app import app
from rosterlink.config import (
    IDENTITY_TOKEN_ALGORITHM,
    IDENTITY_TOKEN_AUDIENCE,
    IDENTITY_TOKEN_SECRET,
)
from rosterlink.core.database import get_db


def auth(sub, email, verified=True):
    """Authorization header carrying an identity provider token."""
    claims = {"sub": sub, "email": email, "email_verified": verified}
    if IDENTITY_TOKEN_AUDIENCE:
        claims["aud"] = IDENTITY_TOKEN_AUDIENCE
    token = jwt.encode(claims, IDENTITY_TOKEN_SECRET, algorithm=IDENTITY_TOKEN_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


TEACHER = auth("teacher-1", "teacher@school.org")
CO_TEACHER = auth("teacher-2", "co@school.org")
PARENT = auth("guardian-1", "p@x.com")


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def signup(client, headers, role, first_name="Pat", last_name="Doe"):
    response = client.post(
        "/api/accounts",
        json={"role": role, "first_name": first_name, "last_name": last_name},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def new_class(client, name="Class A"):
    response = client.post("/api/classes", json={"name": name}, headers=TEACHER)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def new_student(client, class_id, emails=("p@x.com",), first_name="Amy"):
    payload = {
        "first_name": first_name,
        "last_name": "Lee",
        "guardians": [
            {"first_name": "Pat", "last_name": "Doe", "email": email} for email in emails
        ],
    }
    response = client.post(f"/api/classes/{class_id}/students", json=payload, headers=TEACHER)
    assert response.status_code == 201, response.text
    return response.json()["id"]


class TestAuthentication:
    def test_health_is_public(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}

    def test_missing_token(self, client):
        assert client.get("/api/accounts/me").status_code in (401, 403)

    def test_bad_token(self, client):
        headers = {"Authorization": "Bearer not-a-token"}
        assert client.get("/api/accounts/me", headers=headers).status_code == 401

    def test_session_start_without_account(self, client):
        assert client.post("/api/session/start", headers=PARENT).status_code == 404


class TestAccounts:
    def test_signup_and_profile(self, client):
        created = signup(client, TEACHER, "teacher", "Tina", "Teach")
        assert created["account"]["email"] == "teacher@school.org"
        assert created["newly_linked_ids"] == []

        response = client.patch(
            "/api/accounts/me", json={"notifications_enabled": False}, headers=TEACHER
        )
        assert response.status_code == 200
        assert response.json()["notifications_enabled"] is False

    def test_duplicate_signup(self, client):
        signup(client, TEACHER, "teacher")
        response = client.post(
            "/api/accounts",
            json={"role": "teacher", "first_name": "T", "last_name": "T"},
            headers=TEACHER,
        )
        assert response.status_code == 409


class TestGuardianFlow:
    """Teacher enrolls a child, the guardian signs up later and sees it."""

    def test_end_to_end(self, client):
        signup(client, TEACHER, "teacher")
        class_id = new_class(client)
        entry_id = new_student(client, class_id)

        created = signup(client, PARENT, "guardian")
        assert created["newly_linked_ids"] == [entry_id]
        assert created["account"]["linked_entry_ids"] == [entry_id]

        response = client.post(
            f"/api/students/{entry_id}/homework", json={"title": "Read"}, headers=TEACHER
        )
        assert response.status_code == 201

        children = client.get("/api/children", headers=PARENT).json()
        assert [c["display_id"] for c in children] == [entry_id]
        homework = client.get(f"/api/children/{entry_id}/homework", headers=PARENT).json()
        assert [h["title"] for h in homework] == ["Read"]
        assert client.get(f"/api/students/{entry_id}", headers=PARENT).status_code == 200

        session = client.post("/api/session/start", headers=PARENT).json()
        assert session["newly_linked_ids"] == []

    def test_unverified_signup_links_nothing(self, client):
        signup(client, TEACHER, "teacher")
        new_student(client, new_class(client))

        created = signup(client, auth("guardian-1", "p@x.com", verified=False), "guardian")

        assert created["newly_linked_ids"] == []

    def test_unlinked_guardian_is_forbidden(self, client):
        signup(client, TEACHER, "teacher")
        entry_id = new_student(client, new_class(client))
        stranger = auth("guardian-9", "other@x.com")
        signup(client, stranger, "guardian")

        response = client.get(f"/api/students/{entry_id}", headers=stranger)
        assert response.status_code == 403
        response = client.get("/api/children/whatever/homework", headers=stranger)
        assert response.status_code == 404

    def test_guardian_cap_over_http(self, client):
        signup(client, TEACHER, "teacher")
        entry_id = new_student(client, new_class(client), emails=("a@x.com", "b@x.com"))

        response = client.post(
            f"/api/students/{entry_id}/guardians",
            json={"first_name": "C", "last_name": "D", "email": "c@x.com"},
            headers=TEACHER,
        )
        assert response.status_code == 400

    def test_delete_student(self, client):
        signup(client, TEACHER, "teacher")
        class_id = new_class(client)
        entry_id = new_student(client, class_id)
        client.post(
            f"/api/students/{entry_id}/attendance",
            json={"date": "2024-09-02", "status": "present"},
            headers=TEACHER,
        )

        response = client.delete(f"/api/classes/{class_id}/students/{entry_id}", headers=TEACHER)

        assert response.status_code == 200
        assert response.json()["records_deleted"] == 1
        assert client.get(f"/api/classes/{class_id}", headers=TEACHER).json()["entry_count"] == 0
        assert client.get(f"/api/students/{entry_id}", headers=TEACHER).status_code == 404


class TestClassAccess:
    def test_guardian_cannot_create_class(self, client):
        signup(client, PARENT, "guardian")
        response = client.post("/api/classes", json={"name": "Nope"}, headers=PARENT)
        assert response.status_code == 403

    def test_co_admin_flow(self, client):
        signup(client, TEACHER, "teacher")
        class_id = new_class(client)
        new_student(client, class_id)

        response = client.post(
            f"/api/classes/{class_id}/admins", json={"email": "co@school.org"}, headers=TEACHER
        )
        assert response.json()["status"] == "pending"
        assert client.get(f"/api/classes/{class_id}", headers=CO_TEACHER).status_code == 404

        created = signup(client, CO_TEACHER, "teacher", "Cora", "Admin")
        assert created["newly_linked_ids"] == [class_id]

        students = client.get(f"/api/classes/{class_id}/students", headers=CO_TEACHER)
        assert students.status_code == 200
        assert len(students.json()) == 1
        listed = client.get("/api/classes", headers=CO_TEACHER).json()
        assert [c["id"] for c in listed] == [class_id]

        assert client.delete(f"/api/classes/{class_id}", headers=CO_TEACHER).status_code == 403
        response = client.post(
            f"/api/classes/{class_id}/admins", json={"email": "x@school.org"}, headers=CO_TEACHER
        )
        assert response.status_code == 403

    def test_self_admin_rejected(self, client):
        signup(client, TEACHER, "teacher")
        class_id = new_class(client)
        response = client.post(
            f"/api/classes/{class_id}/admins",
            json={"email": "teacher@school.org"},
            headers=TEACHER,
        )
        assert response.status_code == 400
