import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from planelog.core.database import Base, get_db
from planelog.main import app
from planelog.models.user import User
from planelog.core.security import create_access_token, create_refresh_token, verify_access_token
from conftest import auth_headers, register


def test_register_returns_token_pair(client):
    body = register(client)
    assert body["message"]
    assert verify_access_token(body["token"]) == "a@x.com"
    assert body["refreshToken"]


def test_register_same_email_twice_conflicts(client):
    register(client)
    response = client.post("/api/register", json={
        "username": "B", "email": "a@x.com", "password": "other"})
    assert response.status_code == 400
    assert response.json()["message"] == "Email already registered"


def test_register_requires_all_fields(client):
    for payload in (
        {"email": "a@x.com", "password": "pw1"},
        {"username": "A", "email": "", "password": "pw1"},
        {"username": "A", "email": "a@x.com"},
    ):
        response = client.post("/api/register", json=payload)
        assert response.status_code == 400
        assert "message" in response.json()


def test_login_returns_tokens_and_username(client):
    register(client)
    response = client.post("/api/login", json={"email": "a@x.com", "password": "pw1"})
    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "A"
    assert verify_access_token(body["token"]) == "a@x.com"
    assert body["refreshToken"]


def test_login_failures_are_indistinguishable(client):
    register(client)
    wrong_password = client.post("/api/login", json={"email": "a@x.com", "password": "nope"})
    unknown_email = client.post("/api/login", json={"email": "b@x.com", "password": "pw1"})

    assert wrong_password.status_code == unknown_email.status_code == 400
    assert wrong_password.json() == unknown_email.json() == {"message": "Invalid credentials"}


def test_logout_is_stateless(client):
    response = client.post("/api/logout")
    assert response.status_code == 200
    assert response.json()["message"]


def test_refresh_token_issues_new_access_token(client):
    body = register(client)
    response = client.post("/api/refresh-token", json={"token": body["refreshToken"]})
    assert response.status_code == 200
    assert verify_access_token(response.json()["token"]) == "a@x.com"

    # Not rotated: the same refresh token keeps working
    again = client.post("/api/refresh-token", json={"token": body["refreshToken"]})
    assert again.status_code == 200


def test_refresh_token_missing_or_invalid(client):
    assert client.post("/api/refresh-token", json={}).status_code == 401
    assert client.post("/api/refresh-token", json={"token": "garbage"}).status_code == 403

    access_token = create_access_token("a@x.com")
    assert client.post("/api/refresh-token", json={"token": access_token}).status_code == 403

    expired = create_refresh_token("a@x.com", expires_delta=timedelta(seconds=-5))
    assert client.post("/api/refresh-token", json={"token": expired}).status_code == 403


def test_protected_route_distinguishes_missing_expired_and_invalid(client):
    register(client)

    missing = client.get("/api/profile")
    assert missing.status_code == 401

    expired_token = create_access_token("a@x.com", expires_delta=timedelta(seconds=-5))
    expired = client.get("/api/profile", headers=auth_headers(expired_token))
    assert expired.status_code == 403
    assert expired.json()["message"] == "Token expired"
    assert "expiredAt" in expired.json()

    invalid = client.get("/api/profile", headers=auth_headers("garbage"))
    assert invalid.status_code == 403
    assert invalid.json()["message"] == "Invalid token"


def test_concurrent_registrations_for_one_email_admit_one(client, tmp_path):
    # File database with a connection per session, so requests really overlap
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=NullPool,
    )
    Base.metadata.create_all(bind=file_engine)
    FileSession = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

    def get_file_db():
        db = FileSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = get_file_db
    attempts = 6
    start = threading.Barrier(attempts)

    def attempt(i):
        start.wait()
        return client.post("/api/register", json={
            "username": f"user{i}", "email": "race@x.com", "password": "pw1"})

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        responses = list(pool.map(attempt, range(attempts)))

    statuses = sorted(r.status_code for r in responses)
    assert statuses == [201] + [400] * (attempts - 1)
    assert all(r.json()["message"] == "Email already registered"
               for r in responses if r.status_code == 400)

    with FileSession() as db:
        assert db.query(User).filter(User.email == "race@x.com").count() == 1
    file_engine.dispose()
