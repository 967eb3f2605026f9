import os
import tempfile

# Must be set before planelog is imported: settings and the engine are module-level
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="planelog-uploads-")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from planelog.core.database import Base, SessionLocal, engine
from planelog.main import app
from planelog.models import plane, user  # noqa: F401


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    # No context manager: the lifespan (real database + scheduler) is not started
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, username="A", email="a@x.com", password="pw1"):
    response = client.post("/api/register", json={
        "username": username, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def add_plane(client, token, **overrides):
    data = {
        "airport": "LDZA",
        "airline": "Croatia Airlines",
        "planeModel": "A320",
        "registration": "9A-CTA",
    }
    data.update(overrides)
    return client.post("/api/add-plane", data=data, headers=auth_headers(token))
