from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from planelog.core.database import get_db
from planelog.main import app


def test_health_ok(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "connected"
    assert body["timestamp"]
    assert body["uptime"] >= 0


def test_health_degraded_when_store_unreachable(client):
    broken = MagicMock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
    app.dependency_overrides[get_db] = lambda: broken

    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "disconnected"


def test_root(client):
    assert client.get("/").json()["message"] == "Planelog API"
