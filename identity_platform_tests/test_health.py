"""
Tests for liveness, readiness and the service root.
"""
from unittest.mock import patch


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "test"
    assert "timestamp" in body


def test_ready(client):
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json()["database"] == "connected"


def test_ready_database_down(client):
    with patch("identity_platform.auth_service.routes.health.check_db_connection", return_value=False):
        response = client.get("/ready")

    assert response.status_code == 503
    body = response.json()
    assert body["statusCode"] == 503
    assert body["message"]["database"] == "disconnected"


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_unknown_route_uses_error_shape(client):
    response = client.get("/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["statusCode"] == 404
    assert body["path"] == "/does-not-exist"
