"""Tests covering security and hardening features."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app
from config import Config


class _SecurityBaseConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    JWT_SECRET_KEY = "test-jwt-secret-key-that-is-long-enough"
    RESEND_API_KEY = None


def _build_app(tmp_path: Path, **overrides) -> Flask:
    upload_dir = tmp_path / "uploads"

    class TestConfig(_SecurityBaseConfig):
        UPLOAD_DIR = str(upload_dir)

    for key, value in overrides.items():
        setattr(TestConfig, key, value)

    return create_app(TestConfig)


def test_cors_allows_configured_origin(tmp_path):
    app = _build_app(tmp_path, CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get(
        "/api/health", headers={"Origin": "https://client.example"}
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("X-Request-ID")


def test_rate_limit_exceeded_returns_json(tmp_path):
    app = _build_app(tmp_path, RATE_LIMIT="2 per minute")
    client = app.test_client()

    client.get("/api/health")
    client.get("/api/health")
    response = client.get("/api/health")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["error"]
    assert "request_id" in payload


def test_json_error_shape_for_invalid_request(tmp_path):
    app = _build_app(tmp_path)
    client = app.test_client()

    response = client.post(
        "/api/auth/register",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert "Request content type" in payload["error"]
    assert payload["request_id"]


def test_validation_failures_are_batched(tmp_path):
    app = _build_app(tmp_path)
    client = app.test_client()

    response = client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "123", "name": " "},
    )

    assert response.status_code == 400
    errors = response.get_json()["errors"]
    assert len(errors) == 3
    assert any("email" in message for message in errors)
    assert any("Password" in message for message in errors)


def test_request_id_is_echoed(tmp_path):
    app = _build_app(tmp_path)
    client = app.test_client()

    response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def _preflight(client, path: str, method: str):
    return client.options(
        path,
        headers={
            "Origin": "https://client.example",
            "Access-Control-Request-Method": method,
            "Access-Control-Request-Headers": "Authorization, Content-Type",
        },
    )


@pytest.mark.parametrize(
    "path, method",
    [
        ("/api/admin/stats", "GET"),
        ("/api/admin/users/1/role", "PUT"),
        ("/api/admin/classifieds/1/status", "PUT"),
        ("/api/admin/cities/1", "DELETE"),
        ("/api/classifieds/1", "PUT"),
        ("/api/classifieds/1", "DELETE"),
        ("/api/auth/resend-verification", "POST"),
    ],
)
def test_preflight_for_authenticated_routes(tmp_path, path, method):
    app = _build_app(tmp_path, CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = _preflight(client, path, method)

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert "authorization" in response.headers.get("Access-Control-Allow-Headers", "").lower()
