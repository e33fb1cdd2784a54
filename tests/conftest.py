"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import Callable

import pytest
import resend
from flask import Flask
from flask.testing import FlaskClient
from flask_jwt_extended import create_access_token

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.city import City  # noqa: E402
from models.user import User  # noqa: E402
from services import otp  # noqa: E402

CODE_PATTERN = re.compile(r"code is: (\d{6})")


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    JWT_SECRET_KEY = "test-jwt-secret-key-that-is-long-enough"
    RATE_LIMIT = "1000 per minute"
    CORS_ORIGINS = "*"
    RESEND_API_KEY = None
    OBJECT_STORAGE_BUCKET = None


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application instance for tests."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    application = create_app(TestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


class Outbox(list):
    """Messages handed to the mail provider during a test."""

    def codes_for(self, email: str) -> list[str]:
        return [
            CODE_PATTERN.search(message["text"]).group(1)
            for message in self
            if email in message["to"]
        ]

    def last_code_for(self, email: str) -> str:
        return self.codes_for(email)[-1]


@pytest.fixture()
def outbox(app: Flask, monkeypatch) -> Outbox:
    """Enable mail delivery and capture every message instead of sending it."""

    messages = Outbox()

    def _fake_send(params):
        messages.append(params)
        return {"id": f"test-{len(messages)}"}

    app.config["RESEND_API_KEY"] = "re_test"
    monkeypatch.setattr(resend.Emails, "send", _fake_send)
    return messages


@pytest.fixture()
def failing_mail(app: Flask, monkeypatch) -> None:
    """Make every delivery attempt fail at the provider."""

    def _fail(params):
        raise RuntimeError("provider unavailable")

    app.config["RESEND_API_KEY"] = "re_test"
    monkeypatch.setattr(resend.Emails, "send", _fail)


@pytest.fixture()
def create_user(app: Flask) -> Callable[..., int]:
    """Return a factory that persists a user and returns its id."""

    def _create(
        email: str = "user@example.com",
        password: str = "secret123",
        name: str = "Test User",
        role: str = "user",
        verified: bool = True,
    ) -> int:
        with app.app_context():
            user = User(email=email, name=name, role=role)
            user.set_password(password)
            if verified:
                user.mark_verified()
            else:
                otp.email_verification.issue(user)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _create


@pytest.fixture()
def auth_headers(app: Flask) -> Callable[[int], dict[str, str]]:
    """Return a factory building bearer headers for a user id."""

    def _headers(user_id: int) -> dict[str, str]:
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def create_city(app: Flask) -> Callable[[str, str], int]:
    def _create(name: str, state: str) -> int:
        with app.app_context():
            city = City(name=name, state=state)
            db.session.add(city)
            db.session.commit()
            return city.id

    return _create
