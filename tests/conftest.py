"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app, mail  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.user import ROLE_USER, User  # noqa: E402

STRONG_PASSWORD = "Abc12345!"


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    APP_URL = "http://testserver"
    APP_NAME = "Test App"
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "no-reply@example.com"
    MAIL_SEND_TIMEOUT = 5


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def file_backed_app(tmp_path: Path) -> Flask:
    """Application on an SQLite file, so separate threads hold separate connections."""

    class _FileConfig(_BaseTestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'auth.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 1, "check_same_thread": False}}

    application = create_app(_FileConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def outbox(app: Flask):
    """Collect every email dispatched while the test runs."""

    with mail.record_messages() as messages:
        yield messages


@pytest.fixture()
def make_user(app: Flask):
    """Persist a user directly, bypassing registration."""

    def _make_user(
        email: str,
        password: str = STRONG_PASSWORD,
        *,
        role: str = ROLE_USER,
        verified: bool = True,
        firstname: str = "John",
        lastname: str = "Doe",
    ) -> str:
        with app.app_context():
            user = User(firstname=firstname, lastname=lastname, email=email, role=role)
            user.set_password(password)
            if verified:
                user.mark_email_verified()
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make_user
