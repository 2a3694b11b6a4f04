"""Tests for the SQLAlchemy user store and its error translation."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from models.user import EMAIL_UNIQUE_CONSTRAINT, User
from services.errors import DuplicateEmailError, UserNotFoundError
from storage.sql_user_store import SQLUserStore, _is_email_violation


@pytest.fixture()
def store(app):
    with app.app_context():
        yield SQLUserStore()


def _create(store: SQLUserStore, email: str, token: str = "t" * 64) -> User:
    user = store.create(
        firstname="John",
        lastname="Doe",
        email=email,
        password_hash="hash",
        verification_token=token,
        verification_token_expires_at=datetime.now(UTC) + timedelta(hours=24),
    )
    store.commit()
    return user


def test_create_and_lookup(store):
    user = _create(store, "john@mail.com")

    assert store.get_by_id(user.id).email == "john@mail.com"
    assert store.get_by_email("john@mail.com").id == user.id
    assert store.get_by_verification_token("t" * 64).id == user.id
    assert store.get_by_email("JOHN@mail.com") is None
    assert store.get_by_verification_token("") is None
    assert store.get_by_id("missing") is None


def test_duplicate_email_is_translated(store):
    _create(store, "john@mail.com")

    with pytest.raises(DuplicateEmailError):
        _create(store, "john@mail.com", token="u" * 64)

    assert len(store.list_users()) == 1


def test_mark_email_verified_clears_token(store):
    user = _create(store, "john@mail.com")
    store.mark_email_verified(user.id)
    store.commit()

    refreshed = store.get_by_id(user.id)
    assert refreshed.is_email_verified is True
    assert refreshed.verification_token is None
    assert refreshed.verification_token_expires_at is None
    assert store.get_by_verification_token("t" * 64) is None


def test_update_applies_only_profile_fields(store):
    user = _create(store, "john@mail.com")

    store.update(user.id, {"lastname": "Smith", "role": "ADMIN", "password_hash": "x"})
    store.commit()

    refreshed = store.get_by_id(user.id)
    assert refreshed.lastname == "Smith"
    assert refreshed.role == "USER"
    assert refreshed.password_hash == "hash"


def test_update_email_collision_is_translated(store):
    _create(store, "john@mail.com")
    other = _create(store, "jane@mail.com", token="u" * 64)

    with pytest.raises(DuplicateEmailError):
        store.update(other.id, {"email": "john@mail.com"})

    assert store.get_by_email("jane@mail.com") is not None


def test_update_and_delete_missing_user(store):
    with pytest.raises(UserNotFoundError):
        store.update("missing", {"firstname": "X"})
    with pytest.raises(UserNotFoundError):
        store.delete("missing")


def test_delete_removes_user(store):
    user = _create(store, "john@mail.com")
    store.delete(user.id)
    store.commit()

    assert store.get_by_id(user.id) is None


def test_rollback_discards_staged_user(store):
    store.create(
        firstname="John",
        lastname="Doe",
        email="staged@mail.com",
        password_hash="hash",
        verification_token="v" * 64,
        verification_token_expires_at=datetime.now(UTC),
    )
    store.rollback()

    assert store.get_by_email("staged@mail.com") is None


class _DriverError(Exception):
    """Driver exception carrying an optional psycopg-style ``diag``."""

    def __init__(self, message: str, constraint_name: str | None = None):
        super().__init__(message)
        if constraint_name is not None:
            self.diag = SimpleNamespace(constraint_name=constraint_name)


@pytest.mark.parametrize(
    ("orig", "expected"),
    [
        (_DriverError("UNIQUE constraint failed: users.email"), True),
        (_DriverError("CHECK constraint failed: ck_users_verification_token_pair"), False),
        (_DriverError("UNIQUE constraint failed: users.id"), False),
        (
            _DriverError(
                'duplicate key value violates unique constraint "uq_users_email"',
                constraint_name=EMAIL_UNIQUE_CONSTRAINT,
            ),
            True,
        ),
        (
            _DriverError("email check failed", constraint_name="users_pkey"),
            False,
        ),
        (_DriverError("Duplicate entry 'a@b.c' for key 'users.uq_users_email'"), True),
    ],
)
def test_email_violation_is_detected_by_constraint(orig, expected):
    error = IntegrityError("INSERT INTO users ...", {}, orig)

    assert _is_email_violation(error) is expected


def test_model_names_the_email_constraint():
    names = {constraint.name for constraint in User.__table__.constraints}

    assert EMAIL_UNIQUE_CONSTRAINT in names
