"""Unit tests for the registration, verification and login lifecycle."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from argon2 import PasswordHasher

from models import db
from models.user import User
from services.auth_service import REGISTERED_MESSAGE, VERIFIED_MESSAGE, AuthService
from services.errors import (
    DuplicateEmailError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotificationError,
)
from services.notifier import Notifier
from storage.sql_user_store import SQLUserStore
from utils.passwords import CredentialHasher
from utils.tokens import SessionTokenIssuer, as_utc

PASSWORD = "Abc12345!"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class RecordingNotifier(Notifier):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str, str | None]] = []

    def send_verification(self, email, token, name=None):
        if self.fail:
            raise NotificationError()
        self.sent.append((email, token, name))


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 9, 30, tzinfo=UTC))


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def service(app, clock, notifier):
    with app.app_context():
        yield AuthService(
            SQLUserStore(),
            CredentialHasher(),
            notifier,
            SessionTokenIssuer(),
            clock=clock,
        )


def _register(service: AuthService, email: str = "john@mail.com") -> dict:
    return service.register("John", "Doe", email, PASSWORD)


def test_register_creates_pending_user(service, notifier, clock):
    result = _register(service)

    assert result == {"message": REGISTERED_MESSAGE}
    user = User.query.filter_by(email="john@mail.com").one()
    assert user.is_email_verified is False
    assert user.role == "USER"
    assert user.password_hash != PASSWORD
    assert len(user.verification_token) == 64
    assert as_utc(user.verification_token_expires_at) == clock.now + timedelta(hours=24)
    assert notifier.sent == [("john@mail.com", user.verification_token, "John")]


def test_register_result_never_exposes_secrets(service):
    result = _register(service)
    user = User.query.filter_by(email="john@mail.com").one()

    assert user.verification_token not in str(result)
    assert user.password_hash not in str(result)


def test_register_twice_fails_even_when_unverified(service, notifier):
    _register(service)

    with pytest.raises(DuplicateEmailError):
        _register(service)

    assert User.query.count() == 1
    assert len(notifier.sent) == 1


def test_register_twice_fails_after_verification(service, notifier):
    _register(service)
    service.verify_email(notifier.sent[0][1])

    with pytest.raises(DuplicateEmailError):
        _register(service)


def test_notification_failure_withdraws_registration(service, notifier):
    notifier.fail = True

    with pytest.raises(NotificationError):
        _register(service)

    assert User.query.count() == 0

    notifier.fail = False
    assert _register(service) == {"message": REGISTERED_MESSAGE}


def test_verify_email_consumes_token_once(service, notifier):
    _register(service)
    token = notifier.sent[0][1]

    assert service.verify_email(token) == {"message": VERIFIED_MESSAGE}

    user = User.query.filter_by(email="john@mail.com").one()
    assert user.is_email_verified is True
    assert user.verification_token is None
    assert user.verification_token_expires_at is None

    with pytest.raises(InvalidTokenError):
        service.verify_email(token)


def test_unknown_token_is_invalid(service):
    with pytest.raises(InvalidTokenError):
        service.verify_email("f" * 64)
    with pytest.raises(InvalidTokenError):
        service.verify_email("")


def test_expired_token_is_invalid_even_though_stored(service, notifier, clock):
    _register(service)
    token = notifier.sent[0][1]

    clock.advance(timedelta(hours=24, seconds=1))

    with pytest.raises(InvalidTokenError):
        service.verify_email(token)

    user = User.query.filter_by(verification_token=token).one()
    assert user.is_email_verified is False


def test_token_is_still_valid_at_exact_expiry(service, notifier, clock):
    _register(service)
    clock.advance(timedelta(hours=24))

    assert service.verify_email(notifier.sent[0][1]) == {"message": VERIFIED_MESSAGE}


def test_login_requires_verified_email(service, notifier):
    _register(service)

    with pytest.raises(EmailNotVerifiedError):
        service.login("john@mail.com", PASSWORD)

    service.verify_email(notifier.sent[0][1])
    result = service.login("john@mail.com", PASSWORD)

    assert set(result) == {"access_token"}
    assert result["access_token"].count(".") == 2


def test_wrong_password_and_unknown_email_fail_identically(service, notifier):
    _register(service)
    service.verify_email(notifier.sent[0][1])

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        service.login("john@mail.com", "Wrong12345!")
    with pytest.raises(InvalidCredentialsError) as unknown_email:
        service.login("nobody@mail.com", PASSWORD)

    assert type(wrong_password.value) is type(unknown_email.value)
    assert wrong_password.value.message == unknown_email.value.message
    assert wrong_password.value.status_code == unknown_email.value.status_code


def test_login_upgrades_outdated_hash(app, service):
    weak = CredentialHasher(PasswordHasher(time_cost=1, memory_cost=8, parallelism=1))
    user = User(firstname="Old", lastname="Hash", email="old@mail.com")
    user.password_hash = weak.hash(PASSWORD)
    user.mark_email_verified()
    db.session.add(user)
    db.session.commit()
    old_hash = user.password_hash

    service.login("old@mail.com", PASSWORD)

    refreshed = User.query.filter_by(email="old@mail.com").one()
    assert refreshed.password_hash != old_hash
    assert service.hasher.needs_rehash(refreshed.password_hash) is False
    assert service.login("old@mail.com", PASSWORD)["access_token"]
