"""Registration, email verification and login."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from storage.abstract_user_store import AbstractUserStore
from utils.passwords import CredentialHasher
from utils.tokens import (
    VERIFICATION_TOKEN_TTL,
    SessionTokenIssuer,
    as_utc,
    issue_verification_token,
    utcnow,
)

from .errors import (
    DuplicateEmailError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotificationError,
)
from .notifier import Notifier

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "User registered successfully. Check your email to activate your account."
VERIFIED_MESSAGE = "Email verified successfully. You can now log in."


class AuthService:
    """Drives a user from unregistered through pending verification to verified.

    The service holds no per-request state; one instance is built by the
    application factory and shared by every request.
    """

    def __init__(
        self,
        store: AbstractUserStore,
        hasher: CredentialHasher,
        notifier: Notifier,
        sessions: SessionTokenIssuer,
        *,
        clock: Callable[[], datetime] = utcnow,
        token_ttl: timedelta = VERIFICATION_TOKEN_TTL,
    ):
        self.store = store
        self.hasher = hasher
        self.notifier = notifier
        self.sessions = sessions
        self.clock = clock
        self.token_ttl = token_ttl

    def register(self, firstname: str, lastname: str, email: str, password: str) -> dict:
        """Create an unverified account and email its verification link.

        The row is committed before the email goes out so that no write
        transaction stays open while the mail server is slow. If delivery
        fails the row is deleted again and the error propagates.
        """
        if self.store.get_by_email(email) is not None:
            raise DuplicateEmailError()

        token, expires_at = issue_verification_token(self.clock(), self.token_ttl)
        password_hash = self.hasher.hash(password)

        user = self.store.create(
            firstname=firstname,
            lastname=lastname,
            email=email,
            password_hash=password_hash,
            verification_token=token,
            verification_token_expires_at=expires_at,
        )

        user_id, recipient, name = user.id, user.email, user.firstname
        self.store.commit()

        try:
            self.notifier.send_verification(recipient, token, name)
        except NotificationError:
            self.store.delete(user_id)
            self.store.commit()
            logger.warning("Registration for user %s withdrawn: verification email failed", user_id)
            raise

        logger.info("Registered user %s, verification pending", user_id)
        return {"message": REGISTERED_MESSAGE}

    def verify_email(self, token: str) -> dict:
        user = self.store.get_by_verification_token(token)
        if user is None:
            raise InvalidTokenError()

        expires_at = user.verification_token_expires_at
        if expires_at is not None and as_utc(expires_at) < self.clock():
            logger.info("Rejected expired verification token for user %s", user.id)
            raise InvalidTokenError()

        self.store.mark_email_verified(user.id)
        self.store.commit()
        logger.info("Verified email for user %s", user.id)
        return {"message": VERIFIED_MESSAGE}

    def login(self, email: str, password: str) -> dict:
        user = self.store.get_by_email(email)
        if user is None:
            raise InvalidCredentialsError()

        if not user.is_email_verified:
            raise EmailNotVerifiedError()

        if not self.hasher.verify(user.password_hash, password):
            logger.info("Failed login for user %s", user.id)
            raise InvalidCredentialsError()

        if self.hasher.needs_rehash(user.password_hash):
            self.store.update_password_hash(user.id, self.hasher.hash(password))
            self.store.commit()

        logger.info("Login: user %s", user.id)
        return {"access_token": self.sessions.sign(user)}
