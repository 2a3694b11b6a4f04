"""SQLAlchemy-backed user store."""

from __future__ import annotations

from datetime import datetime
from typing import Mapping

from sqlalchemy.exc import IntegrityError

from models import db
from models.user import EMAIL_UNIQUE_CONSTRAINT, User
from services.errors import DuplicateEmailError, UserNotFoundError

from .abstract_user_store import AbstractUserStore

PROFILE_FIELDS = ("firstname", "lastname", "email")


# SQLite names the columns, not the constraint, in its UNIQUE failures.
SQLITE_EMAIL_VIOLATION = "UNIQUE constraint failed: users.email"


def _is_email_violation(error: IntegrityError) -> bool:
    """Tell whether ``error`` was raised by the ``uq_users_email`` constraint."""
    orig = getattr(error, "orig", None)
    constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
    if constraint:
        return constraint == EMAIL_UNIQUE_CONSTRAINT
    message = str(orig if orig is not None else error)
    return EMAIL_UNIQUE_CONSTRAINT in message or SQLITE_EMAIL_VIOLATION in message


class SQLUserStore(AbstractUserStore):
    """Persist users through the Flask-SQLAlchemy session of the current app."""

    def __init__(self, database=db):
        self._db = database

    @property
    def _session(self):
        return self._db.session

    def list_users(self) -> list[User]:
        return User.query.order_by(User.created_at.asc()).all()

    def get_by_id(self, user_id: str) -> User | None:
        if not user_id:
            return None
        return self._session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        if not email:
            return None
        return User.query.filter_by(email=email).first()

    def get_by_verification_token(self, token: str) -> User | None:
        if not token:
            return None
        return User.query.filter_by(verification_token=token).first()

    def create(
        self,
        *,
        firstname: str,
        lastname: str,
        email: str,
        password_hash: str,
        verification_token: str,
        verification_token_expires_at: datetime,
    ) -> User:
        user = User(
            firstname=firstname,
            lastname=lastname,
            email=email,
            password_hash=password_hash,
        )
        user.start_email_verification(verification_token, verification_token_expires_at)
        self._session.add(user)
        self._flush()
        return user

    def mark_email_verified(self, user_id: str) -> User:
        user = self._require(user_id)
        user.mark_email_verified()
        self._flush()
        return user

    def update_password_hash(self, user_id: str, password_hash: str) -> User:
        user = self._require(user_id)
        user.password_hash = password_hash
        self._flush()
        return user

    def update(self, user_id: str, changes: Mapping[str, str]) -> User:
        user = self._require(user_id)
        for field in PROFILE_FIELDS:
            if field in changes:
                setattr(user, field, changes[field])
        self._flush()
        return user

    def delete(self, user_id: str) -> None:
        user = self._require(user_id)
        self._session.delete(user)
        self._flush()

    def commit(self) -> None:
        try:
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            if _is_email_violation(exc):
                raise DuplicateEmailError() from exc
            raise

    def rollback(self) -> None:
        self._session.rollback()

    def _require(self, user_id: str) -> User:
        user = self.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def _flush(self) -> None:
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            if _is_email_violation(exc):
                raise DuplicateEmailError() from exc
            raise
