"""User storage abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Mapping

from models.user import User


class AbstractUserStore(ABC):
    """Interface for user persistence backends.

    Implementations translate their own constraint violations into
    :class:`~services.errors.DuplicateEmailError` and
    :class:`~services.errors.UserNotFoundError`; no backend-specific error
    escapes a store method.
    """

    @abstractmethod
    def list_users(self) -> list[User]:
        """Return every stored user."""

    @abstractmethod
    def get_by_id(self, user_id: str) -> User | None:
        """Return the user with the given id, if any."""

    @abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Return the user owning ``email`` (exact match), if any."""

    @abstractmethod
    def get_by_verification_token(self, token: str) -> User | None:
        """Return the user holding the pending verification ``token``, if any."""

    @abstractmethod
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
        """Stage a new, unverified user. Raises ``DuplicateEmailError``."""

    @abstractmethod
    def mark_email_verified(self, user_id: str) -> User:
        """Set the user verified and clear the verification token."""

    @abstractmethod
    def update_password_hash(self, user_id: str, password_hash: str) -> User:
        """Replace the stored password hash."""

    @abstractmethod
    def update(self, user_id: str, changes: Mapping[str, str]) -> User:
        """Apply profile changes. Raises ``UserNotFoundError`` or ``DuplicateEmailError``."""

    @abstractmethod
    def delete(self, user_id: str) -> None:
        """Remove a user. Raises ``UserNotFoundError``."""

    @abstractmethod
    def commit(self) -> None:
        """Make staged changes durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard staged changes."""
