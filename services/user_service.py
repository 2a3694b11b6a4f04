"""Profile listing, lookup, update and admin-only deletion."""

from __future__ import annotations

import logging
from typing import Mapping

from models.user import User
from storage.abstract_user_store import AbstractUserStore

from .errors import ForbiddenError

logger = logging.getLogger(__name__)

DELETED_MESSAGE = "User deleted successfully"


class UserService:
    def __init__(self, store: AbstractUserStore):
        self.store = store

    def list_users(self) -> list[User]:
        return self.store.list_users()

    def get_user(self, user_id: str) -> User | None:
        return self.store.get_by_id(user_id)

    def update_user(self, user_id: str, changes: Mapping[str, str]) -> User:
        """Apply a sparse profile update; password and role are never touched here."""

        user = self.store.update(user_id, changes)
        self.store.commit()
        logger.info("Updated profile of user %s (%s)", user_id, ", ".join(sorted(changes)) or "no changes")
        return user

    def delete_user(self, requester: User | None, user_id: str) -> dict:
        if requester is None or not requester.is_admin:
            raise ForbiddenError()

        self.store.delete(user_id)
        self.store.commit()
        logger.info("User %s deleted by admin %s", user_id, requester.id)
        return {"message": DELETED_MESSAGE}
