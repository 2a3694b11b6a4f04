"""User storage backends."""

from .abstract_user_store import AbstractUserStore
from .sql_user_store import SQLUserStore

__all__ = ["AbstractUserStore", "SQLUserStore"]
