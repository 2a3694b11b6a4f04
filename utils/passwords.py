"""Password hashing and verification backed by Argon2id."""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from services.errors import CredentialHashError


class CredentialHasher:
    """One-way, salted password hashing.

    Every call to :meth:`hash` embeds a fresh salt, so hashing the same
    plaintext twice yields two different strings that both verify.
    """

    def __init__(self, hasher: PasswordHasher | None = None):
        self._hasher = hasher or PasswordHasher()

    def hash(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("Password must not be empty.")
        return self._hasher.hash(plaintext)

    def verify(self, hashed: str, plaintext: str) -> bool:
        """Return whether ``plaintext`` matches ``hashed``.

        A mismatch is ``False``; only a structurally broken hash raises.
        """
        if not hashed or not plaintext:
            return False
        try:
            return self._hasher.verify(hashed, plaintext)
        except VerifyMismatchError:
            return False
        except InvalidHashError as exc:
            raise CredentialHashError() from exc
        except VerificationError:
            return False

    def needs_rehash(self, hashed: str) -> bool:
        return self._hasher.check_needs_rehash(hashed)


_DEFAULT_HASHER = CredentialHasher()


def hash_password(plaintext: str) -> str:
    return _DEFAULT_HASHER.hash(plaintext)


def verify_password(hashed: str, plaintext: str) -> bool:
    return _DEFAULT_HASHER.verify(hashed, plaintext)
