"""Verification and session token helpers."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from flask_jwt_extended import create_access_token

if TYPE_CHECKING:  # pragma: no cover
    from models.user import User

VERIFICATION_TOKEN_BYTES = 32
VERIFICATION_TOKEN_TTL = timedelta(hours=24)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the database as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def issue_verification_token(
    now: datetime | None = None,
    ttl: timedelta = VERIFICATION_TOKEN_TTL,
) -> tuple[str, datetime]:
    """Return a fresh random token (64 hex chars) and its absolute expiry."""

    issued_at = now or utcnow()
    return secrets.token_hex(VERIFICATION_TOKEN_BYTES), issued_at + ttl


class SessionTokenIssuer:
    """Signs bearer tokens for authenticated users.

    The token carries the user id as ``sub`` and the email as an extra
    claim; expiry and signing algorithm come from the JWT configuration.
    """

    def sign(self, user: "User") -> str:
        return create_access_token(
            identity=str(user.id),
            additional_claims={"email": user.email},
        )
