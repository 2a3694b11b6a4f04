"""User model definition."""

import uuid
from datetime import datetime

from utils.passwords import hash_password, verify_password
from utils.tokens import utcnow

from . import db


ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"
USER_ROLES = (ROLE_USER, ROLE_ADMIN)

EMAIL_UNIQUE_CONSTRAINT = "uq_users_email"


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    """Represents a registered account."""

    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name=EMAIL_UNIQUE_CONSTRAINT),
        db.CheckConstraint(
            "(verification_token IS NULL) = (verification_token_expires_at IS NULL)",
            name="ck_users_verification_token_pair",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_user_id)
    firstname = db.Column(db.String(120), nullable=False)
    lastname = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_email_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    verification_token = db.Column(db.String(128), nullable=True, index=True)
    verification_token_expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    role = db.Column(
        db.Enum(*USER_ROLES, name="user_role"),
        nullable=False,
        default=ROLE_USER,
        server_default=db.text(f"'{ROLE_USER}'"),
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return verify_password(self.password_hash, password)

    def start_email_verification(self, token: str, expires_at: datetime) -> None:
        """Put the account into the pending-verification state."""

        self.is_email_verified = False
        self.verification_token = token
        self.verification_token_expires_at = expires_at

    def mark_email_verified(self) -> None:
        """Mark the email as verified and burn the verification token."""

        self.is_email_verified = True
        self.verification_token = None
        self.verification_token_expires_at = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> dict:
        """Serialize the public fields of the user."""

        return {
            "id": self.id,
            "firstname": self.firstname,
            "lastname": self.lastname,
            "email": self.email,
            "is_email_verified": self.is_email_verified,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
