"""Create the users table with email verification fields."""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b40"
down_revision = None
branch_labels = None
depends_on = None


USER_ROLE_ENUM = "user_role"
USER_ROLE_VALUES = ("USER", "ADMIN")


def upgrade() -> None:
    """Create users, its role enum, indexes and the token pairing constraint."""

    user_role = sa.Enum(*USER_ROLE_VALUES, name=USER_ROLE_ENUM)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("firstname", sa.String(length=120), nullable=False),
        sa.Column("lastname", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "is_email_verified",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("verification_token", sa.String(length=128), nullable=True),
        sa.Column("verification_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "role",
            user_role,
            nullable=False,
            server_default=sa.text("'USER'"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint(
            "(verification_token IS NULL) = (verification_token_expires_at IS NULL)",
            name="ck_users_verification_token_pair",
        ),
    )
    op.create_index(
        op.f("ix_users_verification_token"),
        "users",
        ["verification_token"],
        unique=False,
    )


def downgrade() -> None:
    """Drop the users table and its role enum."""

    op.drop_index(op.f("ix_users_verification_token"), table_name="users")
    op.drop_table("users")
    sa.Enum(name=USER_ROLE_ENUM).drop(op.get_bind(), checkfirst=True)
