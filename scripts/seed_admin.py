"""Create or promote an administrator account.

Registration always assigns the USER role, so this script is how the first
ADMIN comes into existence. Credentials come from the environment.
"""

import os

from app import create_app
from models import db
from models.user import ROLE_ADMIN, User

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "AdminPass123!")
ADMIN_FIRSTNAME = os.getenv("ADMIN_FIRSTNAME", "Admin")
ADMIN_LASTNAME = os.getenv("ADMIN_LASTNAME", "User")


def main() -> None:
    app = create_app()
    with app.app_context():
        admin = User.query.filter_by(email=ADMIN_EMAIL).first()
        if admin is None:
            admin = User(
                firstname=ADMIN_FIRSTNAME,
                lastname=ADMIN_LASTNAME,
                email=ADMIN_EMAIL,
                role=ROLE_ADMIN,
            )
            db.session.add(admin)
            action = "created"
        else:
            admin.role = ROLE_ADMIN
            action = "updated"
        admin.set_password(ADMIN_PASSWORD)
        admin.mark_email_verified()
        db.session.commit()
        print(f"Admin user {action}: {ADMIN_EMAIL}")


if __name__ == "__main__":
    main()
