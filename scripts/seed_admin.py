"""Seed an administrator user."""

import os

from app import create_app
from models import db
from models.user import User

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "AdminPass123")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Admin User")


def main() -> None:
    app = create_app()
    with app.app_context():
        admin = User.query.filter_by(email=ADMIN_EMAIL).first()
        if admin is None:
            admin = User(email=ADMIN_EMAIL, name=ADMIN_NAME, role="admin")
            db.session.add(admin)
            action = "created"
        else:
            admin.role = "admin"
            action = "updated"
        admin.set_password(ADMIN_PASSWORD)
        admin.mark_verified()
        db.session.commit()
        print(f"Admin user {action}: {ADMIN_EMAIL}")


if __name__ == "__main__":
    main()
