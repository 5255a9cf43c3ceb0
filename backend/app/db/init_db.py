"""Create all tables. Run on app startup.

Generates a random password for the first admin account (never hardcoded).
The admin must change it after first login.
"""
import logging
import secrets

from sqlalchemy.orm import Session

from app.db.base import Base
from app.db.session import engine, SessionLocal
import app.models  # noqa: F401 - register models
from app.models.enums import UserRole
from app.models.user import User
from app.core.security import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@pharmacy.local"


def ensure_admin(db: Session) -> str | None:
    """Create the first ADMIN when the users table is empty. Returns the generated password."""
    if db.query(User).count() > 0:
        return None

    password = secrets.token_urlsafe(16)
    db.add(User(
        email=DEFAULT_ADMIN_EMAIL,
        name="Administrator",
        role=UserRole.ADMIN.value,
        hashed_password=get_password_hash(password),
    ))
    db.commit()
    return password


def init_db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        password = ensure_admin(db)
        if password:
            # Printed once, on initial setup only
            print("\n" + "=" * 70)
            print("DEFAULT ADMIN USER CREATED")
            print("=" * 70)
            print(f"Email:    {DEFAULT_ADMIN_EMAIL}")
            print(f"Password: {password}")
            print("\nChange this password immediately after first login!")
            print("=" * 70 + "\n")
            logger.info("Created default admin account %s", DEFAULT_ADMIN_EMAIL)
    finally:
        db.close()
