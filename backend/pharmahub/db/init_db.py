"""Create all tables. Run on app startup.

SECURITY: The admin account gets a random password (not hardcoded).
Change it after first login.
"""
import logging
import secrets
from typing import Optional

from pharmahub.core.config import settings
from pharmahub.core.security import get_password_hash
from pharmahub.db.session import Database
from pharmahub.models.user import User, UserRole

logger = logging.getLogger(__name__)


def init_db(database: Database, admin_email: Optional[str] = None) -> Optional[str]:
    """Create tables and seed the admin user. Returns the generated password, if one was created."""
    database.create_all()

    admin_email = admin_email or settings.ADMIN_EMAIL
    db = database.session()
    try:
        if db.query(User).filter(User.role == UserRole.ADMIN).count():
            return None

        default_password = secrets.token_urlsafe(16)
        db.add(User(
            email=admin_email,
            hashed_password=get_password_hash(default_password),
            role=UserRole.ADMIN,
        ))
        db.commit()

        logger.warning(
            "\n" + "=" * 70
            + "\nDEFAULT ADMIN USER CREATED"
            + f"\nEmail:    {admin_email}"
            + f"\nPassword: {default_password}"
            + "\nChange this password immediately after first login!\n"
            + "=" * 70
        )
        return default_password
    finally:
        db.close()
