"""
Database seeder – creates a default admin account on startup.

⚠️  FOR DEVELOPMENT ONLY. Enabled with SEED_DEFAULT_ADMIN=true.
"""
import logging

from tasktrack.core.config import settings
from tasktrack.db.database import get_db
from tasktrack.models.user import User, UserRole
from tasktrack.repositories.user_repository import UserRepository
from tasktrack.services.user_service import UserService

logger = logging.getLogger(__name__)


def seed_admin() -> None:
    """
    Insert the default admin user if it does not already exist.
    Safe to call on every startup – it is a no-op when the user is present.
    """
    with get_db() as conn:
        service = UserService(UserRepository(conn))
        if not service.is_username_available(settings.DEFAULT_ADMIN_USERNAME):
            logger.info(
                "Seeder: admin user '%s' already exists – skipping.",
                settings.DEFAULT_ADMIN_USERNAME,
            )
            return
        if not service.is_email_available(settings.DEFAULT_ADMIN_EMAIL):
            logger.warning(
                "Seeder: email '%s' already belongs to another user – skipping admin seed.",
                settings.DEFAULT_ADMIN_EMAIL,
            )
            return

        service.create_user(
            User(
                user_name=settings.DEFAULT_ADMIN_USERNAME,
                email=settings.DEFAULT_ADMIN_EMAIL,
                full_name=settings.DEFAULT_ADMIN_FULL_NAME,
                role=UserRole.ADMIN,
            )
        )
        logger.info(
            "Seeder: created default admin user '%s' (email: %s).",
            settings.DEFAULT_ADMIN_USERNAME,
            settings.DEFAULT_ADMIN_EMAIL,
        )
