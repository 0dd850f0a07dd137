"""
FastAPI dependency injection helpers.

The service receives its repository here; nothing below the API layer
knows how it was wired.
"""
from typing import Generator

from fastapi import Depends
import logging

from tasktrack.db.database import get_db
from tasktrack.repositories.user_repository import UserRepository
from tasktrack.services.user_service import UserService

logger = logging.getLogger(__name__)


def db_dependency() -> Generator:
    """Yield a database connection for the duration of a request."""
    with get_db() as conn:
        yield conn


def get_user_service(conn=Depends(db_dependency)) -> UserService:
    """Build a UserService bound to the request's connection."""
    logger.trace("Wiring UserService for request")
    return UserService(UserRepository(conn))
