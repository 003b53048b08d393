"""
User accounts and sign-in
"""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime

from ..core.database.database_manager import DatabaseManager
from ..core.database.models import PointTransaction, User
from ..core.errors import (
    EmailTakenError,
    PersistenceError,
    UserNotFoundError,
    UsernameTakenError,
    ValidationError,
)
from ..utils import utc_now
from .points_service import PointsService

logger = logging.getLogger(__name__)


class UserService:
    """Creates and looks up users; a sign-in counts towards the daily streak"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        points_service: PointsService,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db_manager = db_manager
        self.points_service = points_service
        self.clock = clock
        self.user_repo = db_manager.user_repo

    def create_user(self, username: str, email: str) -> User:
        """
        Register a new user

        Raises:
            ValidationError: username or e-mail is blank
            UsernameTakenError: username is already registered
            EmailTakenError: e-mail is already registered, in any letter case
        """
        username = (username or "").strip()
        email = (email or "").strip()
        if not username:
            raise ValidationError("username is required")
        if not email:
            raise ValidationError("email is required")

        try:
            with self.db_manager.transaction() as conn:
                if self.user_repo.get_user_by_username(username, conn=conn):
                    raise UsernameTakenError(username)
                if self.user_repo.get_user_by_email(email, conn=conn):
                    raise EmailTakenError(email)
                user = self.user_repo.create_user(username, email, self.clock(), conn=conn)
        except sqlite3.Error as e:
            logger.error(f"Error creating user {username}: {e}")
            raise PersistenceError("create user", e) from e

        logger.info(f"Created user {user['id']} ({username})")
        return user

    def get_user(self, user_id: int) -> User:
        try:
            user = self.user_repo.get_user_by_id(user_id)
        except sqlite3.Error as e:
            logger.error(f"Error getting user {user_id}: {e}")
            raise PersistenceError("get user", e) from e
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def get_user_by_username(self, username: str) -> User:
        try:
            user = self.user_repo.get_user_by_username(username)
        except sqlite3.Error as e:
            logger.error(f"Error getting user {username}: {e}")
            raise PersistenceError("get user", e) from e
        if user is None:
            raise UserNotFoundError(username)
        return user

    def list_users(self) -> list[User]:
        """List users, newest first"""
        try:
            return self.user_repo.list_users()
        except sqlite3.Error as e:
            logger.error(f"Error listing users: {e}")
            raise PersistenceError("list users", e) from e

    def sign_in(self, user_id: int) -> PointTransaction | None:
        """Record a sign-in; returns the daily streak award, if any"""
        transaction = self.points_service.update_daily_streak(user_id)
        logger.info(f"User {user_id} signed in")
        return transaction
