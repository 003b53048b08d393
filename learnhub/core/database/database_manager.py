"""
Unified database manager that coordinates all repositories
"""

import logging

from .connection import DatabaseConnection
from .repositories.progress_repository import ProgressRepository
from .repositories.transaction_repository import TransactionRepository
from .repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Unified database manager that coordinates all repositories"""

    def __init__(self, db_path: str | None = None, busy_timeout_ms: int = 30000):
        self.db_connection = DatabaseConnection(db_path, busy_timeout_ms=busy_timeout_ms)
        self.user_repo = UserRepository(self.db_connection)
        self.progress_repo = ProgressRepository(self.db_connection)
        self.transaction_repo = TransactionRepository(self.db_connection)

    def init_database(self) -> None:
        """Initialize database tables and indexes"""
        self.db_connection.init_database()
        logger.info(f"Database initialized at {self.db_connection.db_path}")

    def transaction(self):
        """Open an atomic unit of work"""
        return self.db_connection.transaction()

    def get_connection(self):
        """Get database connection for direct SQL access in tests"""
        return self.db_connection.get_connection()

