"""
Database connection manager for the LearnHub points engine
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from ...config import get_database_path

logger = logging.getLogger(__name__)


def _adapt_date(val: date) -> str:
    return val.isoformat()


def _adapt_datetime(val: datetime) -> str:
    return val.isoformat()


def _convert_date(val: bytes) -> date:
    try:
        return date.fromisoformat(val.decode())
    except ValueError:
        # Try alternative formats
        date_str = val.decode()
        for fmt in ["%Y-%m-%d", "%Y-%m-%d %H:%M:%S"]:
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue
        raise ValueError(f"Invalid date format: {date_str}") from None


def _convert_datetime(val: bytes) -> datetime:
    try:
        return datetime.fromisoformat(val.decode())
    except ValueError:
        # Try alternative formats
        datetime_str = val.decode()
        for fmt in [
            "%Y-%m-%d %H:%M:%S",
            "%Y-%m-%d %H:%M:%S.%f",
            "%Y-%m-%d",
        ]:
            try:
                return datetime.strptime(datetime_str, fmt)
            except ValueError:
                continue
        raise ValueError(f"Invalid datetime format: {datetime_str}") from None


# Explicit adapters avoid the deprecated default ones
sqlite3.register_adapter(date, _adapt_date)
sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("date", _convert_date)
sqlite3.register_converter("datetime", _convert_datetime)
sqlite3.register_converter("timestamp", _convert_datetime)


class DatabaseConnection:
    """Manages SQLite database connections and units of work"""

    def __init__(self, db_path: str | None = None, busy_timeout_ms: int = 30000):
        self.db_path = db_path or get_database_path()
        self.busy_timeout_ms = busy_timeout_ms
        self._ensure_database_directory()
        self._init_connection_settings()

    def _ensure_database_directory(self) -> None:
        """Ensure the database directory exists"""
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    def _init_connection_settings(self) -> None:
        """Initialize persistent database settings"""
        with self.get_connection() as conn:
            # Enable WAL mode for better concurrency
            conn.execute("PRAGMA journal_mode=WAL")

    @contextmanager
    def get_connection(self):
        """Get database connection with proper cleanup"""
        conn = None
        try:
            conn = sqlite3.connect(
                self.db_path,
                detect_types=sqlite3.PARSE_DECLTYPES,
                timeout=self.busy_timeout_ms / 1000,
            )
            conn.row_factory = sqlite3.Row  # Enable dict-like access
            # Per-connection pragmas
            conn.execute("PRAGMA foreign_keys=ON")
            conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout_ms)}")

            yield conn
        except Exception as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    @contextmanager
    def transaction(self):
        """Run a block of reads and writes as one atomic unit of work.

        The write lock is taken when the unit begins, so read-then-write
        sequences inside the block see no concurrent writer. The unit commits
        when the block exits normally and rolls back when it raises.
        """
        with self.get_connection() as conn:
            conn.isolation_level = None
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    @contextmanager
    def reuse(self, conn: sqlite3.Connection | None = None):
        """Yield the caller's connection, or a fresh one committed on exit"""
        if conn is not None:
            yield conn
            return
        with self.get_connection() as own_conn:
            yield own_conn
            own_conn.commit()

    def init_database(self) -> None:
        """Initialize database tables"""
        with self.get_connection() as conn:
            # Create tables
            self._create_tables(conn)
            # Run migrations
            self._run_migrations(conn)
            # Create indexes
            self._create_indexes(conn)
            conn.commit()

    def _create_tables(self, conn: sqlite3.Connection) -> None:
        """Create database tables"""
        tables = [
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                email TEXT UNIQUE NOT NULL,
                total_points INTEGER NOT NULL DEFAULT 0,
                current_daily_streak INTEGER NOT NULL DEFAULT 0,
                max_daily_streak INTEGER NOT NULL DEFAULT 0,
                last_login_date DATE,
                total_attempts INTEGER NOT NULL DEFAULT 0,
                correct_attempts INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS user_course_progress (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                course_id TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'not_started',
                total_course_points INTEGER NOT NULL DEFAULT 0,
                started_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                last_accessed_at TIMESTAMP,
                completed_at TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                UNIQUE(user_id, course_id)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS user_lesson_progress (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                course_id TEXT NOT NULL,
                lesson_id TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'not_started',
                current_streak INTEGER NOT NULL DEFAULT 0,
                max_streak INTEGER NOT NULL DEFAULT 0,
                total_lesson_points INTEGER NOT NULL DEFAULT 0,
                started_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                last_accessed_at TIMESTAMP,
                completed_at TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                UNIQUE(user_id, course_id, lesson_id)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS user_exercise_attempts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                course_id TEXT NOT NULL,
                lesson_id TEXT NOT NULL,
                exercise_id TEXT NOT NULL,
                attempt_number INTEGER NOT NULL,
                answer TEXT NOT NULL,
                is_correct BOOLEAN NOT NULL,
                streak_at_attempt INTEGER NOT NULL DEFAULT 0,
                points_earned INTEGER NOT NULL DEFAULT 0,
                attempted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS user_point_transactions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                course_id TEXT,
                lesson_id TEXT,
                exercise_id TEXT,
                transaction_type TEXT NOT NULL,
                points INTEGER NOT NULL,
                description TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
            """,
        ]

        for table_sql in tables:
            conn.execute(table_sql)

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create database indexes for performance"""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_users_total_points ON users(total_points)",
            (
                "CREATE INDEX IF NOT EXISTS idx_lesson_progress_user "
                "ON user_lesson_progress(user_id)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_exercise_attempts_lookup "
                "ON user_exercise_attempts(user_id, course_id, lesson_id, exercise_id)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_point_transactions_user_created "
                "ON user_point_transactions(user_id, created_at)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_point_transactions_type "
                "ON user_point_transactions(user_id, course_id, transaction_type)"
            ),
        ]

        for index_sql in indexes:
            try:
                conn.execute(index_sql)
            except sqlite3.OperationalError as e:
                logger.warning(f"Failed to create index: {index_sql}, error: {e}")
                # Continue with other indexes

    def _run_migrations(self, conn: sqlite3.Connection) -> None:
        """Add columns introduced after the first schema version"""
        cursor = conn.execute("PRAGMA table_info(users)")
        user_columns = {row[1] for row in cursor.fetchall()}

        # Daily streak and accuracy tracking arrived together
        added_user_columns = {
            "current_daily_streak": "INTEGER NOT NULL DEFAULT 0",
            "max_daily_streak": "INTEGER NOT NULL DEFAULT 0",
            "last_login_date": "DATE",
            "total_attempts": "INTEGER NOT NULL DEFAULT 0",
            "correct_attempts": "INTEGER NOT NULL DEFAULT 0",
        }
        for column, definition in added_user_columns.items():
            if column not in user_columns:
                logger.info(f"Adding missing {column} column to users table")
                conn.execute(f"ALTER TABLE users ADD COLUMN {column} {definition}")

        cursor = conn.execute("PRAGMA table_info(user_exercise_attempts)")
        attempt_columns = {row[1] for row in cursor.fetchall()}

        added_attempt_columns = {
            "streak_at_attempt": "INTEGER NOT NULL DEFAULT 0",
            "points_earned": "INTEGER NOT NULL DEFAULT 0",
        }
        for column, definition in added_attempt_columns.items():
            if column not in attempt_columns:
                logger.info(f"Adding missing {column} column to user_exercise_attempts table")
                conn.execute(
                    f"ALTER TABLE user_exercise_attempts ADD COLUMN {column} {definition}"
                )
