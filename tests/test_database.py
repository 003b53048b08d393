"""
Unit tests for database operations
"""

import os
import sqlite3
import tempfile
from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest

from learnhub.core.database.connection import DatabaseConnection
from learnhub.core.database.database_manager import DatabaseManager
from learnhub.core.database.models import TransactionType

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestDatabaseManager:
    """Test DatabaseManager class"""

    @pytest.fixture
    def temp_db(self):
        """Create temporary database for testing"""
        temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
        temp_file.close()

        db_manager = DatabaseManager(temp_file.name)
        db_manager.init_database()

        yield db_manager

        # Cleanup
        os.unlink(temp_file.name)

    def test_database_initialization(self, temp_db):
        """Test database initialization"""
        with temp_db.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT name FROM sqlite_master
                WHERE type='table' AND name NOT LIKE 'sqlite_%'
            """
            )
            tables = [row[0] for row in cursor.fetchall()]

            expected_tables = [
                "users",
                "user_course_progress",
                "user_lesson_progress",
                "user_exercise_attempts",
                "user_point_transactions",
            ]
            for table in expected_tables:
                assert table in tables

    def test_init_database_is_repeatable(self, temp_db):
        temp_db.init_database()
        temp_db.init_database()

    def test_foreign_keys_enabled(self, temp_db):
        with temp_db.get_connection() as conn:
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1

    def test_create_user(self, temp_db):
        """Test user creation"""
        user = temp_db.user_repo.create_user("testuser", "test@example.com", NOW)

        assert user["id"] > 0
        assert user["username"] == "testuser"
        assert user["total_points"] == 0
        assert user["current_daily_streak"] == 0
        assert user["last_login_date"] is None
        assert user["created_at"] == NOW

    def test_duplicate_username_violates_constraint(self, temp_db):
        temp_db.user_repo.create_user("testuser", "a@example.com", NOW)

        with pytest.raises(sqlite3.IntegrityError):
            temp_db.user_repo.create_user("testuser", "b@example.com", NOW)

    def test_email_lookup_ignores_case(self, temp_db):
        temp_db.user_repo.create_user("testuser", "Test@Example.com", NOW)

        assert temp_db.user_repo.get_user_by_email("test@example.COM")["username"] == "testuser"

    def test_dates_round_trip(self, temp_db):
        user = temp_db.user_repo.create_user("testuser", "test@example.com", NOW)
        with temp_db.transaction() as conn:
            temp_db.user_repo.update_daily_streak(conn, user["id"], 3, 4, date(2026, 3, 1), NOW)

        state = temp_db.user_repo.get_daily_streak_state(user["id"])

        assert state == {
            "current_daily_streak": 3,
            "max_daily_streak": 4,
            "last_login_date": date(2026, 3, 1),
        }

    def test_transaction_insert_and_sum(self, temp_db):
        user = temp_db.user_repo.create_user("testuser", "test@example.com", NOW)
        with temp_db.transaction() as conn:
            temp_db.transaction_repo.insert_transaction(
                conn, user["id"], TransactionType.CORRECT_ANSWER, 10, "Correct answer", NOW,
                course_id="c1", lesson_id="l1", exercise_id="e1",
            )
            temp_db.transaction_repo.insert_transaction(
                conn, user["id"], TransactionType.DAILY_STREAK_BONUS, 20, "Daily", NOW,
            )
            assert temp_db.transaction_repo.transaction_exists(
                conn, user["id"], "c1", TransactionType.CORRECT_ANSWER, lesson_id="l1"
            )
            assert not temp_db.transaction_repo.transaction_exists(
                conn, user["id"], "c1", TransactionType.COURSE_COMPLETED
            )

        assert temp_db.transaction_repo.get_points_sum(user["id"]) == 30

    def test_leaderboard_ties_ordered_by_id(self, temp_db):
        first = temp_db.user_repo.create_user("first", "first@example.com", NOW)
        second = temp_db.user_repo.create_user("second", "second@example.com", NOW)

        rows = temp_db.user_repo.get_leaderboard(10)

        assert [row["user_id"] for row in rows] == [first["id"], second["id"]]


class TestTransactions:
    """Test the atomic unit of work"""

    @pytest.fixture
    def temp_db(self):
        temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
        temp_file.close()

        db_manager = DatabaseManager(temp_file.name)
        db_manager.init_database()

        yield db_manager

        os.unlink(temp_file.name)

    def test_commit_on_success(self, temp_db):
        user = temp_db.user_repo.create_user("testuser", "test@example.com", NOW)

        with temp_db.transaction() as conn:
            temp_db.user_repo.add_points(conn, user["id"], 15, NOW)

        assert temp_db.user_repo.get_user_by_id(user["id"])["total_points"] == 15

    def test_rollback_on_error(self, temp_db):
        user = temp_db.user_repo.create_user("testuser", "test@example.com", NOW)

        with pytest.raises(RuntimeError):
            with temp_db.transaction() as conn:
                temp_db.user_repo.add_points(conn, user["id"], 15, NOW)
                raise RuntimeError("boom")

        assert temp_db.user_repo.get_user_by_id(user["id"])["total_points"] == 0

    def test_add_points_unknown_user(self, temp_db):
        with temp_db.transaction() as conn:
            assert temp_db.user_repo.add_points(conn, 999, 10, NOW) is False

    def test_foreign_key_enforced(self, temp_db):
        with pytest.raises(sqlite3.IntegrityError):
            with temp_db.transaction() as conn:
                temp_db.transaction_repo.insert_transaction(
                    conn, 999, TransactionType.CORRECT_ANSWER, 10, "Correct answer", NOW
                )


class TestMigrations:
    """Test schema migrations of older databases"""

    def test_missing_columns_added(self):
        temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
        temp_file.close()
        try:
            with sqlite3.connect(temp_file.name) as conn:
                conn.execute(
                    """
                    CREATE TABLE users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        username TEXT UNIQUE NOT NULL,
                        email TEXT UNIQUE NOT NULL,
                        total_points INTEGER NOT NULL DEFAULT 0,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )
                conn.execute(
                    "INSERT INTO users (username, email, total_points) VALUES ('old', 'old@example.com', 70)"
                )
            conn.close()

            db_manager = DatabaseManager(temp_file.name)
            db_manager.init_database()

            user = db_manager.user_repo.get_user_by_username("old")
            assert user["total_points"] == 70
            assert user["current_daily_streak"] == 0
            assert user["total_attempts"] == 0
            assert user["last_login_date"] is None
        finally:
            os.unlink(temp_file.name)


class TestDatabaseConnection:
    """Test connection configuration"""

    @patch("learnhub.core.database.connection.get_database_path")
    def test_default_path_from_settings(self, mock_get_path, tmp_path):
        db_path = str(tmp_path / "nested" / "learnhub.db")
        mock_get_path.return_value = db_path

        connection = DatabaseConnection()

        assert connection.db_path == db_path
        assert (tmp_path / "nested").is_dir()

    def test_busy_timeout_applied(self, tmp_path):
        connection = DatabaseConnection(str(tmp_path / "test.db"), busy_timeout_ms=1234)

        with connection.get_connection() as conn:
            assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == 1234
