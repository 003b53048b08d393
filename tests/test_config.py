"""
Tests for settings and points configuration
"""

from learnhub.config import PointsConfig, Settings, get_database_path


class TestSettings:
    """Test Settings loading"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CORRECT_ANSWER_POINTS", raising=False)
        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite:///data/learnhub.db"
        assert settings.content_dir == "data/courses"
        assert settings.points_config() == PointsConfig()

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CORRECT_ANSWER_POINTS", "15")
        monkeypatch.setenv("MAX_STREAK_BONUS", "30")
        monkeypatch.setenv("DAILY_STREAK_MILESTONES", "30, 7,100")

        points = Settings(_env_file=None).points_config()

        assert points.correct_answer_points == 15
        assert points.max_streak_bonus == 30
        assert points.daily_streak_milestones == [7, 30, 100]

    def test_empty_milestones(self):
        settings = Settings(_env_file=None, daily_streak_milestones=" ")

        assert settings.daily_streak_milestones_list == []


class TestPointsConfig:
    def test_defaults(self):
        config = PointsConfig()

        assert config.correct_answer_points == 10
        assert config.streak_bonus_multiplier == 2
        assert config.max_streak_bonus == 50
        assert config.lesson_completion_bonus == 50
        assert config.course_completion_bonus == 200
        assert config.daily_streak_bonus_points == 20
        assert config.daily_streak_milestones == [7, 30, 100, 365]
        assert config.milestone_bonus_multiplier == 5


class TestDatabasePath:
    def test_sqlite_url(self):
        assert get_database_path("sqlite:///tmp/test.db") == "tmp/test.db"

    def test_absolute_sqlite_url(self):
        assert get_database_path("sqlite:////var/lib/learnhub.db") == "/var/lib/learnhub.db"

    def test_other_url_falls_back(self):
        assert get_database_path("postgresql://localhost/learnhub") == "data/learnhub.db"
