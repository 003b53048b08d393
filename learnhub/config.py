"""
Configuration management for the LearnHub points engine
"""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PointsConfig(BaseModel):
    """Point values for every rewarded action"""

    correct_answer_points: int = 10
    streak_bonus_multiplier: int = 2
    max_streak_bonus: int = 50
    lesson_completion_bonus: int = 50
    course_completion_bonus: int = 200
    daily_streak_bonus_points: int = 20
    # Login streak lengths that pay a milestone bonus instead of the daily one
    daily_streak_milestones: list[int] = Field(default_factory=lambda: [7, 30, 100, 365])
    milestone_bonus_multiplier: int = 5


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database Configuration
    database_url: str = Field(default="sqlite:///data/learnhub.db")
    database_busy_timeout_ms: int = Field(default=30000)

    # Content Configuration
    content_dir: str = Field(default="data/courses")

    # Application Configuration
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)

    # Points Configuration
    correct_answer_points: int = Field(default=10)
    streak_bonus_multiplier: int = Field(default=2)
    max_streak_bonus: int = Field(default=50)
    lesson_completion_bonus: int = Field(default=50)
    course_completion_bonus: int = Field(default=200)
    daily_streak_bonus_points: int = Field(default=20)
    daily_streak_milestones: str = Field(default="7,30,100,365")
    milestone_bonus_multiplier: int = Field(default=5)

    @property
    def daily_streak_milestones_list(self) -> list[int]:
        """Convert daily_streak_milestones string to a sorted list of integers"""
        if not self.daily_streak_milestones.strip():
            return []
        return sorted(
            int(milestone.strip())
            for milestone in self.daily_streak_milestones.split(",")
            if milestone.strip()
        )

    def points_config(self) -> PointsConfig:
        """Build the points configuration from the settings"""
        return PointsConfig(
            correct_answer_points=self.correct_answer_points,
            streak_bonus_multiplier=self.streak_bonus_multiplier,
            max_streak_bonus=self.max_streak_bonus,
            lesson_completion_bonus=self.lesson_completion_bonus,
            course_completion_bonus=self.course_completion_bonus,
            daily_streak_bonus_points=self.daily_streak_bonus_points,
            daily_streak_milestones=self.daily_streak_milestones_list,
            milestone_bonus_multiplier=self.milestone_bonus_multiplier,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_path(database_url: str | None = None) -> str:
    """Get the database file path from URL"""
    if database_url is None:
        database_url = get_settings().database_url
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "")
    return "data/learnhub.db"
