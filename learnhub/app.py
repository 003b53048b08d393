"""
Application wiring for the LearnHub points engine
"""

import logging
from pathlib import Path

from .config import Settings, get_database_path, get_settings
from .content.store import ContentStore
from .core.database.database_manager import DatabaseManager
from .services.exercise_service import ExerciseService
from .services.points_service import PointsService
from .services.progress_service import ProgressService
from .services.user_service import UserService

logger = logging.getLogger(__name__)


class LearnHubApp:
    """Builds the database, content store and services from settings"""

    def __init__(self, settings: Settings | None = None, content_store: ContentStore | None = None):
        self.settings = settings or get_settings()
        self.db_manager = DatabaseManager(
            get_database_path(self.settings.database_url),
            busy_timeout_ms=self.settings.database_busy_timeout_ms,
        )
        self.content_store = content_store

        self.points_service = PointsService(self.db_manager, self.settings.points_config())
        self.progress_service = ProgressService(self.db_manager)
        self.user_service = UserService(self.db_manager, self.points_service)
        self.exercise_service = None

    def start(self) -> None:
        """Initialize the database and load course content"""
        self.db_manager.init_database()

        if self.content_store is None:
            content_dir = Path(self.settings.content_dir)
            if content_dir.is_dir():
                self.content_store = ContentStore.from_directory(content_dir)
            else:
                logger.warning(f"Content directory {content_dir} not found, no courses loaded")
                self.content_store = ContentStore()

        self.exercise_service = ExerciseService(
            self.content_store, self.progress_service, self.points_service
        )
        logger.info(
            f"LearnHub ready with {len(self.content_store.list_course_ids())} courses"
        )
