#!/usr/bin/env python3
"""
LearnHub points engine
Main application entry point
"""

import logging

from learnhub.app import LearnHubApp
from learnhub.config import get_settings


def main():
    """Main application entry point"""
    # Load configuration
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger = logging.getLogger(__name__)
    logger.info("Starting LearnHub points engine...")

    app = LearnHubApp(settings)
    try:
        app.start()
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    for course_id in app.content_store.list_course_ids():
        course = app.content_store.get_course(course_id)
        logger.info(f"Course {course.id}: {course.name} ({len(course.lessons)} lessons)")


if __name__ == "__main__":
    main()
