"""
Utility functions for the LearnHub points engine
"""

import logging
import time
from datetime import date, datetime, timezone
from functools import wraps

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def utc_date(moment: datetime) -> date:
    """Calendar date of a moment at UTC; naive datetimes are taken as UTC"""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(timezone.utc).date()


def calculate_success_rate(correct: int, total: int) -> float:
    """Calculate success rate as percentage"""
    if total == 0:
        return 0.0
    return (correct / total) * 100.0


class Timer:
    """Simple timer for measuring duration"""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start the timer"""
        self.start_time = time.perf_counter()
        self.end_time = None

    def stop(self):
        """Stop the timer"""
        if self.start_time is not None:
            self.end_time = time.perf_counter()

    def elapsed(self) -> float | None:
        """Get elapsed time in seconds"""
        if self.start_time is None:
            return None

        end = self.end_time or time.perf_counter()
        return end - self.start_time

    def elapsed_ms(self) -> int | None:
        """Get elapsed time in milliseconds"""
        elapsed = self.elapsed()
        return int(elapsed * 1000) if elapsed is not None else None


def log_execution_time(func):
    """Decorator to log function execution time"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.error(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    return wrapper
