"""
Structured logging setup for exercise-sync
"""

from exercise_sync.logging.setup import get_logger, setup_logging

__all__ = ["setup_logging", "get_logger"]
