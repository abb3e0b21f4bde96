"""
Configuration for exercise-sync
"""

from exercise_sync.config.settings import Settings

__all__ = ["Settings"]
