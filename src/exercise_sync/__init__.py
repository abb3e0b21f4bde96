"""
Exercise Sync - live session metrics and training upload for wearable exercise tracking
"""

__version__ = "0.1.0"

from exercise_sync.aggregator import SessionMetricsAggregator
from exercise_sync.config import Settings
from exercise_sync.controller import ExerciseController
from exercise_sync.feed import MetricFeed
from exercise_sync.logging import setup_logging
from exercise_sync.uploader import SessionUploader

__all__ = [
    "ExerciseController",
    "MetricFeed",
    "SessionMetricsAggregator",
    "SessionUploader",
    "Settings",
    "setup_logging",
]
