"""Exceptions raised by exercise-sync."""


class ExerciseSyncError(Exception):
    """Base class for exercise-sync errors."""


class ConfigurationError(ExerciseSyncError):
    """Required configuration is missing or invalid."""


class EmptySessionError(ExerciseSyncError):
    """A summary was requested for a session without pulse data."""


class AuthenticationError(ExerciseSyncError):
    """Login against the training backend failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class FeedClosedError(ExerciseSyncError):
    """An event was published to a closed metric feed."""


class FeedFullError(ExerciseSyncError):
    """A non-blocking publish found the metric feed full."""
