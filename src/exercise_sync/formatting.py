"""Display strings for the exercise screen."""

import math
from datetime import datetime, timedelta

from exercise_sync.models import DurationCheckpoint, ExerciseState

EMPTY_METRIC = "--"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_heart_rate(bpm: float) -> str:
    return str(_round_half_up(bpm))


def format_calories(calories: float) -> str:
    return f"{_round_half_up(calories)} cal"


def format_distance_km(meters: float) -> str:
    return f"{meters / 1000:.2f} km"


def format_laps(laps: int) -> str:
    return str(laps)


def format_elapsed_time(duration: timedelta, include_seconds: bool = True) -> str:
    """Format as ``1h02m03s``; hours are left out while zero.

    Seconds are dropped when ``include_seconds`` is false, e.g. for a
    low-power display that only refreshes once a minute.
    """
    total = max(0, int(duration.total_seconds()))
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)

    text = f"{hours}h" if hours else ""
    text += f"{minutes:02d}m"
    if include_seconds:
        text += f"{seconds:02d}s"
    return text


def display_duration(
    checkpoint: DurationCheckpoint, now: datetime, state: ExerciseState
) -> timedelta:
    """Active duration to show at ``now``.

    While active the time since the checkpoint is added; otherwise the
    checkpoint value is final.
    """
    if state is ExerciseState.ACTIVE:
        return checkpoint.active_duration + (now - checkpoint.time)
    return checkpoint.active_duration
