"""Incremental aggregation of live exercise metrics into a session."""

from collections.abc import Iterable

import structlog

from exercise_sync.models import (
    DataKind,
    HeartRateStats,
    SensorSample,
    Session,
    StatsSummary,
    StepRateStats,
    StepTotal,
    TimeSeriesPoint,
)

logger = structlog.get_logger(__name__)

DEFAULT_MIN_GAP_SECONDS = 0.5
DEFAULT_STEP_SECONDS = 1.0


class SessionMetricsAggregator:
    """Turns an irregular sample feed into down-sampled series plus stats.

    Samples of every kind share one zero reference, the device timestamp of
    the first sample seen after a reset. Each series keeps every sample, but
    a sample arriving within ``min_gap_seconds`` of the last retained point
    is placed ``step_seconds`` after that point instead of at its real
    elapsed time, so the series stays strictly increasing for charting.

    Not safe for concurrent use; deliver samples from a single context.
    """

    def __init__(
        self,
        min_gap_seconds: float = DEFAULT_MIN_GAP_SECONDS,
        step_seconds: float = DEFAULT_STEP_SECONDS,
    ):
        self.min_gap_seconds = min_gap_seconds
        self.step_seconds = step_seconds
        self._session = Session()

    def reset(self) -> None:
        """Drop the current session; the next sample starts a new one."""
        self._session = Session()
        logger.debug("Session reset")

    def observe(self, sample: SensorSample) -> TimeSeriesPoint:
        """Record a sample and return the point appended for it."""
        session = self._session
        if session.start_epoch_ms is None:
            session.start_epoch_ms = sample.device_timestamp_ms
            logger.debug("Session started", start_epoch_ms=sample.device_timestamp_ms)

        elapsed = (sample.device_timestamp_ms - session.start_epoch_ms) / 1000.0
        series = self._series_for(sample.kind)

        if not series or elapsed - series[-1].time > self.min_gap_seconds:
            point = TimeSeriesPoint(time=elapsed, value=sample.value)
        else:
            point = TimeSeriesPoint(
                time=series[-1].time + self.step_seconds, value=sample.value
            )

        series.append(point)
        return point

    def observe_many(self, samples: Iterable[SensorSample]) -> int:
        count = 0
        for sample in samples:
            self.observe(sample)
            count += 1
        return count

    def apply_stats_summary(self, summary: StatsSummary) -> None:
        """Overwrite the matching stats verbatim, truncating toward zero."""
        stats = self._session.stats

        if isinstance(summary, HeartRateStats):
            stats.avg_pulse = int(summary.average)
            stats.min_pulse = int(summary.min)
            stats.max_pulse = int(summary.max)
        elif isinstance(summary, StepRateStats):
            stats.avg_step_rate = int(summary.average)
        elif isinstance(summary, StepTotal):
            stats.total_steps = int(summary.total)
        else:
            raise TypeError(f"Unsupported stats summary: {type(summary).__name__}")

    def current_session(self) -> Session:
        """Snapshot of the session; later samples do not affect it."""
        return self._session.model_copy(deep=True)

    def _series_for(self, kind: DataKind) -> list[TimeSeriesPoint]:
        if kind is DataKind.HEART_RATE:
            return self._session.pulse_series
        return self._session.step_series
