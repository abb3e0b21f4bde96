"""Unit tests for the session metrics aggregator."""

import pytest

from exercise_sync.aggregator import SessionMetricsAggregator
from exercise_sync.models import (
    HeartRateStats,
    SessionStats,
    StepRateStats,
    StepTotal,
    TimeSeriesPoint,
)
from tests.helpers import heart_rate, step_rate


def times(series: list[TimeSeriesPoint]) -> list[float]:
    return [point.time for point in series]


class TestObserve:
    """Test series construction from samples."""

    def test_first_sample_sets_start_epoch(self, aggregator):
        """Test the first sample fixes the session start epoch."""
        aggregator.observe(heart_rate(0.0, 60, boot_ms=123_456))

        session = aggregator.current_session()
        assert session.start_epoch_ms == 123_456
        assert session.pulse_series == [TimeSeriesPoint(time=0.0, value=60)]

    def test_close_samples_are_pushed_one_second_past_last_point(self, aggregator):
        """Samples at 0.0, 0.2 and 1.0 s land at 0.0, 1.0 and 2.0."""
        for second, bpm in [(0.0, 60), (0.2, 62), (1.0, 70)]:
            aggregator.observe(heart_rate(second, bpm))

        series = aggregator.current_session().pulse_series
        assert [(p.time, p.value) for p in series] == [
            (0.0, 60),
            (1.0, 62),
            (2.0, 70),
        ]

    def test_gap_of_exactly_half_second_is_still_pushed(self, aggregator):
        """Test a gap of exactly half a second counts as too close."""
        aggregator.observe(heart_rate(0.0, 60))
        point = aggregator.observe(heart_rate(0.5, 61))

        assert point.time == 1.0

    def test_wide_gap_keeps_real_elapsed_time(self, aggregator):
        """Test a sample past the minimum gap keeps its elapsed time."""
        aggregator.observe(heart_rate(0.0, 60))
        point = aggregator.observe(heart_rate(0.6, 61))

        assert point.time == pytest.approx(0.6)

    def test_series_strictly_increasing_under_dense_sampling(self, aggregator):
        """Test dense sampling never produces duplicate times."""
        for i in range(50):
            aggregator.observe(heart_rate(i * 0.1, 60 + i))

        series_times = times(aggregator.current_session().pulse_series)
        assert len(series_times) == 50
        assert all(a < b for a, b in zip(series_times, series_times[1:]))

    def test_series_strictly_increasing_for_irregular_timestamps(self, aggregator):
        """Test irregular timestamps still give an increasing series."""
        offsets = [0.0, 0.3, 0.31, 2.0, 2.9, 3.0, 10.0, 10.4, 10.45, 30.0]
        for offset in offsets:
            aggregator.observe(heart_rate(offset, 100))

        series_times = times(aggregator.current_session().pulse_series)
        assert all(a < b for a, b in zip(series_times, series_times[1:]))

    def test_kinds_share_start_epoch_but_not_series(self, aggregator):
        """Test heart and step samples share one zero reference."""
        aggregator.observe(step_rate(0.0, 140))
        aggregator.observe(heart_rate(3.0, 90))
        aggregator.observe(step_rate(3.2, 150))

        session = aggregator.current_session()
        assert times(session.pulse_series) == [3.0]
        assert times(session.step_series) == [0.0, pytest.approx(3.2)]

    def test_observe_many(self, aggregator):
        """Test batch observation records every sample."""
        count = aggregator.observe_many([heart_rate(0, 60), step_rate(1, 120)])

        assert count == 2
        session = aggregator.current_session()
        assert len(session.pulse_series) == 1
        assert len(session.step_series) == 1

    def test_custom_downsampling_parameters(self):
        """Test configured gap and step values are honoured."""
        aggregator = SessionMetricsAggregator(min_gap_seconds=2.0, step_seconds=5.0)
        aggregator.observe(heart_rate(0.0, 60))
        point = aggregator.observe(heart_rate(1.5, 61))

        assert point.time == 5.0


class TestStatsSummary:
    """Test statistics overwrite semantics."""

    def test_heart_rate_average_is_truncated(self, aggregator):
        """Test heart rate stats are stored as integers."""
        aggregator.apply_stats_summary(HeartRateStats(average=72.4, max=140, min=58))

        stats = aggregator.current_session().stats
        assert (stats.avg_pulse, stats.max_pulse, stats.min_pulse) == (72, 140, 58)

    def test_truncates_rather_than_rounds(self, aggregator):
        """Test fractional stats are truncated toward zero."""
        aggregator.apply_stats_summary(HeartRateStats(average=72.9, max=140.8, min=58.6))

        stats = aggregator.current_session().stats
        assert (stats.avg_pulse, stats.max_pulse, stats.min_pulse) == (72, 140, 58)

    def test_step_summaries(self, aggregator):
        """Test step rate and step total summaries."""
        aggregator.apply_stats_summary(StepRateStats(average=151.9))
        aggregator.apply_stats_summary(StepTotal(total=2048))

        stats = aggregator.current_session().stats
        assert stats.avg_step_rate == 151
        assert stats.total_steps == 2048

    def test_summary_overwrites_previous_values(self, aggregator):
        """Test a later summary replaces the earlier one."""
        aggregator.apply_stats_summary(HeartRateStats(average=80, max=120, min=60))
        aggregator.apply_stats_summary(HeartRateStats(average=75, max=110, min=65))

        stats = aggregator.current_session().stats
        assert (stats.avg_pulse, stats.max_pulse, stats.min_pulse) == (75, 110, 65)

    def test_summary_independent_of_series(self, aggregator):
        """Test stats are not derived from the series."""
        aggregator.observe(heart_rate(0, 200))
        aggregator.apply_stats_summary(HeartRateStats(average=70, max=90, min=50))

        assert aggregator.current_session().stats.max_pulse == 90

    def test_unsupported_summary_type(self, aggregator):
        """Test unknown summary objects are rejected."""
        with pytest.raises(TypeError):
            aggregator.apply_stats_summary(object())


class TestResetAndSnapshot:
    """Test session lifecycle."""

    def test_reset_discards_series_and_recomputes_epoch(self, aggregator):
        """Test reset starts a fresh session on the next sample."""
        aggregator.observe(heart_rate(0.0, 60, boot_ms=1_000))
        aggregator.observe(step_rate(5.0, 120, boot_ms=1_000))
        aggregator.apply_stats_summary(StepTotal(total=10))

        aggregator.reset()
        aggregator.observe(heart_rate(0.0, 75, boot_ms=90_000))

        session = aggregator.current_session()
        assert session.start_epoch_ms == 90_000
        assert session.pulse_series == [TimeSeriesPoint(time=0.0, value=75)]
        assert session.step_series == []
        assert session.stats == SessionStats()

    def test_reset_before_any_sample(self, aggregator):
        """Test reset on an empty session."""
        aggregator.reset()

        assert aggregator.current_session().start_epoch_ms is None

    def test_snapshot_is_isolated(self, aggregator):
        """Test snapshots do not share state with the live session."""
        aggregator.observe(heart_rate(0.0, 60))
        snapshot = aggregator.current_session()

        aggregator.observe(heart_rate(3.0, 61))
        snapshot.pulse_series.clear()

        assert len(snapshot.pulse_series) == 0
        assert len(aggregator.current_session().pulse_series) == 2
