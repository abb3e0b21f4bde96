"""Exercise screen controller.

Relays user intent to the exercise service, keeps the session aggregator fed
from the metric feed, pushes display strings to the view and uploads the
session when the exercise ends.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Protocol

import structlog

from exercise_sync.aggregator import SessionMetricsAggregator
from exercise_sync.feed import (
    CheckpointEvent,
    FeedEvent,
    LapsEvent,
    SampleEvent,
    StateEvent,
    StatsEvent,
    TotalsEvent,
)
from exercise_sync.formatting import (
    EMPTY_METRIC,
    display_duration,
    format_calories,
    format_distance_km,
    format_elapsed_time,
    format_heart_rate,
    format_laps,
)
from exercise_sync.models import DataKind, DurationCheckpoint, ExerciseState, UploadResult
from exercise_sync.uploader import SessionUploader

logger = structlog.get_logger(__name__)


class ExerciseService(Protocol):
    """Background service that tracks the exercise."""

    def start_exercise(self) -> None: ...

    def pause_exercise(self) -> None: ...

    def resume_exercise(self) -> None: ...

    def end_exercise(self) -> None: ...

    def mark_lap(self) -> None: ...


class ViewSurface(Protocol):
    """Screen that shows display-ready strings."""

    def show_heart_rate(self, text: str) -> None: ...

    def show_calories(self, text: str) -> None: ...

    def show_distance(self, text: str) -> None: ...

    def show_laps(self, text: str) -> None: ...

    def show_elapsed_time(self, text: str) -> None: ...

    def show_controls(
        self, start_end_label: str, pause_resume_label: str, pause_resume_enabled: bool
    ) -> None: ...


class ExerciseController:
    """Glue between the exercise service, the session aggregator and the view."""

    def __init__(
        self,
        service: ExerciseService,
        view: ViewSurface,
        uploader: SessionUploader,
        aggregator: SessionMetricsAggregator | None = None,
        chrono_tick_seconds: float = 0.2,
    ):
        self.service = service
        self.view = view
        self.uploader = uploader
        self.aggregator = aggregator or SessionMetricsAggregator()
        self.chrono_tick_seconds = chrono_tick_seconds

        self.state = ExerciseState.ENDED
        self.checkpoint = DurationCheckpoint(
            time=datetime.now(UTC), active_duration=timedelta(0)
        )
        self.upload_task: asyncio.Task | None = None
        self._chrono_task: asyncio.Task | None = None
        # Set between the end request and the service confirming ENDED
        self._end_pending = False

    # Feed handling

    def handle(self, event: FeedEvent) -> None:
        """Apply one feed event; meant to be the ``MetricFeed.run`` handler."""
        if isinstance(event, SampleEvent):
            self.aggregator.observe(event.sample)
            if event.sample.kind is DataKind.HEART_RATE:
                self.view.show_heart_rate(format_heart_rate(event.sample.value))
        elif isinstance(event, StatsEvent):
            self.aggregator.apply_stats_summary(event.summary)
        elif isinstance(event, TotalsEvent):
            if event.calories is not None:
                self.view.show_calories(format_calories(event.calories))
            if event.distance_meters is not None:
                self.view.show_distance(format_distance_km(event.distance_meters))
        elif isinstance(event, StateEvent):
            self._update_state(event.state)
        elif isinstance(event, LapsEvent):
            self.view.show_laps(format_laps(event.laps))
        elif isinstance(event, CheckpointEvent):
            # Chronometer renders on its own ticks, not on these irregular updates
            self.checkpoint = event.checkpoint
        else:
            logger.warning("Unknown feed event", event=repr(event))

    def _update_state(self, state: ExerciseState) -> None:
        previous = self.state
        if state.is_ended:
            self._end_pending = False
        if previous.is_ended and not state.is_ended:
            logger.info("New exercise started", state=state.value)
            self.aggregator.reset()
            self._reset_displayed_fields()

        if state is ExerciseState.ACTIVE:
            self._start_chronometer()
        else:
            self._stop_chronometer()

        self.view.show_controls(
            "Start" if state.is_ended else "End",
            "Resume" if state.is_paused else "Pause",
            not state.is_ended,
        )
        self.state = state

    def _reset_displayed_fields(self) -> None:
        self.view.show_heart_rate(EMPTY_METRIC)
        self.view.show_calories(EMPTY_METRIC)
        self.view.show_distance(EMPTY_METRIC)
        self.view.show_laps(EMPTY_METRIC)
        self.view.show_elapsed_time(format_elapsed_time(timedelta(0)))

    # User intent

    def start_end(self) -> asyncio.Task | None:
        """Start a new exercise, or end the current one and upload it.

        Must be called from the event loop when ending. Returns the upload
        task when one was dispatched. Repeated end requests are ignored until
        the service reports the exercise as ended, so a session is uploaded
        at most once.
        """
        if self.state.is_ended:
            self.service.start_exercise()
            return None

        if self._end_pending:
            logger.debug("End already requested, ignoring")
            return None

        session = self.aggregator.current_session()
        self._end_pending = True
        self.view.show_controls(
            "End", "Resume" if self.state.is_paused else "Pause", False
        )
        self.service.end_exercise()

        if not session.pulse_series:
            logger.warning("Exercise ended without pulse data, skipping upload")
            return None

        self.upload_task = self.uploader.submit_in_background(session)
        self.upload_task.add_done_callback(self._log_upload_result)
        return self.upload_task

    def pause_resume(self) -> None:
        if self.state.is_paused:
            self.service.resume_exercise()
        else:
            self.service.pause_exercise()

    def mark_lap(self) -> None:
        self.service.mark_lap()

    @staticmethod
    def _log_upload_result(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.info("Session upload cancelled")
            return
        result: UploadResult = task.result()
        if result.success:
            logger.info("Session upload finished")
        else:
            logger.warning("Session upload failed", error=result.error)

    # Chronometer

    def tick(self, now: datetime | None = None) -> str:
        """Render the elapsed time as of ``now``."""
        duration = display_duration(
            self.checkpoint, now or datetime.now(UTC), self.state
        )
        text = format_elapsed_time(duration)
        self.view.show_elapsed_time(text)
        return text

    def _start_chronometer(self) -> None:
        if self._chrono_task is not None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Driven synchronously; the caller ticks the chronometer itself
            return
        self._chrono_task = asyncio.create_task(self._run_chronometer())

    def _stop_chronometer(self) -> None:
        if self._chrono_task is not None:
            self._chrono_task.cancel()
            self._chrono_task = None

    async def _run_chronometer(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.chrono_tick_seconds)
                self.tick()
        except asyncio.CancelledError:
            logger.debug("Chronometer stopped")
            raise

    async def aclose(self) -> None:
        """Stop the chronometer, let a pending upload finish, close the uploader."""
        task = self._chrono_task
        self._stop_chronometer()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        await self.uploader.aclose()
