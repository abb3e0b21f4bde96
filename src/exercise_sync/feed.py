"""Bounded channel carrying exercise service updates to a single consumer."""

import asyncio
from collections.abc import Callable
from typing import Annotated, Literal, Union

import structlog
from pydantic import BaseModel, Field, TypeAdapter

from exercise_sync.exceptions import FeedClosedError, FeedFullError
from exercise_sync.models import (
    DurationCheckpoint,
    ExerciseState,
    SensorSample,
    StatsSummary,
)

logger = structlog.get_logger(__name__)


class SampleEvent(BaseModel):
    """Latest heart rate or step rate reading."""

    type: Literal["sample"] = "sample"
    sample: SensorSample


class StatsEvent(BaseModel):
    """Periodic statistics summary."""

    type: Literal["stats"] = "stats"
    summary: StatsSummary


class TotalsEvent(BaseModel):
    """Display-only running totals."""

    type: Literal["totals"] = "totals"
    calories: float | None = None
    distance_meters: float | None = None


class StateEvent(BaseModel):
    type: Literal["state"] = "state"
    state: ExerciseState


class LapsEvent(BaseModel):
    type: Literal["laps"] = "laps"
    laps: int


class CheckpointEvent(BaseModel):
    type: Literal["checkpoint"] = "checkpoint"
    checkpoint: DurationCheckpoint


FeedEvent = Annotated[
    Union[SampleEvent, StatsEvent, TotalsEvent, StateEvent, LapsEvent, CheckpointEvent],
    Field(discriminator="type"),
]

feed_event_adapter: TypeAdapter[FeedEvent] = TypeAdapter(FeedEvent)


def parse_event(raw: str | bytes) -> FeedEvent:
    """Parse one JSON encoded feed event."""
    return feed_event_adapter.validate_json(raw)


_CLOSE = object()


class MetricFeed:
    """Ordered, bounded delivery of feed events to one synchronous handler.

    Producers ``publish`` from any coroutine; ``run`` drains the queue from a
    single task so the handler never sees concurrent calls.
    """

    def __init__(self, max_size: int = 256):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self._closed = False
        self.events_delivered = 0
        self.handler_errors = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def publish(self, event: FeedEvent) -> None:
        """Queue an event, waiting while the feed is full."""
        if self._closed:
            raise FeedClosedError("Metric feed is closed")
        await self._queue.put(event)

    def publish_nowait(self, event: FeedEvent) -> None:
        if self._closed:
            raise FeedClosedError("Metric feed is closed")
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            raise FeedFullError(
                f"Metric feed full ({self._queue.maxsize} events)"
            ) from None

    async def close(self) -> None:
        """Stop accepting events; ``run`` returns once the queue is drained."""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSE)

    async def run(self, handler: Callable[[FeedEvent], None]) -> None:
        logger.debug("Metric feed consumer started")

        while True:
            event = await self._queue.get()
            try:
                if event is _CLOSE:
                    break
                try:
                    handler(event)
                    self.events_delivered += 1
                except Exception as e:
                    self.handler_errors += 1
                    logger.error(
                        "Error handling feed event", event_type=event.type, error=str(e)
                    )
            finally:
                self._queue.task_done()

        logger.debug(
            "Metric feed consumer stopped",
            events_delivered=self.events_delivered,
            handler_errors=self.handler_errors,
        )
