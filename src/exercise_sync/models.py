"""Pydantic models for exercise session data structures."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class DataKind(str, Enum):
    """Kind of sampled metric delivered by the exercise service."""

    HEART_RATE = "heart_rate"
    STEP_RATE = "step_rate"


class ExerciseState(str, Enum):
    """Exercise lifecycle state as reported by the exercise service."""

    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"

    @property
    def is_ended(self) -> bool:
        return self is ExerciseState.ENDED

    @property
    def is_paused(self) -> bool:
        return self is ExerciseState.PAUSED


class SensorSample(BaseModel):
    """A single timestamped reading from the exercise service."""

    kind: DataKind = Field(description="Metric this reading belongs to")
    value: float = Field(description="Reading value (bpm or steps per minute)")
    device_timestamp_ms: int = Field(
        description="Device time since boot in milliseconds"
    )


class TimeSeriesPoint(BaseModel):
    """Down-sampled point, time in seconds since the session start."""

    time: float
    value: float


class HeartRateStats(BaseModel):
    """Heart rate statistics summary over the exercise so far."""

    kind: Literal["heart_rate"] = "heart_rate"
    average: float
    min: float
    max: float


class StepRateStats(BaseModel):
    """Step rate statistics summary over the exercise so far."""

    kind: Literal["step_rate"] = "step_rate"
    average: float


class StepTotal(BaseModel):
    """Cumulative step count over the exercise so far."""

    kind: Literal["steps_total"] = "steps_total"
    total: float


StatsSummary = Annotated[
    Union[HeartRateStats, StepRateStats, StepTotal], Field(discriminator="kind")
]


class SessionStats(BaseModel):
    """Scalar statistics, overwritten wholesale by each summary."""

    avg_pulse: int = 0
    min_pulse: int = 0
    max_pulse: int = 0
    avg_step_rate: int = 0
    total_steps: int = 0


class Session(BaseModel):
    """In-memory state of one exercise."""

    start_epoch_ms: int | None = Field(
        default=None,
        description="Device timestamp of the first sample, None until one arrives",
    )
    pulse_series: list[TimeSeriesPoint] = Field(default_factory=list)
    step_series: list[TimeSeriesPoint] = Field(default_factory=list)
    stats: SessionStats = Field(default_factory=SessionStats)


class SessionSummary(BaseModel):
    """Upload payload for a finished session.

    Attribute names are pythonic; the aliases are the backend's field names
    and are used for both serialisation and parsing.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: str = Field(description="Session date formatted as dd.mm.yyyy")
    duration_seconds: int = Field(alias="durationInSeconds")
    avg_pulse: int = Field(alias="avgPulse")
    max_pulse: int = Field(alias="maxPulse")
    min_pulse: int = Field(alias="minPulse")
    avg_step_rate: int = Field(alias="avgSpeed")
    total_steps: int = Field(alias="sumSteps")
    pulse_series: list[TimeSeriesPoint] = Field(alias="pulseData")
    step_series: list[TimeSeriesPoint] = Field(alias="speedData")

    def to_json(self) -> str:
        """Serialise using the backend field names."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "SessionSummary":
        return cls.model_validate_json(raw)


class Credentials(BaseModel):
    """Backend login credentials."""

    username: str
    password: SecretStr

    def login_payload(self) -> dict[str, str]:
        return {
            "username": self.username,
            "password": self.password.get_secret_value(),
        }


class UploadResult(BaseModel):
    """Outcome of a session upload attempt."""

    success: bool
    body: str | None = Field(default=None, description="Response body on success")
    error: str | None = Field(default=None, description="Diagnostic on failure")

    @classmethod
    def ok(cls, body: str) -> "UploadResult":
        return cls(success=True, body=body)

    @classmethod
    def failed(cls, error: str) -> "UploadResult":
        return cls(success=False, error=error)


class DurationCheckpoint(BaseModel):
    """Active duration reported by the exercise service at a wall-clock time."""

    time: datetime
    active_duration: timedelta = timedelta(0)
