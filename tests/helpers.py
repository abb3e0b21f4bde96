"""Sample builders shared by the unit tests."""

from exercise_sync.models import DataKind, SensorSample

BOOT_OFFSET_MS = 5_000


def heart_rate(
    seconds: float, value: float, boot_ms: int = BOOT_OFFSET_MS
) -> SensorSample:
    """Heart rate sample ``seconds`` after a fixed device boot offset."""
    return SensorSample(
        kind=DataKind.HEART_RATE,
        value=value,
        device_timestamp_ms=boot_ms + int(round(seconds * 1000)),
    )


def step_rate(
    seconds: float, value: float, boot_ms: int = BOOT_OFFSET_MS
) -> SensorSample:
    return SensorSample(
        kind=DataKind.STEP_RATE,
        value=value,
        device_timestamp_ms=boot_ms + int(round(seconds * 1000)),
    )
