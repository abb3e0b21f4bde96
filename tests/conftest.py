"""Test configuration and fixtures for exercise-sync."""

import json
from collections.abc import Callable
from datetime import date
from unittest.mock import MagicMock

import httpx
import pytest
from pydantic import SecretStr

from exercise_sync.aggregator import SessionMetricsAggregator
from exercise_sync.models import Credentials, HeartRateStats, StepRateStats, StepTotal
from exercise_sync.uploader import SessionUploader
from tests.helpers import heart_rate, step_rate

BASE_URL = "http://training.test"


class RecordingBackend:
    """Fake training backend for ``httpx.MockTransport``."""

    def __init__(
        self,
        login_status: int = 200,
        login_body: dict | str | None = None,
        upload_status: int = 200,
        upload_body: str = '{"id": 1}',
    ):
        self.login_status = login_status
        self.login_body = {"token": "jwt-token"} if login_body is None else login_body
        self.upload_status = upload_status
        self.upload_body = upload_body
        self.requests: list[httpx.Request] = []

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/auth/login":
            body = self.login_body
            content = body if isinstance(body, str) else json.dumps(body)
            return httpx.Response(self.login_status, content=content)
        if request.url.path == "/app/trainings":
            return httpx.Response(self.upload_status, text=self.upload_body)
        return httpx.Response(404)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(username="athlete@example.com", password=SecretStr("s3cret"))


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def make_uploader(credentials) -> Callable[[Callable], SessionUploader]:
    """Build an uploader whose HTTP client routes to the given handler."""

    def _make(handler, creds: Credentials | None = credentials) -> SessionUploader:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SessionUploader(BASE_URL, creds, client=client)

    return _make


@pytest.fixture
def uploader(make_uploader, backend) -> SessionUploader:
    return make_uploader(backend.handler)


@pytest.fixture
def aggregator() -> SessionMetricsAggregator:
    return SessionMetricsAggregator()


@pytest.fixture
def recorded_session(aggregator):
    """Session with a few minutes of pulse and step data plus summaries."""
    for second, bpm in [(0.0, 88), (2.0, 95), (4.5, 101), (725.9, 132)]:
        aggregator.observe(heart_rate(second, bpm))
    for second, spm in [(1.0, 150), (3.0, 162)]:
        aggregator.observe(step_rate(second, spm))
    aggregator.apply_stats_summary(HeartRateStats(average=104.7, min=88, max=132))
    aggregator.apply_stats_summary(StepRateStats(average=156.2))
    aggregator.apply_stats_summary(StepTotal(total=1840))
    return aggregator.current_session()


@pytest.fixture
def today() -> date:
    return date(2024, 3, 7)


@pytest.fixture
def mock_view() -> MagicMock:
    return MagicMock(name="view")


@pytest.fixture
def mock_service() -> MagicMock:
    return MagicMock(name="exercise_service")
