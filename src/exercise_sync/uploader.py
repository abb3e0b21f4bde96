"""Client for submitting finished sessions to the training backend."""

import asyncio
import json
from datetime import date

import httpx
import structlog

from exercise_sync.config import Settings
from exercise_sync.exceptions import (
    AuthenticationError,
    ConfigurationError,
    EmptySessionError,
    ExerciseSyncError,
)
from exercise_sync.models import Credentials, Session, SessionSummary, UploadResult

logger = structlog.get_logger(__name__)

JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}
DATE_FORMAT = "%d.%m.%Y"


class SessionUploader:
    """Authenticates against the training backend and uploads session summaries.

    Login and upload are strictly sequential and never retried. The bearer
    token lives for a single ``submit`` call.
    """

    def __init__(
        self,
        base_url: str,
        credentials: Credentials | None = None,
        *,
        login_path: str = "/auth/login",
        trainings_path: str = "/app/trainings",
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the uploader.

        Args:
            base_url: Base URL of the training backend
            credentials: Login credentials, required before ``submit``
            login_path: Path of the login endpoint
            trainings_path: Path of the training submission endpoint
            timeout: Request timeout in seconds, None keeps the httpx default
            client: Externally owned HTTP client, mostly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.login_path = login_path
        self.trainings_path = trainings_path

        if client is None:
            client_kwargs = {} if timeout is None else {"timeout": timeout}
            client = httpx.AsyncClient(**client_kwargs)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client
        self._pending: set[asyncio.Task] = set()

        logger.info("Session uploader initialized", base_url=self.base_url)

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "SessionUploader":
        return cls(
            settings.api_base_url,
            settings.credentials() if settings.has_credentials else None,
            login_path=settings.login_path,
            trainings_path=settings.trainings_path,
            timeout=settings.request_timeout,
            client=client,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    @staticmethod
    def derive_summary(session: Session, today: date | None = None) -> SessionSummary:
        """Build the upload payload for a finished session.

        Raises:
            EmptySessionError: the session has no pulse data to take a
                duration from
        """
        if not session.pulse_series:
            raise EmptySessionError("Session has no pulse data")

        today = today or date.today()
        stats = session.stats
        return SessionSummary(
            date=today.strftime(DATE_FORMAT),
            duration_seconds=int(session.pulse_series[-1].time),
            avg_pulse=stats.avg_pulse,
            max_pulse=stats.max_pulse,
            min_pulse=stats.min_pulse,
            avg_step_rate=stats.avg_step_rate,
            total_steps=stats.total_steps,
            pulse_series=session.pulse_series,
            step_series=session.step_series,
        )

    async def authenticate(self, credentials: Credentials | None = None) -> str:
        """Exchange credentials for a bearer token.

        Raises:
            ConfigurationError: no credentials were supplied or configured
            AuthenticationError: transport failure, non-200 status or a
                response without a token
        """
        credentials = credentials or self.credentials
        if credentials is None:
            raise ConfigurationError("No backend credentials configured")

        url = f"{self.base_url}{self.login_path}"
        body = json.dumps(credentials.login_payload()).encode("utf-8")

        try:
            response = await self._client.post(url, content=body, headers=JSON_HEADERS)
        except httpx.HTTPError as e:
            logger.error("Login request error", endpoint=self.login_path, error=str(e))
            raise AuthenticationError(f"Login request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(
                "Login rejected",
                endpoint=self.login_path,
                status=response.status_code,
                reason=response.reason_phrase,
            )
            raise AuthenticationError(
                f"Login failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        try:
            token = response.json()["token"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Login response without token", endpoint=self.login_path)
            raise AuthenticationError(
                "Login response did not contain a token", status=200
            ) from e

        if not isinstance(token, str) or not token:
            raise AuthenticationError("Login returned an empty token", status=200)

        logger.debug("Login successful", endpoint=self.login_path)
        return token

    async def upload(self, summary: SessionSummary, token: str) -> UploadResult:
        """Submit a summary with the given bearer token."""
        url = f"{self.base_url}{self.trainings_path}"
        headers = {**JSON_HEADERS, "Authorization": f"Bearer {token}"}

        try:
            response = await self._client.post(
                url, content=summary.to_json().encode("utf-8"), headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(
                "Training upload error", endpoint=self.trainings_path, error=str(e)
            )
            return UploadResult.failed(str(e))

        if response.status_code == 200:
            logger.info(
                "Training uploaded",
                endpoint=self.trainings_path,
                duration_seconds=summary.duration_seconds,
            )
            return UploadResult.ok(response.text)

        logger.warning(
            "Training upload rejected",
            endpoint=self.trainings_path,
            status=response.status_code,
            response=response.text,
        )
        return UploadResult.failed(
            response.reason_phrase or f"HTTP {response.status_code}"
        )

    async def submit(self, session: Session) -> UploadResult:
        """Derive, authenticate and upload; never raises.

        A failed login short-circuits: the upload endpoint is not called.
        """
        try:
            summary = self.derive_summary(session)
            token = await self.authenticate()
            return await self.upload(summary, token)
        except ExerciseSyncError as e:
            logger.warning("Session upload aborted", error=str(e))
            return UploadResult.failed(str(e))
        except Exception as e:
            logger.exception("Unexpected error during session upload", error=str(e))
            return UploadResult.failed(str(e))

    def submit_in_background(self, session: Session) -> asyncio.Task:
        """Schedule ``submit`` on the running loop and return its task.

        The task is tracked until done so ``wait_pending`` and ``aclose``
        can await or cancel it.
        """
        task = asyncio.create_task(self.submit(session), name="session-upload")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def wait_pending(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self, cancel_pending: bool = False) -> None:
        """Finish (or cancel) background uploads and close the HTTP client."""
        if cancel_pending:
            for task in list(self._pending):
                task.cancel()
                logger.info("Cancelled pending upload", task=task.get_name())
        await self.wait_pending()

        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()
