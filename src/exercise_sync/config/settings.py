"""
Settings for exercise-sync, loaded from EXERCISE_* environment variables
"""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from exercise_sync.exceptions import ConfigurationError
from exercise_sync.models import Credentials


class Settings(BaseSettings):
    """Configuration for the exercise session client"""

    model_config = SettingsConfigDict(
        env_prefix="EXERCISE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Service identification
    service_name: str = Field(
        default="exercise-sync",
        description="Name of the client for logging",
    )
    environment: str = Field(
        default="development",
        description="Deployment environment",
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # Training backend
    api_base_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the training backend",
    )
    login_path: str = Field(default="/auth/login", description="Login endpoint path")
    trainings_path: str = Field(
        default="/app/trainings",
        description="Training submission endpoint path",
    )
    api_username: str = Field(default="", description="Backend login username")
    api_password: SecretStr = Field(
        default=SecretStr(""), description="Backend login password"
    )
    request_timeout: Optional[float] = Field(
        default=None,
        description="HTTP timeout in seconds, unset keeps the transport default",
    )

    # Live metric feed
    feed_max_size: int = Field(
        default=256, description="Maximum number of queued feed events"
    )
    chrono_tick_seconds: float = Field(
        default=0.2, description="Elapsed time refresh interval"
    )

    # Down-sampling
    downsample_min_gap_seconds: float = Field(
        default=0.5,
        description="Minimum gap before a point keeps its real elapsed time",
    )
    downsample_step_seconds: float = Field(
        default=1.0,
        description="Offset applied to points arriving inside the minimum gap",
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_username and self.api_password.get_secret_value())

    def credentials(self) -> Credentials:
        """Get backend credentials, failing when they are not configured"""
        if not self.has_credentials:
            raise ConfigurationError(
                "EXERCISE_API_USERNAME and EXERCISE_API_PASSWORD must be set"
            )
        return Credentials(username=self.api_username, password=self.api_password)
