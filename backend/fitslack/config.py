"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import Optional

from pydantic import Field, field_validator, ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    port: int = Field(default=3000, description="HTTP port")
    public_base_url: Optional[str] = Field(
        default=None,
        description="Public URL used in verification and re-auth links"
    )

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./data.sqlite",
        description="Database connection URL"
    )

    # === Strava ===
    strava_client_id: Optional[str] = Field(default=None)
    strava_client_secret: Optional[str] = Field(default=None)
    strava_redirect_uri: Optional[str] = Field(default=None)
    strava_verify_token: Optional[str] = Field(
        default=None,
        description="Webhook subscription handshake secret"
    )

    # === Slack ===
    slack_bot_token: Optional[str] = Field(default=None)
    slack_channel_id: Optional[str] = Field(
        default=None,
        description="Channel that receives workout posts"
    )
    fetch_pedometer_user_id: Optional[str] = Field(
        default=None,
        description="Slack user mentioned on the distance line"
    )
    my_slack_user_id: Optional[str] = Field(
        default=None,
        description="Admin's Slack user; receives the POST /test/slack sample"
    )

    # === Admin ===
    admin_token: Optional[str] = Field(
        default=None,
        description="Bearer token for admin routes (unset = open access)"
    )

    # === Peloton ===
    peloton_poll_interval_minutes: int = Field(default=5, ge=1)
    peloton_workout_limit: int = Field(default=10, ge=1, le=100)
    peloton_poller_enabled: bool = Field(default=True)

    # === HTTP ===
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @property
    def base_url(self) -> str:
        """Absolute base URL for links sent to users."""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        return f"http://localhost:{self.port}"

    @property
    def strava_callback_url(self) -> str:
        return self.strava_redirect_uri or f"{self.base_url}/auth/strava/callback"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
