from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from viewtrack.constants import DEFAULT_COOLDOWN_MINUTES

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "View Tracking Service"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./viewtrack.db"
    store_timeout_seconds: float = 5.0

    # View counting
    view_cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES
    forwarded_for_header: str = "X-Forwarded-For"
    atomic_counter_increment: bool = True
    view_rate_limit: str = "120/minute"

    # CORS settings
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("view_cooldown_minutes")
    @classmethod
    def validate_cooldown(cls, value: int) -> int:
        if value < 1:
            raise ValueError("view_cooldown_minutes must be at least 1")
        return value


settings = Settings()
