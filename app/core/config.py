"""Application configuration from environment."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Scenario Progress Service"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./scenario_progress.db"

    # JWT for teacher bearer tokens
    secret_key: str = "change-me-in-production-use-env"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    # Shared login password handed out to teachers
    default_password: str = "change-me"

    # External evaluator (conversation analysis API)
    evaluator_api_key: str = ""
    evaluator_org_id: str = ""
    evaluator_base_url: str = "https://api.toughtongueai.com/api/public"
    evaluator_timeout_seconds: float = 45.0

    # Polling policy: 15 x 30s = 7.5 minutes
    poll_max_attempts: int = 15
    poll_interval_seconds: float = 30.0
    poll_trigger_once: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()
