from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings

from toolwatch import __version__


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "TOOLWATCH_",
        "extra": "ignore",
    }

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 4000
    environment: str = "development"  # development | production

    # Logging
    log_level: str = "INFO"

    # Poll engine tunables (all durations in milliseconds)
    request_timeout_ms: int = 10_000
    max_retries: int = 2
    retry_backoff_ms: int = 1_000  # retry n waits n * this
    pacing_ms: int = 2_000  # pause between targets within a sweep
    sweep_period_ms: int = 300_000
    latency_threshold_ms: int = 2_000  # slower 2xx responses are degraded

    user_agent: str = f"toolwatch/{__version__}"

    # Optional YAML override for the monitored targets (restart to apply)
    targets_file: str | None = None

    # Incident notifications (optional — Slack / Telegram)
    slack_webhook_url: str = ""
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    @field_validator(
        "request_timeout_ms", "retry_backoff_ms", "pacing_ms",
        "sweep_period_ms", "latency_threshold_ms", "max_retries",
    )
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be >= 0")
        return value


settings = Settings()
