from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Checklist definitions (absolute or relative to CWD)
    checklist_file: str = "checklist.yaml"

    # Pushed to items that accept a camera index
    preferred_camera_index: int = 0

    # How long `check` waits for every item to leave PENDING
    settle_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"

    # Notifications on overall-state transitions (optional)
    slack_webhook_url: str = ""
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""


settings = Settings()
