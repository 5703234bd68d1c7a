"""Application settings loaded from environment variables."""

import logging
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_USERS_PATH = "/bot/allowed_users.txt"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Bot configuration. All values come from environment variables."""

    # Run mode: "bot" (default) or "zbx-setup"
    run_mode: str = Field(default="bot")

    # Telegram
    telegram_bot_token: str = Field(default="")

    # Allow-list
    allowed_users_path: str = Field(default=DEFAULT_ALLOWED_USERS_PATH)
    allowed_users_reload_seconds: float = Field(default=0.0, ge=0)

    # Zabbix provisioning (zbx-setup)
    zbx_api_url: str = Field(default="")
    zbx_user: str = Field(default="Admin")
    zbx_password: str = Field(default="")
    zbx_user_alias: str = Field(default="Admin")
    zbx_chat_id: str = Field(default="")
    zbx_action_name: str = Field(default="Send Telegram alerts")
    zbx_bot_token: str = Field(default="")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=_env_file(), env_file_encoding="utf-8", extra="forbid"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"unknown log level {value!r}"
            raise ValueError(msg)
        return level

    def require_bot_settings(self) -> None:
        """Raise ConfigError unless the bot can start."""
        if not self.telegram_bot_token.strip():
            raise ConfigError("TELEGRAM_BOT_TOKEN is not set")
        if not self.allowed_users_path.strip():
            raise ConfigError("ALLOWED_USERS_PATH is empty")

    def require_setup_settings(self) -> None:
        """Raise ConfigError unless zbx-setup has what it needs."""
        missing = [
            name
            for name, value in (
                ("ZBX_API_URL", self.zbx_api_url),
                ("ZBX_PASSWORD", self.zbx_password),
                ("ZBX_CHAT_ID", self.zbx_chat_id),
            )
            if not value.strip()
        ]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    def setup_bot_token(self) -> str:
        """Token to write into the Zabbix Telegram media type, if any."""
        return self.telegram_bot_token.strip() or self.zbx_bot_token.strip()
