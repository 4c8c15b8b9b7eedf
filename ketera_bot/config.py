"""Configuration management for the crate lookup bot.

Handles all application configuration including environment variables, the
optional YAML logging config file, and default settings. Provides structured
configuration classes for the bot transport, upstream search, and formatting.
"""

import logging
import logging.config
from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("httpx", "telegram.ext.Updater", "apscheduler")


class BotConfig(BaseSettings):
    """Main Telegram bot configuration.

    Attributes:
        bot_token: Telegram bot API token from environment.
        webhook_domain: Public domain for webhook mode, polling when unset.
        port: Server port for webhook mode.
        listen_host: Interface the webhook server binds to.
    """
    bot_token: str | None = Field(default=None, validation_alias="BOT_TOKEN")
    webhook_domain: str | None = Field(default=None, validation_alias="WEBHOOK_DOMAIN")
    port: int = Field(default=8000, validation_alias="PORT")
    listen_host: str = Field(default="127.0.0.1", validation_alias="BOT_LISTEN_HOST")

    @property
    def use_webhook(self) -> bool:
        """Determine if webhook mode should be used.

        Returns:
            True if webhook domain is configured, False for polling mode.
        """
        return bool(self.webhook_domain)


class SearchConfig(BaseSettings):
    """Upstream lookup settings.

    Attributes:
        timeout: Deadline in seconds for a whole search call.
        user_agent: User-Agent header sent to crates.io and docs.rs.
        crates_api_url: Base URL of the crates.io API.
        docs_rs_url: Base URL of docs.rs.
        std_docs_url: Base URL of the standard library documentation.
    """
    timeout: float = Field(default=10.0, gt=0, validation_alias="SEARCH_TIMEOUT")
    user_agent: str = Field(
        default="ketera-bot (+https://github.com/kiwiyou/ketera-bot)",
        validation_alias="HTTP_USER_AGENT",
    )
    crates_api_url: str = "https://crates.io/api/v1"
    docs_rs_url: str = "https://docs.rs"
    std_docs_url: str = "https://doc.rust-lang.org/stable"


class FormatConfig(BaseSettings):
    """Chat message formatting limits.

    Attributes:
        description_limit: Maximum characters of a crate description.
        max_message_length: Hard cap on any rendered message.
    """
    description_limit: int = Field(default=300, ge=10, validation_alias="DESCRIPTION_LIMIT")
    max_message_length: int = Field(default=4096, ge=64, validation_alias="MAX_MESSAGE_LENGTH")


class LoggingConfig(BaseSettings):
    """Logging setup.

    Attributes:
        config_path: Optional YAML file in logging.config.dictConfig format.
        level: Root level used when no config file is present.
    """
    config_path: str = Field(default="config/logging.yml", validation_alias="LOG_CONFIG")
    level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


class Config:
    """Application configuration manager.

    Centralizes loading of all configuration sources and provides typed
    access to configuration sections for different application components.
    """

    def __init__(self) -> None:
        self.bot = BotConfig()
        self.search = SearchConfig()
        self.format = FormatConfig()
        self.logging = LoggingConfig()


def setup_logging(logging_config: LoggingConfig) -> None:
    """Configure logging from the YAML file, or fall back to basicConfig.

    Args:
        logging_config: Logging section of the application config.
    """
    path = Path(logging_config.config_path)
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f)
        logging.config.dictConfig(data)
        logging.getLogger(__name__).info("Loaded logging config from %s", path)
        return

    logging.basicConfig(
        format=DEFAULT_LOG_FORMAT,
        level=logging_config.level.upper(),
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Global configuration instance
config = Config()
