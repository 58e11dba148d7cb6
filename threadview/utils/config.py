"""Configuration manager for persistent settings stored as JSON."""

import json
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import (
    ConfigurationError,
    FileSystemError,
    InvalidConfigError,
    MissingConfigError,
    ThreadviewError,
)
from .logging import get_logger, log_call
from .paths import CONFIG_PATH

logger = get_logger(__name__)


class AccountConfig(BaseModel):
    """Pydantic model for account configuration."""

    session_url: Optional[str] = None
    network_timeout: int = 30  # in seconds


class RefreshConfig(BaseModel):
    """Pydantic model for the polling loop and pagination."""

    interval_seconds: int = 5
    query_page_size: int = 10

    @field_validator("interval_seconds", "query_page_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value


class UIConfig(BaseModel):
    """Pydantic model for UI settings."""

    labels: List[str] = Field(default_factory=lambda: ["jmap", "xmpp"])
    compose_to: str = "test@example.com"
    compose_to_name: str = "Test Thetest"
    compose_subject: str = "This is a test"
    compose_body: str = "This is a message from threadview"

    @field_validator("labels")
    @classmethod
    def _two_labels(cls, value: List[str]) -> List[str]:
        if len(value) != 2 or not all(label.strip() for label in value):
            raise ValueError("exactly two non-empty label names are required")
        return value


class LoggingConfig(BaseModel):
    """Pydantic model for logging settings."""

    log_level: str = "INFO"
    max_file_size: int = 5_242_880  # 5 MB
    backup_count: int = 5


class AppConfig(BaseModel):
    """Pydantic model for overall application configuration."""

    version: str = "0.1.0"
    account: AccountConfig = Field(default_factory=AccountConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages persistent application configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.path = Path(config_path) if config_path else CONFIG_PATH
        self.config = self._load_or_create_config()
        logger.info(f"Configuration loaded from {self.path}")

    def _load_or_create_config(self) -> AppConfig:
        """Load configuration from file or create default if not present."""

        if not self.path.exists():
            logger.info("No config file found, creating default configuration.")
            config = AppConfig()
            self._save_config(config)
            return config

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = AppConfig(**data)
            logger.debug("Configuration successfully loaded and validated.")
            return config

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise InvalidConfigError(f"Configuration file is not valid JSON: {str(e)}") from e
        except ValidationError as e:
            logger.error(f"Failed to validate config file: {e}")
            raise InvalidConfigError(f"Configuration data does not match expected schema: {str(e)}") from e
        except TypeError as e:
            raise InvalidConfigError(f"Configuration file must contain a JSON object: {str(e)}") from e
        except OSError as e:
            raise FileSystemError(f"Failed to read configuration file {self.path}: {str(e)}") from e

    def _save_config(self, config: Optional[AppConfig] = None) -> None:
        """Save the current configuration to file."""

        config = config or self.config

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)
            logger.debug("Configuration successfully saved.")
        except OSError as e:
            raise FileSystemError(f"Failed to write configuration file: {str(e)}") from e

    @log_call
    def set_config(self, key_path: str, value: Any, persist: bool = True) -> None:
        """Set a configuration value using dot-separated key path."""

        try:
            keys = key_path.split(".")
            updated = self.config.model_copy(deep=True)
            obj = updated

            for key in keys[:-1]:
                if not hasattr(obj, key):
                    raise MissingConfigError(f"Configuration path '{key_path}' is invalid: '{key}' not found")
                obj = getattr(obj, key)

            if not hasattr(obj, keys[-1]):
                raise MissingConfigError(f"Configuration key '{keys[-1]}' does not exist in path '{key_path}'")

            setattr(obj, keys[-1], value)
            # re-validate the whole tree so bad values never reach the session
            self.config = AppConfig(**updated.model_dump())

            if persist:
                self._save_config()

            logger.info(f"Config key '{key_path}' updated.")

        except ThreadviewError:
            raise
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid value for '{key_path}': {str(e)}") from e
        except Exception as e:
            raise ConfigurationError(f"Failed to set configuration key '{key_path}': {str(e)}") from e

    @log_call
    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""

        logger.warning("Resetting configuration to default values.")
        self.config = AppConfig()
        self._save_config()
