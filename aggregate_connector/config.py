import logging
import os
import sys
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


# =============================================================================
# Source Configuration
# =============================================================================


class SourceEntry(BaseModel):
    """Configuration for one named source.

    Either ``service`` carries a ready-made source instance, or ``module``
    names the factory that builds one from ``params``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    service: Any = None  # Pre-built source instance, used as-is
    module: str | Callable[..., Any] | None = None  # Factory or registered factory name
    params: Any = None  # Single argument, or list/tuple spread as positional args
    on_instantiated: Callable[..., Any] | None = Field(default=None, alias="onInstantiated")

    @model_validator(mode="after")
    def _require_service_or_module(self) -> "SourceEntry":
        if self.service is None and self.module is None:
            raise ValueError("source entry needs either 'service' or 'module'")
        return self


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by AGGREGATE_CONFIG_FILE env var."""

    def get_field_value(
        self, field: Any, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("AGGREGATE_CONFIG_FILE")
        if config_file:
            path = Path(config_file).expanduser()
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class LoggingConfig(BaseSettings):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from AGGREGATE_LOG_FILE env var."""
        return os.environ.get("AGGREGATE_LOG_FILE")


class ConnectorSettings(BaseSettings):
    """Settings handed to the connector by its host."""

    model_config = SettingsConfigDict(
        env_prefix="AGGREGATE_",
        env_nested_delimiter="__",  # Allows AGGREGATE_LOGGING__LEVEL override
        arbitrary_types_allowed=True,
    )

    name: str = "aggregate"  # Identifier used in log output
    debug: bool = False  # Verbose diagnostics for this connector
    sources: dict[str, SourceEntry | None]
    logging: LoggingConfig = LoggingConfig()

    @field_validator("sources", mode="before")
    @classmethod
    def _normalize_sources(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            raise ValueError("sources must be a mapping of source name to entry")
        if not value:
            raise ValueError("sources must have at least one entry")
        # Falsy entries are kept as None so the registry can skip them
        return {name: (entry if entry else None) for name, entry in value.items()}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to ConnectorSettings()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - AGGREGATE_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(path: Path) -> ConnectorSettings:
    """Read and validate connector settings from a YAML file."""
    data = yaml.safe_load(Path(path).expanduser().read_text()) or {}
    return ConnectorSettings.model_validate(data)


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup, before other modules
    are imported to ensure all loggers pick up the configuration.
    """
    # Level lives on the root logger; handlers stay at NOTSET
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
