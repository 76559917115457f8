"""Configuration management for copilot-connector."""

import json
import os
from pathlib import Path
from typing import Any, Literal, Optional

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from copilot_connector.schema.alignment import (
    DEFAULT_ALIAS_REMAPS,
    DEFAULT_ICON_URL,
    DEFAULT_ITEM_URL_TEMPLATE,
    AlignmentPolicy,
)
from copilot_connector.utils import setup_logging

DATA_DIR_NAME = ".copilot-connector"
CONFIG_FILE_NAME = "config.json"
SCHEMA_DIR_NAME = "schemas"

Environment = Literal["test", "dev", "user"]


class ConnectorConfig(BaseSettings):
    """Pydantic model for copilot-connector configuration."""

    env: Environment = Field(default="dev", description="Environment name")

    log_level: str = "INFO"

    connection_id: str = Field(
        default="default",
        description="External connection the ingestion service writes to.",
    )

    schema_dir: Optional[str] = Field(
        default=None,
        description="Directory holding published schemas as JSON files. Defaults to <config dir>/schemas.",
    )

    # Schema constraints
    max_field_name_length: int = Field(
        default=32,
        description="Maximum length of a registered property name.",
        gt=0,
    )
    max_schema_fields: int = Field(
        default=128,
        description="Maximum number of properties in a schema.",
        gt=0,
    )

    # Alignment policy
    item_url_template: str = Field(
        default=DEFAULT_ITEM_URL_TEMPLATE,
        description="Template for the url injected when a document has none. {id} is replaced with the item id.",
    )
    icon_placeholder_url: str = Field(
        default=DEFAULT_ICON_URL,
        description="Value injected for a schema iconUrl field when the document has none.",
    )
    alias_remaps: list[tuple[str, str]] = Field(
        default_factory=lambda: list(DEFAULT_ALIAS_REMAPS),
        description="Ordered (source alias, canonical name) pairs applied during alignment.",
    )

    # Ingestion
    batch_concurrency: int = Field(
        default=5,
        description="Maximum number of concurrent submissions to the item sink during a batch.",
        gt=0,
    )
    max_batch_size: int = Field(
        default=100,
        description="Maximum number of documents accepted in a single batch request.",
        gt=0,
    )

    # HTTP item sink
    sink_url: Optional[str] = Field(
        default=None,
        description="Base URL of the item sink. When unset an in-memory sink is used.",
    )
    sink_timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds for the HTTP item sink.",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="COPILOT_CONNECTOR_",
        extra="ignore",
    )

    @field_validator("alias_remaps", mode="before")
    @classmethod
    def parse_alias_remaps(cls, value: Any) -> Any:
        """Accept {"source": "canonical"} mappings as well as pair lists."""
        if isinstance(value, dict):
            return list(value.items())
        return value

    @property
    def is_test_env(self) -> bool:
        return (
            self.env == "test"
            or os.getenv("COPILOT_CONNECTOR_ENV", "").lower() == "test"
            or os.getenv("PYTEST_CURRENT_TEST") is not None
        )

    @property
    def data_dir_path(self) -> Path:
        """Get app state directory for config and the default schema store."""
        if config_dir := os.getenv("COPILOT_CONNECTOR_CONFIG_DIR"):
            return Path(config_dir)

        home = os.getenv("HOME", Path.home())
        return Path(home) / DATA_DIR_NAME

    @property
    def schema_dir_path(self) -> Path:
        if self.schema_dir:
            return Path(self.schema_dir)
        return self.data_dir_path / SCHEMA_DIR_NAME

    def alignment_policy(self) -> AlignmentPolicy:
        """Build the alignment policy from configuration."""
        return AlignmentPolicy(
            alias_remaps=tuple((source, target) for source, target in self.alias_remaps),
            item_url_template=self.item_url_template,
            icon_placeholder_url=self.icon_placeholder_url,
        )


# Module-level cache for configuration
_CONFIG_CACHE: Optional[ConnectorConfig] = None


class ConfigManager:
    """Loads copilot-connector configuration from file and environment."""

    def __init__(self) -> None:
        home = os.getenv("HOME", Path.home())
        if isinstance(home, str):
            home = Path(home)

        if config_dir := os.getenv("COPILOT_CONNECTOR_CONFIG_DIR"):
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = home / DATA_DIR_NAME

        self.config_file = self.config_dir / CONFIG_FILE_NAME

    @property
    def config(self) -> ConnectorConfig:
        return self.load_config()

    def load_config(self) -> ConnectorConfig:
        """Load configuration from file or create default.

        Environment variables take precedence over file values.
        """
        global _CONFIG_CACHE

        if _CONFIG_CACHE is not None:
            return _CONFIG_CACHE

        if self.config_file.exists():
            try:
                file_data = json.loads(self.config_file.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse config file {self.config_file}: {e}")
                file_data = {}

            env_config = ConnectorConfig()
            env_dict = env_config.model_dump()
            merged_data = dict(file_data)
            for field_name in ConnectorConfig.model_fields.keys():
                env_var_name = f"COPILOT_CONNECTOR_{field_name.upper()}"
                if env_var_name in os.environ:
                    merged_data[field_name] = env_dict[field_name]

            _CONFIG_CACHE = ConnectorConfig(**merged_data)
        else:
            _CONFIG_CACHE = ConnectorConfig()

        return _CONFIG_CACHE

    def save_config(self, config: ConnectorConfig) -> None:
        """Write configuration to file and refresh the cache."""
        global _CONFIG_CACHE
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(json.dumps(config.model_dump(mode="json"), indent=2))
        _CONFIG_CACHE = config


def reset_config_cache() -> None:
    """Drop the cached configuration so the next load re-reads file and env."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = None


def init_cli_logging() -> None:  # pragma: no cover
    """Initialize logging for CLI commands - stderr only."""
    log_level = os.getenv("COPILOT_CONNECTOR_LOG_LEVEL", "WARNING")
    setup_logging(log_level=log_level)


def init_api_logging() -> None:  # pragma: no cover
    """Initialize logging for the ingestion API server - stdout for container logs."""
    log_level = os.getenv("COPILOT_CONNECTOR_LOG_LEVEL", "INFO")
    setup_logging(log_level=log_level, log_to_stdout=True)
