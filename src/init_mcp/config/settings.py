"""Server configuration loading and validation.

Loads optional YAML configuration for the init-mcp server. Every field has a
default, so running without a config file is the normal case.
"""
from __future__ import annotations
import os
import yaml
from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from init_mcp.templates import TemplateSet, load_default_templates

CONFIG_ENV_VAR = "INIT_MCP_CONFIG"
LOG_LEVEL_ENV_VAR = "INIT_MCP_LOG_LEVEL"


class ServerInfoConfig(BaseModel):
    """Identity reported by ``initialize``."""
    name: str = Field("init", description="Server name")
    version: str = Field("1.0.0", description="Server version")


class LoggingConfig(BaseModel):
    """Logging configuration. Logs always go to stderr."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO", description="Log level")
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v


class TemplateSourceConfig(BaseModel):
    """A template file on disk and the name it is written as."""
    source: Path = Field(..., description="Path to the template content")
    destination: str = Field(..., min_length=1, description="Destination filename")


class ServerConfig(BaseModel):
    """Complete server configuration."""
    protocol_version: str = Field("2024-11-05", description="Supported MCP protocol version")
    server: ServerInfoConfig = Field(default_factory=ServerInfoConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    templates: Optional[list[TemplateSourceConfig]] = Field(
        None,
        description="Override for the packaged templates (order is write order)"
    )

    @field_validator("templates")
    @classmethod
    def validate_unique_destinations(
        cls, v: Optional[list[TemplateSourceConfig]]
    ) -> Optional[list[TemplateSourceConfig]]:
        """Reject duplicate destination filenames."""
        if v is None:
            return v
        if not v:
            raise ValueError("templates must not be empty when set")
        names = [t.destination for t in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate template destinations: {', '.join(duplicates)}")
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> ServerConfig:
        """Load configuration from YAML file.

        Relative template sources are resolved against the directory that
        contains the config file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Validated ServerConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid configuration in {config_path}: expected a mapping")

        try:
            config = cls.model_validate(data)
        except Exception as e:
            raise ValueError(f"Invalid configuration in {config_path}: {e}") from e

        if config.templates:
            base = config_path.resolve().parent
            for template in config.templates:
                if not template.source.is_absolute():
                    template.source = base / template.source

        return config

    def load_templates(self) -> TemplateSet:
        """Build the Template Set this configuration describes.

        Raises:
            FileNotFoundError: If a configured template source is missing
            ValueError: If destination names are invalid
        """
        if self.templates is None:
            return load_default_templates()
        return TemplateSet.from_files((t.source, t.destination) for t in self.templates)


def load_config(config_path: str | Path | None = None) -> ServerConfig:
    """Load server configuration from file, environment, or defaults.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Validated ServerConfig instance

    Raises:
        FileNotFoundError: If an explicitly named config file is missing
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_path = os.getenv(CONFIG_ENV_VAR) or None

    if config_path is not None:
        config = ServerConfig.from_yaml(config_path)
    else:
        config = ServerConfig()

    level = os.getenv(LOG_LEVEL_ENV_VAR)
    if level:
        config.logging = LoggingConfig(level=level, format=config.logging.format)

    return config
