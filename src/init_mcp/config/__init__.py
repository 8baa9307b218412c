"""Configuration management for init-mcp."""
from .settings import (
    ServerConfig,
    ServerInfoConfig,
    LoggingConfig,
    TemplateSourceConfig,
    load_config,
)

__all__ = [
    "ServerConfig",
    "ServerInfoConfig",
    "LoggingConfig",
    "TemplateSourceConfig",
    "load_config",
]
