"""Configuration loading and the current-configuration provider."""

from .loader import AppConfig, ConfigError, DatabaseConfig, LogConfig, load_config
from .provider import ConfigProvider

__all__ = [
    "AppConfig",
    "ConfigError",
    "ConfigProvider",
    "DatabaseConfig",
    "LogConfig",
    "load_config",
]
