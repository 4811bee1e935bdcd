"""Configuration management for nlsync."""

from .loader import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .models import ConfigModel, ParserConfig, PostgresConfig, ProviderConfig, SyncConfig

__all__ = [
    "Config",
    "ConfigModel",
    "DEFAULT_CONFIG_PATH",
    "ParserConfig",
    "PostgresConfig",
    "ProviderConfig",
    "SyncConfig",
    "load_config",
    "save_config",
]
