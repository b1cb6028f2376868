"""Configuration module for autocommit."""

from autocommit.config.loader import get_config_path, load_config, save_config
from autocommit.config.schema import CommitConfig, Config, GitConfig, ScheduleConfig

__all__ = [
    "CommitConfig",
    "Config",
    "GitConfig",
    "ScheduleConfig",
    "get_config_path",
    "load_config",
    "save_config",
]
