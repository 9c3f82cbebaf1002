"""Helper modules and utilities for docker-backup."""

from .config import Config, ConfigError
from .constants import VERSION, DEFAULT_CONFIG_PATHS
from .logging import get_logger, log_manager
from .path_mapping import PathMapper, PrefixPathMapper

__all__ = [
    'Config',
    'ConfigError',
    'VERSION',
    'DEFAULT_CONFIG_PATHS',
    'get_logger',
    'log_manager',
    'PathMapper',
    'PrefixPathMapper',
]
