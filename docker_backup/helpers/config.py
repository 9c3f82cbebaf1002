#!/usr/bin/env python3
################################################################################
# DOCKER-BACKUP
#
# @file:        config.py
# @module:      docker_backup.helpers.config
# @description: INI configuration loaded into validated pydantic settings
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
################################################################################

"""
Configuration management for docker-backup.

Handles loading, validation, and access to configuration settings.
Precedence: environment variables > config file > built-in defaults.
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import (
    DEFAULT_CONFIG_PATHS,
    DEFAULT_CONTAINER_ROOT,
    DEFAULT_HELPER_IMAGE,
    DEFAULT_IMAGES_DIR,
    DEFAULT_LOG_LEVEL,
    DEFAULT_VOLUMES_DIR,
    DOCKER_BINARY,
    DOCKER_COMMAND_TIMEOUT,
    ENV_DEV_MODE,
    ENV_HELPER_IMAGE,
    ENV_HOST_PROJECT_DIR,
    ENV_IMAGES_DIR,
    ENV_VOLUMES_DIR,
)
from .logging import get_logger
from .path_mapping import IDENTITY_MAPPER, PathMapper, PrefixPathMapper

logger = get_logger(__name__)


class ConfigError(Exception):
    """Configuration-related errors"""
    pass


# --------------- Models ---------------

class BackupSettings(BaseModel):
    """Where archives go by default"""

    volumes_dir: Path = Field(default=Path(DEFAULT_VOLUMES_DIR))
    images_dir: Path = Field(default=Path(DEFAULT_IMAGES_DIR))
    compress: bool = Field(default=True, description="Write .tar.gz instead of .tar")

    @field_validator("volumes_dir", "images_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        """Convert string to Path"""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class DockerSettings(BaseModel):
    """Docker CLI invocation"""

    binary: str = Field(default=DOCKER_BINARY)
    helper_image: str = Field(
        default=DEFAULT_HELPER_IMAGE,
        description="Image used for disposable tar/du containers",
    )
    command_timeout: int = Field(default=DOCKER_COMMAND_TIMEOUT, ge=1)

    @field_validator("binary", "helper_image")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class EnvironmentSettings(BaseModel):
    """Container vs. host path translation"""

    dev_mode: bool = Field(default=False)
    container_root: str = Field(default=DEFAULT_CONTAINER_ROOT)
    host_project_dir: Optional[Path] = Field(default=None)

    @field_validator("host_project_dir", mode="before")
    @classmethod
    def empty_as_none(cls, v: Any) -> Optional[Path]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return Path(v).expanduser() if isinstance(v, str) else v


class LoggingSettings(BaseModel):
    level: str = Field(default=DEFAULT_LOG_LEVEL)
    file: Optional[Path] = Field(default=None)
    max_size_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=3, ge=0)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("file", mode="before")
    @classmethod
    def empty_as_none(cls, v: Any) -> Optional[Path]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return Path(v).expanduser() if isinstance(v, str) else v


class Settings(BaseModel):
    backup: BackupSettings = Field(default_factory=BackupSettings)
    docker: DockerSettings = Field(default_factory=DockerSettings)
    environment: EnvironmentSettings = Field(default_factory=EnvironmentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# --------------- Loader ---------------

_TRUE_VALUES = ("1", "true", "yes", "on")

# env var -> (section, option); dev mode counts as enabled when merely set
ENV_OVERRIDES = {
    ENV_VOLUMES_DIR: ("backup", "volumes_dir"),
    ENV_IMAGES_DIR: ("backup", "images_dir"),
    ENV_HELPER_IMAGE: ("docker", "helper_image"),
    ENV_HOST_PROJECT_DIR: ("environment", "host_project_dir"),
}


class Config:
    """
    Configuration manager for docker-backup.

    Loads an optional INI file, applies environment overrides and validates
    the result into a Settings model.
    """

    def __init__(self, config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize configuration.

        Args:
            config_path: Optional path to config file
            environ: Environment to read overrides from (default: os.environ)
        """
        # Interpolation off: paths may legitimately contain '%'
        self._parser = configparser.ConfigParser(interpolation=None)
        self._environ = os.environ if environ is None else environ

        self.config_file = self._find_config_file(config_path)
        if self.config_file is not None:
            self._load_config()

        self.settings = self._build_settings()

    # --------------- Properties ---------------

    @property
    def volumes_dir(self) -> Path:
        return self.settings.backup.volumes_dir

    @property
    def images_dir(self) -> Path:
        return self.settings.backup.images_dir

    @property
    def helper_image(self) -> str:
        return self.settings.docker.helper_image

    @property
    def command_timeout(self) -> int:
        return self.settings.docker.command_timeout

    @property
    def dev_mode(self) -> bool:
        return self.settings.environment.dev_mode

    # --------------- Core Methods ---------------

    def get(self, section: str, option: str, fallback: Any = None) -> Any:
        """Get raw file value with fallback."""
        try:
            return self._parser.get(section, option)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback

    def path_mapper(self) -> PathMapper:
        """Build the container-to-host path strategy for the managers."""
        env = self.settings.environment
        if not env.dev_mode:
            return IDENTITY_MAPPER
        host_root = env.host_project_dir or Path.cwd()
        logger.debug(
            f"Dev mode: mapping {env.container_root} -> {host_root}",
            extra={"container_root": env.container_root, "host_root": str(host_root)},
        )
        return PrefixPathMapper(host_root, env.container_root)

    def as_dict(self) -> Dict[str, Any]:
        return self.settings.model_dump(mode="json")

    # --------------- Private Methods ---------------

    def _find_config_file(self, config_path: Optional[Path]) -> Optional[Path]:
        if config_path:
            path = Path(config_path).expanduser()
            if not path.exists():
                raise ConfigError(f"Configuration file not found: {path}")
            return path

        for location in (DEFAULT_CONFIG_PATHS['user'], DEFAULT_CONFIG_PATHS['root']):
            location = Path(location).expanduser()
            if location.exists():
                if os.access(location, os.R_OK):
                    logger.debug(f"Using config file: {location}")
                    return location
                logger.warning(f"Config file exists but not readable: {location}")

        logger.debug("No configuration file found, using defaults")
        return None

    def _load_config(self) -> None:
        """Load configuration from file with UTF-8 encoding."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                self._parser.read_file(f)
            logger.info(f"Configuration loaded from {self.config_file}")
        except (OSError, UnicodeDecodeError, configparser.Error) as e:
            raise ConfigError(f"Failed to load configuration {self.config_file}: {e}") from e

    def _collect_values(self) -> Dict[str, Dict[str, Any]]:
        values: Dict[str, Dict[str, Any]] = {
            section: dict(self._parser.items(section))
            for section in self._parser.sections()
            if section in Settings.model_fields
        }

        for env_name, (section, option) in ENV_OVERRIDES.items():
            value = self._environ.get(env_name)
            if value:
                values.setdefault(section, {})[option] = value

        dev_mode = self._environ.get(ENV_DEV_MODE)
        if dev_mode is not None:
            enabled = dev_mode.strip().lower() in _TRUE_VALUES or dev_mode.strip() == ""
            values.setdefault("environment", {})["dev_mode"] = enabled

        return values

    def _build_settings(self) -> Settings:
        try:
            return Settings.model_validate(self._collect_values())
        except ValidationError as e:
            source = self.config_file or "defaults/environment"
            raise ConfigError(f"Invalid configuration ({source}): {e}") from e


def render_default_config() -> str:
    """INI text with every option at its default value."""
    defaults = Settings().model_dump(mode="json")
    parser = configparser.ConfigParser(interpolation=None)
    for section, options in defaults.items():
        parser[section] = {key: "" if value is None else str(value).lower() if isinstance(value, bool) else str(value)
                           for key, value in options.items()}

    from io import StringIO
    buffer = StringIO()
    parser.write(buffer)
    return buffer.getvalue()
