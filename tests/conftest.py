"""
Shared pytest fixtures for docker-backup tests.

Provides common fixtures for mocking the Docker gateway, temporary config
files and test data. No test talks to a real Docker daemon.
"""

import pytest
from pathlib import Path
from unittest.mock import Mock
from typer.testing import CliRunner

from docker_backup.cores.docker_gateway import DockerGateway
from docker_backup.helpers.constants import (
    ENV_DEV_MODE,
    ENV_HELPER_IMAGE,
    ENV_HOST_PROJECT_DIR,
    ENV_IMAGES_DIR,
    ENV_VOLUMES_DIR,
)
from docker_backup.types import ProcessResult


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external dependencies")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep host config files and env overrides out of every test."""
    for name in (ENV_VOLUMES_DIR, ENV_IMAGES_DIR, ENV_HELPER_IMAGE, ENV_DEV_MODE, ENV_HOST_PROJECT_DIR):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        "docker_backup.helpers.config.DEFAULT_CONFIG_PATHS",
        {
            "root": tmp_path / "no-such-dir" / "docker-backup.conf",
            "user": tmp_path / "no-such-dir" / "config.conf",
        },
    )


@pytest.fixture
def cli_runner():
    """Typer CLI runner for testing commands."""
    return CliRunner()


def make_process_result(exit_code: int = 0, stdout: str = "", stderr: str = "") -> ProcessResult:
    """ProcessResult as returned by the gateway."""
    return ProcessResult(command=["docker"], exit_code=exit_code, stdout=stdout, stderr=stderr)


@pytest.fixture
def process_result():
    """Factory fixture for ProcessResult objects."""
    return make_process_result


@pytest.fixture
def mock_gateway():
    """DockerGateway mock where every resource exists and every command succeeds."""
    gateway = Mock(spec=DockerGateway)
    gateway.volume_exists.return_value = True
    gateway.image_exists.return_value = True
    gateway.run_container.return_value = make_process_result()
    gateway.save_image.return_value = make_process_result()
    gateway.load_image.return_value = make_process_result()
    gateway.list_volumes.return_value = []
    gateway.list_images.return_value = []
    return gateway


@pytest.fixture
def tmp_config(tmp_path):
    """Create a temporary docker-backup INI config file."""
    config_file = tmp_path / "docker-backup.conf"
    config_file.write_text(
        "[backup]\n"
        f"volumes_dir = {tmp_path / 'volumes'}\n"
        f"images_dir = {tmp_path / 'images'}\n"
        "compress = true\n"
        "\n"
        "[docker]\n"
        "helper_image = alpine:3.20\n"
        "command_timeout = 120\n"
        "\n"
        "[logging]\n"
        "level = WARNING\n",
        encoding="utf-8",
    )
    return config_file


@pytest.fixture
def backup_dir(tmp_path) -> Path:
    directory = tmp_path / "backups"
    directory.mkdir()
    return directory
