################################################################################
# DOCKER-BACKUP
#
# @file:        docker_gateway.py
# @module:      docker_backup.cores.docker_gateway
# @description: Thin wrapper around the docker CLI used by all managers.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Every call goes through ui_utils.run_command with a fixed timeout
# - Timeouts and a missing docker binary raise DockerCommandError
# - run_container/save_image/load_image return ProcessResult, callers classify
################################################################################

"""
Docker command gateway.

The managers never spawn processes themselves; they ask this gateway,
which keeps argument vectors in one place and makes the Docker side easy
to replace with a Mock in tests.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..errors import DockerCommandError
from ..helpers.constants import DOCKER_BINARY, DOCKER_COMMAND_TIMEOUT
from ..helpers.logging import get_logger
from ..helpers.ui_utils import run_command
from ..types import DockerImageInfo, DockerVolumeInfo, ProcessResult

logger = get_logger(__name__)


class DockerGateway:
    """Runs docker CLI commands with a shared timeout."""

    def __init__(self, timeout: int = DOCKER_COMMAND_TIMEOUT, binary: str = DOCKER_BINARY):
        self.timeout = timeout
        self.binary = binary

    # --------------- Execution ---------------

    def _run(self, args: Sequence[str], description: str) -> ProcessResult:
        cmd = [self.binary, *[str(a) for a in args]]
        try:
            result = run_command(cmd, description, timeout=self.timeout, check=False)
        except subprocess.TimeoutExpired as e:
            logger.error(
                f"{description} timed out after {self.timeout}s",
                extra={"command": " ".join(cmd)},
            )
            raise DockerCommandError(
                f"Docker command timed out after {self.timeout}s: {' '.join(cmd)}",
                command=cmd,
            ) from e
        except FileNotFoundError as e:
            raise DockerCommandError(
                f"Docker CLI not found: '{self.binary}'. Is Docker installed and on PATH?",
                command=cmd,
            ) from e

        return ProcessResult(
            command=cmd,
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    def _run_checked(self, args: Sequence[str], description: str) -> ProcessResult:
        result = self._run(args, description)
        if not result.succeeded():
            raise DockerCommandError(
                f"{description} failed: {result.stderr.strip() or 'exit code ' + str(result.exit_code)}",
                command=result.command,
                returncode=result.exit_code,
                stderr=result.stderr,
            )
        return result

    # --------------- Existence ---------------

    def volume_exists(self, name: str) -> bool:
        return self._run(["volume", "inspect", name], f"Inspecting volume {name}").succeeded()

    def image_exists(self, reference: str) -> bool:
        return self._run(["image", "inspect", reference], f"Inspecting image {reference}").succeeded()

    # --------------- Listing ---------------

    def list_volumes(self) -> List[DockerVolumeInfo]:
        """All volumes known to the daemon, sorted by name."""
        result = self._run(["volume", "ls", "--format", "json"], "Listing volumes")
        rows = _parse_json_lines(result.stdout) if result.succeeded() else None

        if rows is None:
            # Older CLIs: names only, details via inspect
            logger.debug("JSON volume listing unavailable, falling back to inspect")
            names_result = self._run_checked(["volume", "ls", "--format", "{{.Name}}"], "Listing volume names")
            names = [line.strip() for line in names_result.stdout.splitlines() if line.strip()]
            if not names:
                return []
            inspect = self._run_checked(["volume", "inspect", *names], "Inspecting volumes")
            try:
                rows = json.loads(inspect.stdout or "[]")
            except json.JSONDecodeError as e:
                raise DockerCommandError(f"Unexpected output from docker volume inspect: {e}") from e

        volumes = [DockerVolumeInfo.from_docker_json(row) for row in rows if row.get("Name")]
        return sorted(volumes, key=lambda v: v.name)

    def list_images(self) -> List[DockerImageInfo]:
        result = self._run_checked(["images", "--format", "json"], "Listing images")
        rows = _parse_json_lines(result.stdout)
        if rows is None:
            raise DockerCommandError("Unexpected output from docker images --format json")
        return [DockerImageInfo.from_docker_json(row) for row in rows]

    # --------------- Containers & images ---------------

    def run_container(self, args: Sequence[str]) -> ProcessResult:
        """`docker run --rm <args>`; the caller decides what a non-zero exit means."""
        return self._run(["run", "--rm", *args], "Running disposable container")

    def save_image(self, reference: str, output_path: Union[str, Path]) -> ProcessResult:
        return self._run(["save", "-o", str(output_path), reference], f"Saving image {reference}")

    def load_image(self, input_path: Union[str, Path]) -> ProcessResult:
        return self._run(["load", "-i", str(input_path)], f"Loading image from {input_path}")


def _parse_json_lines(output: str) -> Optional[List[Dict[str, Any]]]:
    """
    Parse `--format json` output.

    Newer CLIs print one object per line, some print a single array.
    Returns None when the output is not JSON at all.
    """
    text = (output or "").strip()
    if not text:
        return []
    try:
        if text.startswith("["):
            data = json.loads(text)
            return [row for row in data if isinstance(row, dict)]
        rows = []
        for line in text.splitlines():
            line = line.strip()
            if line:
                row = json.loads(line)
                if isinstance(row, dict):
                    rows.append(row)
        return rows
    except json.JSONDecodeError:
        return None
