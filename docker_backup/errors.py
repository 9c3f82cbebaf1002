################################################################################
# DOCKER-BACKUP
#
# @file:        errors.py
# @module:      docker_backup.errors
# @description: Exception hierarchy shared by validators, gateway and managers.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Managers convert every error below into a FAILED OperationOutcome
# - Only DirectoryError escapes a batch, since no item can run without it
################################################################################

from __future__ import annotations

from enum import Enum
from typing import List, Optional


class DockerBackupError(Exception):
    """Base class for all docker-backup errors."""


class ValidationReason(str, Enum):
    EMPTY_NAME = "empty_name"
    INVALID_FORMAT = "invalid_format"


class ValidationError(DockerBackupError):
    """Raised when a volume name or image identifier is malformed."""

    def __init__(self, message: str, reason: ValidationReason, value: str = ""):
        super().__init__(message)
        self.reason = reason
        self.value = value


class DirectoryError(DockerBackupError):
    """Raised when a backup directory cannot be created or written."""

    def __init__(self, message: str, directory: Optional[str] = None):
        super().__init__(message)
        self.directory = directory


class DockerCommandError(DockerBackupError):
    """Raised when a docker invocation fails to run, times out or exits non-zero."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr


class BackupError(DockerBackupError):
    """Domain failure while creating an archive."""


class RestoreError(DockerBackupError):
    """Domain failure while restoring from an archive."""


class InvalidArchiveFormat(RestoreError):
    """Archive filename ends neither in .tar nor .tar.gz."""
