################################################################################
# DOCKER-BACKUP
#
# @file:        __init__.py
# @module:      docker_backup
# @description: Exposes version, logging, and core managers for package consumers.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Re-exports the four managers, the gateway and the outcome model
# - Sets __version__ from constants.VERSION for tooling introspection
################################################################################

"""
docker-backup: back up and restore Docker volumes and images as tar archives.

Volumes are archived by disposable helper containers running tar; images
go through docker save / docker load. Every operation reports an
OperationOutcome (success, failed or skipped).
"""

from .helpers.constants import VERSION

__version__ = VERSION
__author__ = "Docker Backup Contributors"

from .helpers.logging import get_logger, log_manager, StructuredFormatter

from .errors import (
    DockerBackupError,
    ValidationError,
    DirectoryError,
    DockerCommandError,
    BackupError,
    RestoreError,
    InvalidArchiveFormat,
)

from .types import (
    OperationOutcome,
    OperationStatus,
    OperationKind,
    DockerVolumeInfo,
    DockerImageInfo,
    ProcessResult,
    BackupArchive,
)

from .helpers.config import Config
from .cores import (
    DockerGateway,
    VolumeBackupManager,
    VolumeRestoreManager,
    ImageBackupManager,
    ImageRestoreManager,
)

__all__ = [
    "VERSION",
    "DockerBackupError",
    "ValidationError",
    "DirectoryError",
    "DockerCommandError",
    "BackupError",
    "RestoreError",
    "InvalidArchiveFormat",
    "OperationOutcome",
    "OperationStatus",
    "OperationKind",
    "DockerVolumeInfo",
    "DockerImageInfo",
    "ProcessResult",
    "BackupArchive",
    "Config",
    "DockerGateway",
    "VolumeBackupManager",
    "VolumeRestoreManager",
    "ImageBackupManager",
    "ImageRestoreManager",
    "get_logger",
    "log_manager",
    "StructuredFormatter",
]
