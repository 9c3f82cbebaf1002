################################################################################
# DOCKER-BACKUP
#
# @file:        volume_backup_manager.py
# @module:      docker_backup.cores.volume_backup_manager
# @description: Archives named volumes through a disposable tar container.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - An existing archive is never overwritten (Skipped instead)
# - The "already exists" check is advisory; concurrent runs against the same
#   directory can race between check and write
# - Per-volume errors become FAILED outcomes; only the batch directory check raises
################################################################################

"""
Volume backup orchestration.

    docker run --rm -v <volume>:/volume:ro -v <hostdir>:/backup alpine \
        tar czf /backup/<volume>.tar.gz -C /volume .
"""

import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..errors import BackupError, DockerBackupError
from ..helpers.archive_paths import ensure_directory, resolve_backup_path, tar_flags
from ..helpers.constants import BACKUP_MOUNT, DEFAULT_HELPER_IMAGE, VOLUME_MOUNT
from ..helpers.logging import get_logger
from ..helpers.path_mapping import IDENTITY_MAPPER, PathMapper
from ..helpers.validators import ResourceKind, validate_volume_name
from ..types import DockerVolumeInfo, OperationKind, OperationOutcome, elapsed_seconds
from .docker_gateway import DockerGateway

logger = get_logger(__name__)

PathLike = Union[str, Path]
OutcomeCallback = Callable[[int, OperationOutcome], None]

KIND = OperationKind.BACKUP_VOLUME


class VolumeBackupManager:
    """Creates one tar archive per Docker volume."""

    def __init__(
        self,
        gateway: DockerGateway,
        path_mapper: PathMapper = IDENTITY_MAPPER,
        helper_image: str = DEFAULT_HELPER_IMAGE,
    ):
        self.gateway = gateway
        self.path_mapper = path_mapper
        self.helper_image = helper_image

    def backup_volumes(
        self,
        names: Sequence[str],
        directory: PathLike,
        compress: bool = True,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> List[OperationOutcome]:
        """
        Back up several volumes, one after another.

        Args:
            names: Volume names, processed in order
            directory: Target directory (created if missing)
            compress: .tar.gz when True, .tar otherwise
            on_outcome: Called with (1-based index, outcome) after each volume

        Returns:
            One outcome per name, in input order

        Raises:
            DirectoryError: target directory cannot be prepared
        """
        directory = ensure_directory(directory)
        logger.info(
            f"Backing up {len(names)} volume(s) to {directory}",
            extra={"directory": str(directory), "compress": compress},
        )

        outcomes = []
        for index, name in enumerate(names, 1):
            outcome = self.backup_single_volume(name, directory, compress)
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(index, outcome)
        return outcomes

    def backup_single_volume(self, name: str, directory: PathLike, compress: bool = True) -> OperationOutcome:
        """Back up one volume. Never raises; errors come back as FAILED."""
        start = time.monotonic()
        logger.info(f"Starting backup of volume: {name}", extra={"volume": name})

        try:
            directory = ensure_directory(directory)
            volume = validate_volume_name(name)

            if not self.gateway.volume_exists(volume.value):
                raise BackupError(f"Volume '{volume}' not found")

            archive_path = resolve_backup_path(volume.value, directory, compress, ResourceKind.VOLUME)

            if archive_path.exists():
                logger.warning(
                    f"Backup file already exists, skipping: {archive_path}",
                    extra={"volume": name, "archive": str(archive_path)},
                )
                return OperationOutcome.skipped(
                    name,
                    KIND,
                    f"File already exists: {archive_path}",
                    archive_path=archive_path,
                    duration_seconds=elapsed_seconds(start),
                )

            self._run_tar(volume.value, archive_path, compress)

            size = archive_path.stat().st_size
            logger.info(
                f"Successfully backed up volume: {name}",
                extra={"volume": name, "archive": str(archive_path), "size_bytes": size},
            )
            return OperationOutcome.success(
                name,
                KIND,
                archive_path,
                file_size_bytes=size,
                duration_seconds=elapsed_seconds(start),
            )

        except (DockerBackupError, OSError) as e:
            logger.error(f"Failed to backup volume: {name}", extra={"volume": name, "error": str(e)})
            return OperationOutcome.failed(name, KIND, str(e), duration_seconds=elapsed_seconds(start))
        except Exception as e:
            logger.exception(f"Unexpected error backing up volume: {name}", extra={"volume": name})
            return OperationOutcome.failed(name, KIND, f"Unexpected error: {e}", duration_seconds=elapsed_seconds(start))

    def list_available_volumes(self) -> List[DockerVolumeInfo]:
        return self.gateway.list_volumes()

    def _run_tar(self, volume: str, archive_path: Path, compress: bool) -> None:
        host_dir = self.path_mapper.to_host(archive_path.parent)

        result = self.gateway.run_container([
            "-v", f"{volume}:{VOLUME_MOUNT}:ro",
            "-v", f"{host_dir}:{BACKUP_MOUNT}",
            self.helper_image,
            "tar", tar_flags("c", compress), f"{BACKUP_MOUNT}/{archive_path.name}",
            "-C", VOLUME_MOUNT, ".",
        ])

        if not result.succeeded():
            self._remove_partial(archive_path)
            raise BackupError(f"Failed to create backup archive: {result.stderr.strip()}")

        # The container may report success while writing somewhere else (bad mount)
        if not archive_path.exists():
            raise BackupError(f"Backup archive was not created: {archive_path}")

    def _remove_partial(self, archive_path: Path) -> None:
        """A half-written archive would make every later run skip this volume."""
        try:
            archive_path.unlink(missing_ok=True)
        except OSError as e:
            # Written by root inside the container; may not be ours to delete
            logger.warning(
                f"Could not remove partial archive: {archive_path}",
                extra={"archive": str(archive_path), "error": str(e)},
            )
