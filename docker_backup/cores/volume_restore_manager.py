################################################################################
# DOCKER-BACKUP
#
# @file:        volume_restore_manager.py
# @module:      docker_backup.cores.volume_restore_manager
# @description: Restores named volumes from tar archives via disposable containers.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Target volume name is the archive filename without .tar/.tar.gz
# - Archives are validated (tar t) before the volume is touched
# - Interrupted extraction may leave a partially populated volume
################################################################################

"""
Volume restore orchestration.

Order of operations per archive:
    name from filename -> file checks -> integrity -> volume policy
    -> extract -> measure (best effort)
"""

import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..errors import DockerBackupError, RestoreError
from ..helpers.archive_paths import (
    find_backup_archives,
    is_compressed_archive,
    resolve_restore_resource_name,
    tar_flags,
)
from ..helpers.constants import BACKUP_MOUNT, DEFAULT_HELPER_IMAGE, VOLUME_MOUNT
from ..helpers.logging import get_logger
from ..helpers.path_mapping import IDENTITY_MAPPER, PathMapper
from ..helpers.validators import ResourceKind, validate_volume_name
from ..types import BackupArchive, OperationKind, OperationOutcome, elapsed_seconds, format_bytes
from .archive_validator import ArchiveValidator
from .docker_gateway import DockerGateway

logger = get_logger(__name__)

PathLike = Union[str, Path]
OutcomeCallback = Callable[[int, OperationOutcome], None]

KIND = OperationKind.RESTORE_VOLUME

# Matches regular files, dotfiles and "..foo" entries but never . or ..
CLEAN_VOLUME_SCRIPT = f"rm -rf {VOLUME_MOUNT}/* {VOLUME_MOUNT}/.[!.]* {VOLUME_MOUNT}/..?*"


class VolumeRestoreManager:
    """Extracts tar archives into Docker volumes."""

    def __init__(
        self,
        gateway: DockerGateway,
        path_mapper: PathMapper = IDENTITY_MAPPER,
        helper_image: str = DEFAULT_HELPER_IMAGE,
    ):
        self.gateway = gateway
        self.path_mapper = path_mapper
        self.helper_image = helper_image
        self.validator = ArchiveValidator(gateway, path_mapper, helper_image)

    def restore_volumes(
        self,
        archive_paths: Sequence[PathLike],
        overwrite: bool = False,
        create_volumes: bool = True,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> List[OperationOutcome]:
        """Restore each archive independently; one outcome per path, in order."""
        logger.info(
            f"Restoring {len(archive_paths)} volume archive(s)",
            extra={"overwrite": overwrite, "create_volumes": create_volumes},
        )
        outcomes = []
        for index, archive_path in enumerate(archive_paths, 1):
            outcome = self.restore_single_volume(archive_path, overwrite, create_volumes)
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(index, outcome)
        return outcomes

    def restore_single_volume(
        self,
        archive_path: PathLike,
        overwrite: bool = False,
        create_volume: bool = True,
    ) -> OperationOutcome:
        """
        Restore one volume from `archive_path`.

        Never raises. A missing, unreadable, corrupt or empty archive, an
        invalid derived name and any Docker failure come back as FAILED;
        an existing volume without `overwrite` comes back as SKIPPED.
        """
        start = time.monotonic()
        archive_path = Path(archive_path).absolute()
        name = archive_path.name

        try:
            name = resolve_restore_resource_name(archive_path)
            logger.info(
                f"Starting restore of volume: {name} from {archive_path}",
                extra={"volume": name, "archive": str(archive_path)},
            )
            volume = validate_volume_name(name)

            self.validator.validate(archive_path)

            exists = self.gateway.volume_exists(volume.value)
            if exists and not overwrite:
                logger.warning(f"Volume already exists, skipping: {name}", extra={"volume": name})
                return OperationOutcome.skipped(
                    name,
                    KIND,
                    "Volume already exists. Use --overwrite to replace it.",
                    archive_path=archive_path,
                    duration_seconds=elapsed_seconds(start),
                )

            if not exists:
                if not create_volume:
                    raise RestoreError(
                        f"Volume '{name}' does not exist and --no-create-volume was specified"
                    )
                self._create_volume(volume.value)
            else:
                self._clean_volume(volume.value)

            self._extract(volume.value, archive_path)
            extracted = self._measure(volume.value)

            message = "Restore completed successfully"
            if extracted is not None:
                message = f"Restore completed successfully ({format_bytes(extracted)} extracted)"

            logger.info(f"Successfully restored volume: {name}", extra={"volume": name})
            return OperationOutcome.success(
                name,
                KIND,
                archive_path,
                message=message,
                file_size_bytes=extracted,
                duration_seconds=elapsed_seconds(start),
            )

        except (DockerBackupError, OSError) as e:
            logger.error(
                f"Failed to restore volume: {name}",
                extra={"volume": name, "archive": str(archive_path), "error": str(e)},
            )
            return OperationOutcome.failed(name, KIND, str(e), duration_seconds=elapsed_seconds(start))
        except Exception as e:
            logger.exception(f"Unexpected error restoring volume: {name}", extra={"volume": name})
            return OperationOutcome.failed(name, KIND, f"Unexpected error: {e}", duration_seconds=elapsed_seconds(start))

    def list_available_backups(self, directory: PathLike) -> List[BackupArchive]:
        return find_backup_archives(directory, ResourceKind.VOLUME)

    # --------------- container steps ---------------

    def _create_volume(self, volume: str) -> None:
        """Mounting a missing named volume makes Docker create it."""
        logger.info(f"Creating volume: {volume}", extra={"volume": volume})
        result = self.gateway.run_container([
            "-v", f"{volume}:{VOLUME_MOUNT}",
            self.helper_image,
            "true",
        ])
        if not result.succeeded():
            raise RestoreError(f"Failed to create volume '{volume}': {result.stderr.strip()}")

    def _clean_volume(self, volume: str) -> None:
        logger.info(f"Cleaning existing volume: {volume}", extra={"volume": volume})
        result = self.gateway.run_container([
            "-v", f"{volume}:{VOLUME_MOUNT}",
            self.helper_image,
            "sh", "-c", CLEAN_VOLUME_SCRIPT,
        ])
        if not result.succeeded():
            raise RestoreError(f"Failed to clean volume '{volume}': {result.stderr.strip()}")

    def _extract(self, volume: str, archive_path: Path) -> None:
        host_dir = self.path_mapper.to_host(archive_path.parent)
        result = self.gateway.run_container([
            "-v", f"{volume}:{VOLUME_MOUNT}",
            "-v", f"{host_dir}:{BACKUP_MOUNT}:ro",
            self.helper_image,
            "tar", tar_flags("x", is_compressed_archive(archive_path)),
            f"{BACKUP_MOUNT}/{archive_path.name}", "-C", VOLUME_MOUNT,
        ])
        if not result.succeeded():
            raise RestoreError(f"Failed to extract archive: {result.stderr.strip()}")

    def _measure(self, volume: str) -> Optional[int]:
        """Size of the volume contents in bytes, or None if it cannot be measured."""
        try:
            result = self.gateway.run_container([
                "-v", f"{volume}:{VOLUME_MOUNT}:ro",
                self.helper_image,
                "du", "-sb", VOLUME_MOUNT,
            ])
        except DockerBackupError as e:
            logger.debug(f"Could not measure volume {volume}: {e}")
            return None

        if not result.succeeded():
            return None
        # "<bytes>\t/volume"
        fields = result.stdout.split()
        return int(fields[0]) if fields and fields[0].isdigit() else None
