################################################################################
# DOCKER-BACKUP
#
# @file:        image_backup_manager.py
# @module:      docker_backup.cores.image_backup_manager
# @description: Saves images with `docker save`, optionally gzip-compressed.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - docker save always writes plain tar; compression happens here in 1 MiB chunks
# - The uncompressed temp file lives next to the target and is always removed
# - A half-written .tar.gz is removed so the next run does not skip it
################################################################################

"""
Image backup orchestration.
"""

import os
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..errors import BackupError, DockerBackupError
from ..helpers.archive_paths import ensure_directory, resolve_backup_path
from ..helpers.compression import compress_file
from ..helpers.logging import get_logger
from ..helpers.validators import ResourceKind, validate_image_id
from ..types import DockerImageInfo, OperationKind, OperationOutcome, elapsed_seconds
from .docker_gateway import DockerGateway

logger = get_logger(__name__)

PathLike = Union[str, Path]
OutcomeCallback = Callable[[int, OperationOutcome], None]

KIND = OperationKind.BACKUP_IMAGE


class ImageBackupManager:
    """Creates one archive per image reference."""

    def __init__(self, gateway: DockerGateway):
        self.gateway = gateway

    def backup_images(
        self,
        references: Sequence[str],
        directory: PathLike,
        compress: bool = True,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> List[OperationOutcome]:
        """
        Back up several images in order.

        Raises:
            DirectoryError: target directory cannot be prepared
        """
        directory = ensure_directory(directory)
        logger.info(
            f"Backing up {len(references)} image(s) to {directory}",
            extra={"directory": str(directory), "compress": compress},
        )

        outcomes = []
        for index, reference in enumerate(references, 1):
            outcome = self.backup_single_image(reference, directory, compress)
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(index, outcome)
        return outcomes

    def backup_single_image(self, reference: str, directory: PathLike, compress: bool = True) -> OperationOutcome:
        start = time.monotonic()
        logger.info(f"Starting backup of image: {reference}", extra={"image": reference})

        try:
            directory = ensure_directory(directory)
            image = validate_image_id(reference)

            if not self.gateway.image_exists(image.value):
                raise BackupError(f"Image '{image}' not found")

            archive_path = resolve_backup_path(image.value, directory, compress, ResourceKind.IMAGE)

            if archive_path.exists():
                logger.warning(
                    f"Backup file already exists, skipping: {archive_path}",
                    extra={"image": reference, "archive": str(archive_path)},
                )
                return OperationOutcome.skipped(
                    reference,
                    KIND,
                    f"File already exists: {archive_path}",
                    archive_path=archive_path,
                    duration_seconds=elapsed_seconds(start),
                )

            if compress:
                self._save_compressed(image.value, archive_path)
            else:
                self._save(image.value, archive_path)

            if not archive_path.exists():
                raise BackupError(f"Backup archive was not created: {archive_path}")

            size = archive_path.stat().st_size
            logger.info(
                f"Successfully backed up image: {reference}",
                extra={"image": reference, "archive": str(archive_path), "size_bytes": size},
            )
            return OperationOutcome.success(
                reference,
                KIND,
                archive_path,
                file_size_bytes=size,
                duration_seconds=elapsed_seconds(start),
            )

        except (DockerBackupError, OSError, EOFError) as e:
            logger.error(f"Failed to backup image: {reference}", extra={"image": reference, "error": str(e)})
            return OperationOutcome.failed(reference, KIND, str(e), duration_seconds=elapsed_seconds(start))
        except Exception as e:
            logger.exception(f"Unexpected error backing up image: {reference}", extra={"image": reference})
            return OperationOutcome.failed(reference, KIND, f"Unexpected error: {e}", duration_seconds=elapsed_seconds(start))

    def list_available_images(self) -> List[DockerImageInfo]:
        return self.gateway.list_images()

    def _save(self, reference: str, archive_path: Path) -> None:
        result = self.gateway.save_image(reference, archive_path)
        if not result.succeeded():
            raise BackupError(f"Failed to save image: {result.stderr.strip()}")

    def _save_compressed(self, reference: str, archive_path: Path) -> None:
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{archive_path.name}.", suffix=".tmp", dir=archive_path.parent
        )
        os.close(fd)
        temp_path = Path(temp_name)

        try:
            self._save(reference, temp_path)
            try:
                compress_file(temp_path, archive_path)
            except BaseException:
                archive_path.unlink(missing_ok=True)
                raise
        finally:
            temp_path.unlink(missing_ok=True)
