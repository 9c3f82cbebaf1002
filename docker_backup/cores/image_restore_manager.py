################################################################################
# DOCKER-BACKUP
#
# @file:        image_restore_manager.py
# @module:      docker_backup.cores.image_restore_manager
# @description: Loads images from archives with `docker load`.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Image names come from the archive's manifest.json (RepoTags) when present
# - Without tags the name is guessed from the filename; the guess is lossy
#   (nginx:latest and nginx_latest share a filename) and reported as such
# - Compressed archives are gunzipped to a temp file that is always removed
################################################################################

"""
Image restore orchestration.
"""

import json
import os
import tarfile
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Union

from ..errors import DockerBackupError, RestoreError
from ..helpers.archive_paths import (
    find_backup_archives,
    guess_image_reference,
    is_compressed_archive,
    resolve_restore_resource_name,
)
from ..helpers.compression import decompress_file
from ..helpers.constants import DEFAULT_HELPER_IMAGE
from ..helpers.logging import get_logger
from ..helpers.path_mapping import IDENTITY_MAPPER, PathMapper
from ..helpers.validators import ResourceKind
from ..types import BackupArchive, OperationKind, OperationOutcome, elapsed_seconds
from .archive_validator import ArchiveValidator
from .docker_gateway import DockerGateway

logger = get_logger(__name__)

PathLike = Union[str, Path]
OutcomeCallback = Callable[[int, OperationOutcome], None]

KIND = OperationKind.RESTORE_IMAGE

MANIFEST_NAME = "manifest.json"


@dataclass(frozen=True)
class ArchiveImageName:
    """Which image(s) an archive will produce when loaded."""

    tags: List[str] = field(default_factory=list)
    guessed: bool = False

    @property
    def display_name(self) -> str:
        return self.tags[0] if self.tags else "unknown"


def read_archive_repo_tags(archive_path: PathLike) -> List[str]:
    """
    RepoTags recorded by `docker save` in manifest.json.

    The archive is streamed, so gzip-compressed archives work without a
    temp file. Returns [] when there is no manifest or it has no tags.
    """
    with tarfile.open(archive_path, "r|*") as tar:
        for member in tar:
            if member.name.removeprefix("./") != MANIFEST_NAME or not member.isfile():
                continue
            handle = tar.extractfile(member)
            if handle is None:
                return []
            manifest = json.load(handle)
            tags: List[str] = []
            for entry in manifest if isinstance(manifest, list) else []:
                for tag in entry.get("RepoTags") or []:
                    if tag not in tags:
                        tags.append(tag)
            return tags
    return []


class ImageRestoreManager:
    """Loads image archives back into the local Docker image store."""

    def __init__(
        self,
        gateway: DockerGateway,
        path_mapper: PathMapper = IDENTITY_MAPPER,
        helper_image: str = DEFAULT_HELPER_IMAGE,
    ):
        self.gateway = gateway
        self.validator = ArchiveValidator(gateway, path_mapper, helper_image)

    def restore_images(
        self,
        archive_paths: Sequence[PathLike],
        overwrite: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> List[OperationOutcome]:
        logger.info(f"Restoring {len(archive_paths)} image archive(s)", extra={"overwrite": overwrite})
        outcomes = []
        for index, archive_path in enumerate(archive_paths, 1):
            outcome = self.restore_single_image(archive_path, overwrite)
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(index, outcome)
        return outcomes

    def restore_single_image(self, archive_path: PathLike, overwrite: bool = False) -> OperationOutcome:
        """
        Load one image archive. Never raises.

        SKIPPED when any tag the archive would create already exists and
        `overwrite` is False.
        """
        start = time.monotonic()
        archive_path = Path(archive_path).absolute()
        name = archive_path.name
        logger.info(f"Starting restore of image from: {name}", extra={"archive": str(archive_path)})

        try:
            resolve_restore_resource_name(archive_path)
            self.validator.validate(archive_path)

            with self._plain_tar(archive_path) as tar_path:
                image_name = self.identify_image(archive_path, tar_path)
                name = image_name.display_name

                if not overwrite:
                    existing = next((tag for tag in image_name.tags if self.gateway.image_exists(tag)), None)
                    if existing is not None:
                        message = f"Image already exists: {existing}. Use --overwrite to replace it."
                        if image_name.guessed:
                            message += " (name guessed from filename)"
                        logger.warning(message, extra={"image": existing, "archive": str(archive_path)})
                        return OperationOutcome.skipped(
                            name,
                            KIND,
                            message,
                            archive_path=archive_path,
                            duration_seconds=elapsed_seconds(start),
                        )

                self._load(tar_path, archive_path)

            logger.info(f"Successfully restored image from: {archive_path.name}", extra={"image": name})
            return OperationOutcome.success(
                name,
                KIND,
                archive_path,
                file_size_bytes=archive_path.stat().st_size,
                duration_seconds=elapsed_seconds(start),
            )

        except (DockerBackupError, OSError, EOFError) as e:
            logger.error(
                f"Failed to restore image from: {archive_path.name}",
                extra={"archive": str(archive_path), "error": str(e)},
            )
            return OperationOutcome.failed(name, KIND, str(e), duration_seconds=elapsed_seconds(start))
        except Exception as e:
            logger.exception(f"Unexpected error restoring image from: {archive_path.name}")
            return OperationOutcome.failed(name, KIND, f"Unexpected error: {e}", duration_seconds=elapsed_seconds(start))

    def identify_image(self, archive_path: PathLike, tar_path: Optional[PathLike] = None) -> ArchiveImageName:
        """
        Tags from the archive itself, else a flagged guess from the filename.

        `tar_path` is an already gunzipped copy of `archive_path`, read instead
        of the original when given.
        """
        try:
            tags = read_archive_repo_tags(tar_path or archive_path)
        except (tarfile.TarError, OSError, EOFError, ValueError) as e:
            logger.warning(f"Could not read image manifest from {archive_path}: {e}")
            tags = []

        if tags:
            return ArchiveImageName(tags=tags)

        guess = guess_image_reference(archive_path)
        logger.warning(
            f"No tags recorded in {Path(archive_path).name}; guessing image name '{guess}' from filename",
            extra={"archive": str(archive_path), "guess": guess},
        )
        return ArchiveImageName(tags=[guess], guessed=True)

    def list_available_backups(self, directory: PathLike) -> List[BackupArchive]:
        return find_backup_archives(directory, ResourceKind.IMAGE)

    @contextmanager
    def _plain_tar(self, archive_path: Path) -> Iterator[Path]:
        """Yield an uncompressed tar for the archive; a gunzipped temp copy is removed on exit."""
        if not is_compressed_archive(archive_path):
            yield archive_path
            return

        fd, temp_name = tempfile.mkstemp(prefix="image_restore_", suffix=".tar")
        os.close(fd)
        temp_path = Path(temp_name)
        try:
            decompress_file(archive_path, temp_path)
            yield temp_path
        finally:
            temp_path.unlink(missing_ok=True)

    def _load(self, tar_path: Path, archive_path: Path) -> None:
        result = self.gateway.load_image(tar_path)
        if result.succeeded():
            return
        if tar_path != archive_path:
            raise RestoreError(f"Failed to load decompressed image: {result.stderr.strip()}")
        raise RestoreError(f"Failed to load image: {result.stderr.strip()}")
