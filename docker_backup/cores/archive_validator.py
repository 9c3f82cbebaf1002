"""
Archive pre-flight checks shared by the volume and image restore managers.

An archive has to exist, be readable, and list cleanly through `tar t`
inside a disposable helper container before anything on the Docker side
is touched.
"""

import os
from pathlib import Path
from typing import List, Union

from ..errors import RestoreError
from ..helpers.archive_paths import is_compressed_archive, tar_flags
from ..helpers.constants import BACKUP_MOUNT, DEFAULT_HELPER_IMAGE
from ..helpers.logging import get_logger
from ..helpers.path_mapping import IDENTITY_MAPPER, PathMapper
from .docker_gateway import DockerGateway

logger = get_logger(__name__)


class ArchiveValidator:
    """Checks an archive before restore."""

    def __init__(
        self,
        gateway: DockerGateway,
        path_mapper: PathMapper = IDENTITY_MAPPER,
        helper_image: str = DEFAULT_HELPER_IMAGE,
    ):
        self.gateway = gateway
        self.path_mapper = path_mapper
        self.helper_image = helper_image

    def check_accessible(self, archive_path: Union[str, Path]) -> Path:
        path = Path(archive_path)
        if not path.is_file():
            raise RestoreError(f"Archive file not found: {archive_path}")
        if not os.access(path, os.R_OK):
            raise RestoreError(f"Archive file is not readable: {archive_path}")
        # Symlinks are not followed so the archive keeps its own name
        return path.absolute()

    def validate(self, archive_path: Union[str, Path]) -> List[str]:
        """
        Run all checks.

        Returns:
            Member names listed by tar

        Raises:
            RestoreError: missing, unreadable, corrupt or empty archive
        """
        path = self.check_accessible(archive_path)
        host_dir = self.path_mapper.to_host(path.parent)

        result = self.gateway.run_container([
            "-v", f"{host_dir}:{BACKUP_MOUNT}:ro",
            self.helper_image,
            "tar", tar_flags("t", is_compressed_archive(path)), f"{BACKUP_MOUNT}/{path.name}",
        ])

        if not result.succeeded():
            raise RestoreError(f"Archive integrity check failed: {result.stderr.strip()}")

        members = [line for line in result.stdout.strip().splitlines() if line.strip()]
        if not members:
            raise RestoreError(f"Archive appears to be empty: {path.name}")

        logger.info(
            f"Archive validation successful: {len(members)} files found",
            extra={"archive": str(path)},
        )
        return members
