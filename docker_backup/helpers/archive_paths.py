################################################################################
# DOCKER-BACKUP
#
# @file:        archive_paths.py
# @module:      docker_backup.helpers.archive_paths
# @description: Archive naming, reverse name mapping and backup directory care.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Path resolution is pure; only ensure_directory and find_backup_archives
#   touch the filesystem
# - Image references are sanitized for filenames; the reverse mapping is lossy
################################################################################

"""
Archive path resolution for volume and image backups.

Layout on disk:
    <dir>/<volume>.tar[.gz]
    <dir>/<sanitized image reference>.tar[.gz]
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from ..errors import DirectoryError, InvalidArchiveFormat
from ..types import BackupArchive
from .constants import COMPRESSED_SUFFIX, PLAIN_SUFFIX
from .logging import get_logger
from .validators import ResourceKind

logger = get_logger(__name__)

PathLike = Union[str, Path]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_UNDERSCORE_RUNS = re.compile(r"_+")


def archive_suffix(compressed: bool) -> str:
    return COMPRESSED_SUFFIX if compressed else PLAIN_SUFFIX


def sanitize_image_reference(reference: str) -> str:
    """docker.io/library/nginx:latest -> docker.io_library_nginx_latest"""
    sanitized = _UNSAFE_FILENAME_CHARS.sub("_", reference)
    sanitized = _UNDERSCORE_RUNS.sub("_", sanitized)
    return sanitized.strip("_")


@dataclass(frozen=True)
class ArchiveDescriptor:
    resource_name: str
    directory: Path
    compressed: bool = True
    kind: ResourceKind = ResourceKind.VOLUME

    @property
    def filename(self) -> str:
        stem = self.resource_name
        if self.kind is ResourceKind.IMAGE:
            stem = sanitize_image_reference(stem)
        return stem + archive_suffix(self.compressed)

    @property
    def path(self) -> Path:
        return Path(self.directory) / self.filename


def resolve_backup_path(
    resource_name: str,
    directory: PathLike,
    compressed: bool = True,
    kind: ResourceKind = ResourceKind.VOLUME,
) -> Path:
    return ArchiveDescriptor(resource_name, Path(directory), compressed, kind).path


def is_compressed_archive(path: PathLike) -> bool:
    return str(path).endswith(COMPRESSED_SUFFIX)


def has_valid_archive_extension(path: PathLike) -> bool:
    name = Path(path).name
    return name.endswith(COMPRESSED_SUFFIX) or name.endswith(PLAIN_SUFFIX)


def resolve_restore_resource_name(archive_path: PathLike) -> str:
    """Strip directory and .tar.gz/.tar from an archive path."""
    filename = Path(archive_path).name
    for suffix in (COMPRESSED_SUFFIX, PLAIN_SUFFIX):
        if filename.endswith(suffix):
            return filename[: -len(suffix)]
    raise InvalidArchiveFormat(
        f"Invalid archive file format: {filename}. Expected .tar or .tar.gz"
    )


def guess_image_reference(archive_path: PathLike) -> str:
    """
    Best-effort reverse of sanitize_image_reference().

    nginx_latest -> nginx:latest. Every underscore becomes ':', so names
    that contained '_' or '/' come back wrong (nginx:latest and
    nginx_latest share one filename). Callers should prefer the tags
    stored inside the archive and treat this as a guess.
    """
    name = resolve_restore_resource_name(archive_path)
    name = name.replace("_", ":")
    if ":::" in name:
        name = name.replace(":::", "/")
    return name or "unknown"


def tar_flags(action: str, compressed: bool) -> str:
    """tar_flags('c', True) -> 'czf'"""
    if action not in ("c", "x", "t"):
        raise ValueError(f"Unsupported tar action: {action}")
    return f"{action}{'z' if compressed else ''}f"


def ensure_directory(directory: PathLike) -> Path:
    """
    Make sure `directory` exists and is writable.

    Idempotent: an existing writable directory is left alone. Otherwise the
    directory is created recursively, then checked for writability again
    (a read-only parent mount can make a fresh directory unwritable).

    Returns:
        Absolute path of the directory

    Raises:
        DirectoryError: creation failed or directory not writable
    """
    path = Path(directory).expanduser()
    if path.exists():
        path = path.resolve()

    if path.is_dir() and os.access(path, os.W_OK):
        return path

    if path.exists() and not path.is_dir():
        raise DirectoryError(f"Path exists but is not a directory: {path}", str(path))

    if not path.exists():
        try:
            path.mkdir(mode=0o755, parents=True, exist_ok=True)
            logger.info(f"Created backup directory: {path}", extra={"directory": str(path)})
        except OSError as e:
            reason = e.strerror or str(e)
            raise DirectoryError(f"Failed to create directory '{path}': {reason}", str(path)) from e
        path = path.resolve()

    if not os.access(path, os.W_OK):
        raise DirectoryError(
            f"Directory '{path}' exists but is not writable. "
            "Check permissions or run with sudo if needed.",
            str(path),
        )

    return path


def find_backup_archives(directory: PathLike, kind: ResourceKind = ResourceKind.VOLUME) -> List[BackupArchive]:
    """List *.tar and *.tar.gz files in `directory`, sorted by resource name."""
    path = Path(directory).expanduser()
    if not path.is_dir():
        return []

    files = sorted(set(path.glob(f"*{PLAIN_SUFFIX}")) | set(path.glob(f"*{COMPRESSED_SUFFIX}")))
    archives = []
    for file in files:
        if not file.is_file():
            continue
        if kind is ResourceKind.IMAGE:
            name = guess_image_reference(file)
        else:
            name = resolve_restore_resource_name(file)
        archives.append(
            BackupArchive(
                resource_name=name,
                path=file,
                compressed=is_compressed_archive(file),
                size_bytes=file.stat().st_size,
            )
        )

    archives.sort(key=lambda a: (a.resource_name, a.path.name))
    logger.debug(f"Found {len(archives)} backup archives in {path}")
    return archives
