"""
Container-to-host path translation for bind mounts.

When docker-backup itself runs inside a development container, the backup
directory it sees (e.g. /app/backups) is not the path the Docker daemon
needs for `-v <host>:/backup`. A PathMapper is handed to every manager at
construction time; standalone installs use the identity mapping.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Union

from .constants import DEFAULT_CONTAINER_ROOT

PathLike = Union[str, Path]


class PathMapper:
    """Identity mapping: paths are already host paths."""

    def to_host(self, path: PathLike) -> str:
        return str(path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PrefixPathMapper(PathMapper):
    """Rewrite paths below `container_root` onto `host_root`.

    /app/backups/volumes -> <host_root>/backups/volumes; paths outside
    the container root are returned unchanged.
    """

    def __init__(self, host_root: PathLike, container_root: PathLike = DEFAULT_CONTAINER_ROOT):
        self.host_root = str(host_root).rstrip("/") or "/"
        self.container_root = str(PurePosixPath(str(container_root)))

    def to_host(self, path: PathLike) -> str:
        text = str(path)
        root = self.container_root
        if text == root:
            return self.host_root
        if text.startswith(root.rstrip("/") + "/"):
            relative = text[len(root.rstrip("/")) + 1:]
            return f"{self.host_root.rstrip('/')}/{relative}"
        return text

    def __repr__(self) -> str:
        return f"{type(self).__name__}(host_root={self.host_root!r}, container_root={self.container_root!r})"


IDENTITY_MAPPER = PathMapper()
