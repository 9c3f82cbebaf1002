################################################################################
# DOCKER-BACKUP
#
# @file:        types.py
# @module:      docker_backup.types
# @description: Shared data models for operation outcomes and Docker snapshots.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - OperationOutcome is the single tri-state result of every backup/restore
# - DockerVolumeInfo and DockerImageInfo capture `docker ... --format json` rows
# - ProcessResult wraps one finished docker invocation
################################################################################

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(size: Optional[int]) -> str:
    """Render a byte count as '1.46 KB'; None renders as 'N/A'."""
    if size is None:
        return "N/A"
    value = float(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    return f"{value:.2f} {SIZE_UNITS[unit_index]}"


# ---- Outcome model ----

class OperationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class OperationKind(str, Enum):
    BACKUP_VOLUME = "backup_volume"
    RESTORE_VOLUME = "restore_volume"
    BACKUP_IMAGE = "backup_image"
    RESTORE_IMAGE = "restore_image"

    @property
    def is_backup(self) -> bool:
        return self in (OperationKind.BACKUP_VOLUME, OperationKind.BACKUP_IMAGE)


DEFAULT_SUCCESS_MESSAGES = {
    OperationKind.BACKUP_VOLUME: "Backup completed successfully",
    OperationKind.RESTORE_VOLUME: "Restore completed successfully",
    OperationKind.BACKUP_IMAGE: "Image backup completed successfully",
    OperationKind.RESTORE_IMAGE: "Image restore completed successfully",
}

STATUS_ICONS = {
    OperationStatus.SUCCESS: "✅",
    OperationStatus.FAILED: "❌",
    OperationStatus.SKIPPED: "⚠️",
}


@dataclass(frozen=True)
class OperationOutcome:
    """Result of one backup or restore attempt on one resource.

    Created once through success()/failed()/skipped() and never mutated.
    """

    resource_name: str
    kind: OperationKind
    status: OperationStatus
    archive_path: Optional[Path] = None
    message: Optional[str] = None
    file_size_bytes: Optional[int] = None
    duration_seconds: float = 0.0
    completed_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def success(
        cls,
        resource_name: str,
        kind: OperationKind,
        archive_path: Path,
        message: Optional[str] = None,
        file_size_bytes: Optional[int] = None,
        duration_seconds: float = 0.0,
    ) -> "OperationOutcome":
        archive_path = Path(archive_path)
        if file_size_bytes is None and kind.is_backup and archive_path.exists():
            file_size_bytes = archive_path.stat().st_size
        return cls(
            resource_name=resource_name,
            kind=kind,
            status=OperationStatus.SUCCESS,
            archive_path=archive_path,
            message=message or DEFAULT_SUCCESS_MESSAGES[kind],
            file_size_bytes=file_size_bytes,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def failed(
        cls,
        resource_name: str,
        kind: OperationKind,
        message: str,
        duration_seconds: float = 0.0,
    ) -> "OperationOutcome":
        return cls(
            resource_name=resource_name,
            kind=kind,
            status=OperationStatus.FAILED,
            message=message or "Unknown error",
            duration_seconds=duration_seconds,
        )

    @classmethod
    def skipped(
        cls,
        resource_name: str,
        kind: OperationKind,
        message: str,
        archive_path: Optional[Path] = None,
        duration_seconds: float = 0.0,
    ) -> "OperationOutcome":
        return cls(
            resource_name=resource_name,
            kind=kind,
            status=OperationStatus.SKIPPED,
            archive_path=Path(archive_path) if archive_path else None,
            message=message,
            duration_seconds=duration_seconds,
        )

    @property
    def is_successful(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        return self.status is OperationStatus.FAILED

    @property
    def is_skipped(self) -> bool:
        return self.status is OperationStatus.SKIPPED

    @property
    def status_icon(self) -> str:
        return STATUS_ICONS[self.status]

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.file_size_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_name": self.resource_name,
            "kind": self.kind.value,
            "status": self.status.value,
            "archive_path": str(self.archive_path) if self.archive_path else None,
            "message": self.message,
            "file_size_bytes": self.file_size_bytes,
            "duration_seconds": self.duration_seconds,
            "completed_at": self.completed_at.isoformat(),
        }


# ---- Docker snapshots ----

def parse_labels(raw: Any) -> Dict[str, str]:
    """Accept labels as dict, None or the CLI's 'k1=v1,k2=v2' string."""
    if isinstance(raw, dict):
        return {str(k): "" if v is None else str(v) for k, v in raw.items()}
    if not isinstance(raw, str) or not raw.strip():
        return {}

    labels: Dict[str, str] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        key, _, value = pair.partition("=")
        labels[key.strip()] = value.strip()
    return labels


_HUMAN_SIZE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*([kKmMgGtT]?)B?\s*$")
_DECIMAL_FACTORS = {"": 1, "k": 1000, "m": 1000 ** 2, "g": 1000 ** 3, "t": 1000 ** 4}


def parse_docker_size(raw: Any) -> Optional[int]:
    """Convert '187MB' / '1.2GB' (docker CLI, decimal units) or ints to bytes."""
    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        return int(raw)
    match = _HUMAN_SIZE.match(str(raw))
    if not match:
        return None
    number, unit = match.groups()
    return int(float(number) * _DECIMAL_FACTORS[unit.lower()])


@dataclass(frozen=True)
class DockerVolumeInfo:
    name: str
    driver: str = "local"
    mountpoint: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_docker_json(cls, data: Dict[str, Any]) -> "DockerVolumeInfo":
        options = data.get("Options") or {}
        if not isinstance(options, dict):
            options = {}
        return cls(
            name=data.get("Name", ""),
            driver=data.get("Driver") or "local",
            mountpoint=data.get("Mountpoint") or "",
            labels=parse_labels(data.get("Labels")),
            options=options,
        )


@dataclass(frozen=True)
class DockerImageInfo:
    id: str
    repo_tags: List[str] = field(default_factory=list)
    size_bytes: Optional[int] = None
    created_at: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_docker_json(cls, data: Dict[str, Any]) -> "DockerImageInfo":
        # `docker images --format json` uses ID/Repository/Tag,
        # `docker image inspect` uses Id/RepoTags.
        repo_tags = data.get("RepoTags")
        if not isinstance(repo_tags, list):
            repository = data.get("Repository")
            tag = data.get("Tag")
            if repository and repository != "<none>":
                repo_tags = [f"{repository}:{tag}" if tag and tag != "<none>" else repository]
            else:
                repo_tags = []

        created = data.get("CreatedAt") or data.get("Created")
        return cls(
            id=data.get("Id") or data.get("ID") or "",
            repo_tags=list(repo_tags),
            size_bytes=parse_docker_size(data.get("Size")),
            created_at=str(created) if created not in (None, "") else None,
            labels=parse_labels(data.get("Labels")),
        )

    @property
    def first_tag(self) -> Optional[str]:
        return self.repo_tags[0] if self.repo_tags else None

    @property
    def short_id(self) -> str:
        image_id = self.id[7:] if self.id.startswith("sha256:") else self.id
        return image_id[:12]

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.size_bytes)


# ---- Processes & archives ----

@dataclass(frozen=True)
class ProcessResult:
    command: List[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class BackupArchive:
    resource_name: str
    path: Path
    compressed: bool
    size_bytes: int = 0

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.size_bytes)


def elapsed_seconds(start: float) -> float:
    """Seconds since a time.monotonic() reading, rounded for display."""
    return round(time.monotonic() - start, 2)
