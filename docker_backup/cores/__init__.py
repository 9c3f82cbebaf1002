"""Core business logic modules for docker-backup."""

from .archive_validator import ArchiveValidator
from .docker_gateway import DockerGateway
from .image_backup_manager import ImageBackupManager
from .image_restore_manager import ImageRestoreManager
from .volume_backup_manager import VolumeBackupManager
from .volume_restore_manager import VolumeRestoreManager

__all__ = [
    'ArchiveValidator',
    'DockerGateway',
    'ImageBackupManager',
    'ImageRestoreManager',
    'VolumeBackupManager',
    'VolumeRestoreManager',
]
