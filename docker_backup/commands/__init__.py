"""CLI command modules for docker-backup."""

from . import (
    backup_commands,
    restore_commands,
)

__all__ = [
    'backup_commands',
    'restore_commands',
]
