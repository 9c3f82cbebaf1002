"""Restore commands: restore:volumes and restore:images."""

from pathlib import Path
from typing import List, Optional

import typer

from ..cores.image_restore_manager import ImageRestoreManager
from ..cores.volume_restore_manager import VolumeRestoreManager
from ..helpers.constants import CONFIRM_ARCHIVE_COUNT, LARGE_ARCHIVE_BYTES
from ..helpers.logging import get_logger
from ..helpers.ui_utils import (
    console,
    format_bytes,
    print_archives_table,
    print_header,
    print_info,
    print_warning,
    prompt_confirm,
)
from ..types import BackupArchive
from .context import finish_batch, get_config, get_gateway, progress_printer, require_names

logger = get_logger(__name__)


# -------------------------
# Helpers
# -------------------------

def resolve_archive_paths(archive_names: List[str], backup_dir: Path) -> List[Path]:
    """
    Absolute paths are kept, everything else is taken relative to backup_dir.

    The result is always absolute: a relative source in `-v src:dst` is read
    by Docker as a named volume, not a bind mount.
    """
    paths = []
    for archive_name in archive_names:
        path = Path(archive_name).expanduser()
        if not path.is_absolute():
            path = Path(backup_dir).expanduser() / path
        paths.append(path.absolute())
    return paths


def confirmation_reasons(archive_paths: List[Path], overwrite: bool, target: str) -> List[str]:
    reasons = []
    if overwrite:
        reasons.append(f"Overwrite mode enabled - existing {target} will be replaced")
    if len(archive_paths) > CONFIRM_ARCHIVE_COUNT:
        reasons.append(f"Restoring {len(archive_paths)} archives")

    large = []
    for path in archive_paths:
        size = path.stat().st_size if path.is_file() else 0
        if size > LARGE_ARCHIVE_BYTES:
            large.append(f"{path.name} ({format_bytes(size)})")
    if large:
        reasons.append("Large archives detected: " + ", ".join(large))
    return reasons


def confirm_restore(archive_paths: List[Path], overwrite: bool, target: str, assume_yes: bool) -> bool:
    """Ask before destructive or heavy restores; True means go ahead."""
    reasons = confirmation_reasons(archive_paths, overwrite, target)
    if not reasons or assume_yes:
        return True

    print_warning("This operation may impact your Docker environment:")
    for reason in reasons:
        console.print(f"  • {reason}", markup=False)
    return prompt_confirm("Do you want to continue?", default=False)


def _show_backups(archives: List[BackupArchive], backup_dir: Path) -> None:
    if not archives:
        print_warning(f"No backup archives found in: {backup_dir}")
        return
    print_archives_table(archives)


# -------------------------
# Commands
# -------------------------

def cmd_restore_volumes(
    ctx: typer.Context,
    archives: Optional[List[str]] = None,
    backup_dir: Optional[Path] = None,
    overwrite: bool = False,
    no_create_volume: bool = False,
    list_only: bool = False,
    yes: bool = False,
):
    """Restore Docker volumes from tar archives."""
    cfg = get_config(ctx)
    backup_dir = backup_dir or cfg.volumes_dir
    manager = VolumeRestoreManager(get_gateway(ctx), cfg.path_mapper(), cfg.helper_image)

    if list_only:
        _show_backups(manager.list_available_backups(backup_dir), backup_dir)
        return

    archives = list(archives or [])
    require_names(archives, "You must specify at least one archive file, or use --list to see available backups.")

    archive_paths = resolve_archive_paths(archives, backup_dir)
    if not confirm_restore(archive_paths, overwrite, "volumes", yes):
        print_info("Operation cancelled by user.")
        return

    print_header("Docker Volume Restore", f"Source: {backup_dir}")
    if overwrite:
        print_warning("Overwrite mode enabled - existing volumes will be cleaned and replaced")
    else:
        print_info("Existing volumes will be skipped (use --overwrite to replace them)")

    outcomes = manager.restore_volumes(
        archive_paths,
        overwrite=overwrite,
        create_volumes=not no_create_volume,
        on_outcome=progress_printer(len(archive_paths)),
    )
    finish_batch(outcomes, "restores")


def cmd_restore_images(
    ctx: typer.Context,
    archives: Optional[List[str]] = None,
    backup_dir: Optional[Path] = None,
    overwrite: bool = False,
    list_only: bool = False,
    yes: bool = False,
):
    """Restore Docker images from archives with docker load."""
    cfg = get_config(ctx)
    backup_dir = backup_dir or cfg.images_dir
    manager = ImageRestoreManager(get_gateway(ctx), cfg.path_mapper(), cfg.helper_image)

    if list_only:
        _show_backups(manager.list_available_backups(backup_dir), backup_dir)
        return

    archives = list(archives or [])
    require_names(archives, "You must specify at least one archive file, or use --list to see available backups.")

    archive_paths = resolve_archive_paths(archives, backup_dir)
    if not confirm_restore(archive_paths, overwrite, "images", yes):
        print_info("Operation cancelled by user.")
        return

    print_header("Docker Image Restore", f"Source: {backup_dir}")
    if overwrite:
        print_warning("Overwrite mode enabled - existing images will be replaced")
    else:
        print_info("Existing images will be skipped (use --overwrite to replace them)")

    outcomes = manager.restore_images(
        archive_paths,
        overwrite=overwrite,
        on_outcome=progress_printer(len(archive_paths)),
    )
    finish_batch(outcomes, "restores")


# -------------------------
# Registration
# -------------------------

def register(app: typer.Typer):
    """Register all restore commands."""

    @app.command("restore:volumes")
    def _restore_volumes_cmd(
        ctx: typer.Context,
        archives: Optional[List[str]] = typer.Argument(None, help="Archive files (relative to --backup-dir or absolute)."),
        backup_dir: Optional[Path] = typer.Option(
            None, "--backup-dir", "-b", help="Directory containing backup files (default from config)."
        ),
        overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite existing volumes."),
        no_create_volume: bool = typer.Option(
            False, "--no-create-volume", help="Do not create volumes if they don't exist."
        ),
        list_only: bool = typer.Option(False, "--list", "-l", help="List available backup archives and exit."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    ):
        """Restore Docker volumes from tar archives."""
        cmd_restore_volumes(ctx, archives, backup_dir, overwrite, no_create_volume, list_only, yes)

    @app.command("restore:images")
    def _restore_images_cmd(
        ctx: typer.Context,
        archives: Optional[List[str]] = typer.Argument(None, help="Archive files (relative to --backup-dir or absolute)."),
        backup_dir: Optional[Path] = typer.Option(
            None, "--backup-dir", "-b", help="Directory containing backup files (default from config)."
        ),
        overwrite: bool = typer.Option(False, "--overwrite", help="Replace images that already exist."),
        list_only: bool = typer.Option(False, "--list", "-l", help="List available backup archives and exit."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    ):
        """Restore Docker images from archives with docker load."""
        cmd_restore_images(ctx, archives, backup_dir, overwrite, list_only, yes)
