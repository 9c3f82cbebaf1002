"""Backup commands: backup:volumes and backup:images."""

from pathlib import Path
from typing import List, Optional

import typer

from ..cores.image_backup_manager import ImageBackupManager
from ..cores.volume_backup_manager import VolumeBackupManager
from ..errors import DirectoryError, DockerCommandError
from ..helpers.logging import get_logger
from ..helpers.ui_utils import (
    console,
    print_error,
    print_header,
    print_images_table,
    print_info,
    print_volumes_table,
    print_warning,
    with_spinner,
)
from .context import finish_batch, get_config, get_gateway, progress_printer, require_names

logger = get_logger(__name__)


# -------------------------
# Commands
# -------------------------

def cmd_backup_volumes(
    ctx: typer.Context,
    names: Optional[List[str]] = None,
    output_dir: Optional[Path] = None,
    no_compression: bool = False,
    list_only: bool = False,
):
    """Back up Docker volumes to tar archives."""
    cfg = get_config(ctx)
    manager = VolumeBackupManager(get_gateway(ctx), cfg.path_mapper(), cfg.helper_image)

    if list_only:
        try:
            volumes = with_spinner("Listing Docker volumes...", manager.list_available_volumes)
        except DockerCommandError as e:
            print_error(f"Failed to list volumes: {e}")
            raise typer.Exit(code=1)
        if not volumes:
            print_warning("No Docker volumes found.")
            return
        print_volumes_table(volumes)
        return

    names = list(names or [])
    require_names(names, "You must specify at least one volume name, or use --list to see available volumes.")

    directory = output_dir or cfg.volumes_dir
    compress = cfg.settings.backup.compress and not no_compression

    print_header("Docker Volume Backup", f"Target: {directory}")
    print_info(f"Starting backup of {len(names)} volume(s)...")

    try:
        outcomes = manager.backup_volumes(names, directory, compress, on_outcome=progress_printer(len(names)))
    except DirectoryError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    finish_batch(outcomes, "backups")


def cmd_backup_images(
    ctx: typer.Context,
    references: Optional[List[str]] = None,
    output_dir: Optional[Path] = None,
    no_compression: bool = False,
    list_only: bool = False,
):
    """Back up Docker images with docker save."""
    cfg = get_config(ctx)
    manager = ImageBackupManager(get_gateway(ctx))

    if list_only:
        try:
            images = with_spinner("Listing Docker images...", manager.list_available_images)
        except DockerCommandError as e:
            print_error(f"Failed to list images: {e}")
            raise typer.Exit(code=1)
        if not images:
            print_warning("No Docker images found.")
            return
        print_images_table(images)
        return

    references = list(references or [])
    require_names(references, "You must specify at least one image name or ID, or use --list to see available images.")

    directory = output_dir or cfg.images_dir
    compress = cfg.settings.backup.compress and not no_compression

    print_header("Docker Image Backup", f"Target: {directory}")
    print_info(f"Starting backup of {len(references)} image(s)...")
    if compress:
        console.print("[dim]Images are saved uncompressed first, then gzipped.[/dim]")

    try:
        outcomes = manager.backup_images(references, directory, compress, on_outcome=progress_printer(len(references)))
    except DirectoryError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    finish_batch(outcomes, "backups")


# -------------------------
# Registration
# -------------------------

def register(app: typer.Typer):
    """Register all backup commands."""

    @app.command("backup:volumes")
    def _backup_volumes_cmd(
        ctx: typer.Context,
        names: Optional[List[str]] = typer.Argument(None, help="Volume names to back up."),
        output_dir: Optional[Path] = typer.Option(
            None, "--output-dir", "-o", help="Directory for the archives (default from config)."
        ),
        no_compression: bool = typer.Option(False, "--no-compression", help="Write .tar instead of .tar.gz."),
        list_only: bool = typer.Option(False, "--list", "-l", help="List available volumes and exit."),
    ):
        """Back up Docker volumes to tar archives."""
        cmd_backup_volumes(ctx, names, output_dir, no_compression, list_only)

    @app.command("backup:images")
    def _backup_images_cmd(
        ctx: typer.Context,
        references: Optional[List[str]] = typer.Argument(None, help="Image references or IDs to back up."),
        output_dir: Optional[Path] = typer.Option(
            None, "--output-dir", "-o", help="Directory for the archives (default from config)."
        ),
        no_compression: bool = typer.Option(False, "--no-compression", help="Write .tar instead of .tar.gz."),
        list_only: bool = typer.Option(False, "--list", "-l", help="List available images and exit."),
    ):
        """Back up Docker images with docker save."""
        cmd_backup_images(ctx, references, output_dir, no_compression, list_only)
