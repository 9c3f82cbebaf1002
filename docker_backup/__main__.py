#!/usr/bin/env python3
################################################################################
# DOCKER-BACKUP
#
# @file:        __main__.py
# @module:      docker_backup.__main__
# @description: Typer-based CLI entry point for volume and image backup/restore.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
################################################################################

"""
docker-backup main CLI

Typer-based CLI following the "tool bench" pattern:
- Configuration is loaded once at startup
- Commands retrieve tools (config, Docker gateway) from ctx.obj
- Objects already on the bench (e.g. injected by tests) are kept
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from .commands import backup_commands, restore_commands
from .helpers.config import Config, ConfigError
from .helpers.constants import APP_NAME, VERSION
from .helpers.logging import get_logger, log_manager
from .helpers.ui_utils import console, print_error

app = typer.Typer(
    name="docker-backup",
    add_completion=False,
    help="Docker Backup – back up and restore Docker volumes and images as tar archives.",
)
logger = get_logger(__name__)


# -------------------------
# Application Context
# -------------------------

@app.callback()
def initialize_context(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to configuration file."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR). Default from config."
    ),
):
    """
    Initialize application context before any command runs.
    Loads configuration once and sets up logging from it.
    """
    ctx.ensure_object(dict)

    cfg = ctx.obj.get("config")
    if cfg is None:
        try:
            cfg = Config(config_path)
        except ConfigError as e:
            print_error(str(e))
            raise typer.Exit(code=1)
        ctx.obj["config"] = cfg

    logging_settings = cfg.settings.logging
    try:
        log_manager.configure(
            level=(log_level or logging_settings.level).upper(),
            log_file=logging_settings.file,
            max_size_mb=logging_settings.max_size_mb,
            backup_count=logging_settings.backup_count,
        )
    except (ValueError, OSError) as e:
        print_error(f"Invalid logging setup: {e}")
        raise typer.Exit(code=1)

    logger.debug(
        "Context initialized",
        extra={"config_file": str(cfg.config_file) if cfg.config_file else "defaults"},
    )


# -------------------------
# Commands
# -------------------------

backup_commands.register(app)
restore_commands.register(app)


@app.command("version")
def cmd_version():
    """Show docker-backup version."""
    console.print(f"[cyan]{APP_NAME}[/cyan] v{VERSION}")


def cli_main():
    """
    Entry point for CLI

    This function is called by the console script entry point.
    """
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        logger.debug("Unhandled error", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
