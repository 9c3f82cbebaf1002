"""
CLI Utilities for docker-backup

Rich-based helpers for CLI output plus the single subprocess entry point
used by the Docker gateway. Provides consistent UI components across all
commands.
"""

import subprocess
from typing import Callable, Iterable, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm
from rich.table import Table

from ..types import BackupArchive, DockerImageInfo, DockerVolumeInfo, OperationOutcome, format_bytes
from .logging import get_logger

logger = get_logger(__name__)

console = Console()

__all__ = [
    "console",
    "SubprocessError",
    "run_command",
    "format_bytes",
    "print_header",
    "print_success",
    "print_error",
    "print_warning",
    "print_info",
    "create_table",
    "prompt_confirm",
    "with_spinner",
    "print_panel",
    "print_outcome_line",
    "print_summary",
    "print_volumes_table",
    "print_images_table",
    "print_archives_table",
]


# =============================================================================
# Subprocess
# =============================================================================

class SubprocessError(Exception):
    """A command exited non-zero while check=True."""

    def __init__(self, cmd: Sequence[str], returncode: int, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr or ""
        detail = self.stderr.strip() or "no error output"
        super().__init__(f"Command '{' '.join(self.cmd)}' failed with exit code {returncode}: {detail}")


def run_command(
    cmd: Sequence[str],
    description: str,
    timeout: Optional[float] = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run an external command and capture its text output.

    Args:
        cmd: Argument vector, never passed through a shell
        description: Human readable purpose, used for logging
        timeout: Seconds before subprocess.TimeoutExpired is raised
        check: Raise SubprocessError on a non-zero exit code

    Returns:
        The completed process (stdout/stderr as str)

    Raises:
        SubprocessError: non-zero exit while check=True
        subprocess.TimeoutExpired: timeout elapsed
        FileNotFoundError: executable not found
    """
    cmd = [str(part) for part in cmd]
    logger.debug(f"{description}: {' '.join(cmd)}", extra={"timeout": timeout})

    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
    )

    if result.returncode != 0:
        logger.debug(
            f"{description} exited with {result.returncode}",
            extra={"returncode": result.returncode},
        )
        if check:
            raise SubprocessError(cmd, result.returncode, result.stderr)

    return result


# =============================================================================
# Messages
# =============================================================================

def print_header(title: str, subtitle: str = ""):
    """Print styled header with optional subtitle"""
    content = f"[bold cyan]{escape(title)}[/bold cyan]"
    if subtitle:
        content += f"\n[dim]{escape(subtitle)}[/dim]"

    panel = Panel(content, border_style="cyan")
    console.print(panel)


def print_success(message: str):
    """Print success message with green checkmark"""
    console.print(f"[green]✓[/green] {escape(message)}")


def print_error(message: str):
    """Print error message with red X"""
    console.print(f"[red]✗[/red] {escape(message)}")


def print_warning(message: str):
    """Print warning message with yellow warning symbol"""
    console.print(f"[yellow]⚠[/yellow]  {escape(message)}")


def print_info(message: str):
    """Print info message with cyan arrow"""
    console.print(f"[cyan]→[/cyan] {escape(message)}")


def print_panel(content: str, title: str = "", style: str = "cyan") -> None:
    """
    Print content in a styled panel.

    Args:
        content: Panel content (Rich markup supported)
        title: Optional panel title
        style: Border and title style (cyan, green, red, yellow)
    """
    console.print()
    if title:
        console.print(Panel.fit(
            content,
            title=f"[bold {style}]{title}[/bold {style}]",
            border_style=style
        ))
    else:
        console.print(Panel.fit(content, border_style=style))
    console.print()


# =============================================================================
# Tables & prompts
# =============================================================================

def create_table(title: str, columns: List[tuple]) -> Table:
    """
    Create a styled Rich table

    Args:
        title: Table title
        columns: List of (name, style, width) tuples

    Returns:
        Rich Table instance

    Example:
        table = create_table("Volumes", [
            ("Name", "cyan", 30),
            ("Driver", "white", 10),
        ])
        table.add_row("app-data", "local")
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    for name, style, width in columns:
        table.add_column(name, style=style, width=width)
    return table


def prompt_confirm(
    message: str,
    default: bool = True
) -> bool:
    """
    Prompt user for yes/no confirmation

    Args:
        message: Prompt message
        default: Default answer (True=Yes, False=No)

    Returns:
        True if user confirmed, False otherwise
    """
    return Confirm.ask(message, default=default, console=console)


def with_spinner(message: str, func: Callable, *args, **kwargs):
    """Call `func(*args, **kwargs)` behind a transient spinner; errors pass through."""
    with Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(message, total=None)
        return func(*args, **kwargs)


# =============================================================================
# Operation outcomes
# =============================================================================

def format_outcome_line(index: int, total: int, outcome: OperationOutcome) -> str:
    """'[2/3] ✅ app-data (1.46 KB) (0.42s)' as plain text."""
    line = f"[{index}/{total}] {outcome.status_icon} {outcome.resource_name}"
    if outcome.file_size_bytes is not None:
        line += f" ({outcome.formatted_size})"
    line += f" ({outcome.duration_seconds:.2f}s)"
    return line


def print_outcome_line(index: int, total: int, outcome: OperationOutcome) -> None:
    """Print one progress line; failures and skips get their reason below."""
    console.print(escape(format_outcome_line(index, total, outcome)))
    if not outcome.is_successful and outcome.message:
        style = "red" if outcome.is_failed else "yellow"
        console.print(f"    [{style}]→ {escape(outcome.message)}[/{style}]")


def print_summary(outcomes: Iterable[OperationOutcome], title: str = "Summary") -> None:
    outcomes = list(outcomes)
    successful = sum(1 for o in outcomes if o.is_successful)
    skipped = sum(1 for o in outcomes if o.is_skipped)
    failed = sum(1 for o in outcomes if o.is_failed)

    style = "red" if failed else ("yellow" if skipped else "green")
    content = (
        f"[green]Successful: {successful}[/green]\n"
        f"[yellow]Skipped:    {skipped}[/yellow]\n"
        f"[red]Failed:     {failed}[/red]"
    )
    print_panel(content, title=title, style=style)


# =============================================================================
# Listings
# =============================================================================

def print_volumes_table(volumes: Sequence[DockerVolumeInfo]) -> None:
    table = create_table("Docker Volumes", [
        ("Name", "cyan", None),
        ("Driver", "white", 10),
        ("Mount Point", "dim", None),
    ])
    for volume in volumes:
        table.add_row(escape(volume.name), escape(volume.driver), escape(volume.mountpoint))
    console.print(table)


def print_images_table(images: Sequence[DockerImageInfo]) -> None:
    table = create_table("Docker Images", [
        ("Repository:Tag", "cyan", None),
        ("Image ID", "white", 14),
        ("Size", "green", 12),
        ("Created", "dim", None),
    ])
    for image in images:
        table.add_row(
            escape(image.first_tag or "<none>"),
            image.short_id,
            image.formatted_size,
            escape(image.created_at or "N/A"),
        )
    console.print(table)


def print_archives_table(archives: Sequence[BackupArchive], title: str = "Available Backups") -> None:
    table = create_table(title, [
        ("Name", "cyan", None),
        ("Archive", "white", None),
        ("Compressed", "dim", 10),
        ("Size", "green", 12),
    ])
    for archive in archives:
        table.add_row(
            escape(archive.resource_name),
            escape(archive.path.name),
            "yes" if archive.compressed else "no",
            archive.formatted_size,
        )
    console.print(table)
