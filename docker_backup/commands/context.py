"""Access to the objects the CLI callback puts on the tool bench (ctx.obj)."""

from typing import List, Sequence

import typer

from ..cores.docker_gateway import DockerGateway
from ..helpers.config import Config
from ..helpers.ui_utils import print_error, print_outcome_line, print_summary, print_success, print_warning
from ..types import OperationOutcome


def get_config(ctx: typer.Context) -> Config:
    """Get config from context, loading defaults if the callback did not run."""
    ctx.ensure_object(dict)
    if ctx.obj.get("config") is None:
        ctx.obj["config"] = Config()
    return ctx.obj["config"]


def get_gateway(ctx: typer.Context) -> DockerGateway:
    """Get or create the Docker gateway from the tool bench."""
    ctx.ensure_object(dict)
    if ctx.obj.get("gateway") is None:
        cfg = get_config(ctx)
        ctx.obj["gateway"] = DockerGateway(
            timeout=cfg.command_timeout,
            binary=cfg.settings.docker.binary,
        )
    return ctx.obj["gateway"]


def progress_printer(total: int):
    """on_outcome callback that prints one line per finished item."""

    def _print(index: int, outcome: OperationOutcome) -> None:
        print_outcome_line(index, total, outcome)

    return _print


def finish_batch(outcomes: Sequence[OperationOutcome], noun: str) -> None:
    """Print the summary and exit 1 if anything failed."""
    print_summary(outcomes)
    if any(o.is_failed for o in outcomes):
        print_warning(f"Some {noun} failed. Check the error messages above.")
        raise typer.Exit(code=1)
    if any(o.is_successful for o in outcomes):
        print_success(f"All {noun} completed successfully!")


def require_names(names: List[str], message: str) -> None:
    if not names:
        print_error(message)
        raise typer.Exit(code=1)
