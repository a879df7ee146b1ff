"""
Helpers shared by the CLI commands.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from pydantic import ValidationError

from wipman.cli.errors import report_error, report_validation_error
from wipman.core.config import load_config
from wipman.core.config.models import WipmanConfig
from wipman.core.errors import WipmanError
from wipman.core.workspace import Workspace


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_config(ctx: typer.Context) -> WipmanConfig:
    """Config for the root given on the command line (or the environment)."""
    obj = ctx.obj or {}
    root: Path | None = obj.get("root")
    config = load_config(root)
    if obj.get("debug"):
        config = config.model_copy(update={"debug": True})
    return config


@contextmanager
def open_workspace(ctx: typer.Context) -> Iterator[Workspace]:
    """
    Open the workspace for this invocation.

    Any WipmanError or model validation error raised while opening or using
    it is printed and turned into a non-zero exit.
    """
    workspace: Workspace | None = None
    try:
        workspace = Workspace.open(get_config(ctx))
        yield workspace
    except WipmanError as e:
        raise typer.Exit(report_error(e)) from e
    except ValidationError as e:
        raise typer.Exit(report_validation_error(e)) from e
    finally:
        if workspace is not None:
            workspace.close()
