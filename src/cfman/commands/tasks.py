"""Command: list every dispatchable task type."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cfman.commands._base import CfCommand

if TYPE_CHECKING:
    from cfman.commands._context import AppContext


@click.command(
    cls=CfCommand,
    examples="""\
  cfman tasks
  cfman -q tasks
  cfman --json tasks""",
)
@click.pass_obj
def tasks(app: AppContext) -> None:
    """List composite task keys (resource_type:task_type)."""
    from cfman.services.catalog import CatalogService

    app.emit(CatalogService(app.runtime.registry).list_task_types())
