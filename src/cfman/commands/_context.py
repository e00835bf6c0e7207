"""Per-invocation state shared by every subcommand via ``@click.pass_obj``."""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

import click

from cfman.config.logging import configure_logging
from cfman.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from cfman.bootstrap import Runtime
    from cfman.config.settings import CfmanSettings
    from cfman.services.result import ServiceResult


class AppContext:
    """Settings plus a lazily bootstrapped :class:`~cfman.bootstrap.Runtime`.

    ``--help`` and ``--version`` never reach a command body, so they never
    pay for plugin registration or entry-point discovery.
    """

    def __init__(self, settings: CfmanSettings) -> None:
        self.settings = settings
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @cached_property
    def runtime(self) -> Runtime:
        from cfman.bootstrap import bootstrap

        return bootstrap(self.settings)

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failed result goes to stderr and exits with status 1.

        Warnings of a successful result are echoed to stderr unless the
        output is JSON, which already carries them.
        """
        output_settings = self.output_settings
        text = format_result(result, settings=output_settings)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)

        click.echo(text)
        if output_settings.json_output:
            return
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)
