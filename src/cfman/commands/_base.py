"""Click base classes for commands that carry usage examples.

Examples stay out of ``--help``; ``--help`` only points at ``--examples``,
which prints them and exits.
"""

from __future__ import annotations

from typing import Any

import click

_HINT = "Run with --examples to see usage examples."


class _ExamplesMixin:
    """Shared ``examples=`` handling for :class:`CfCommand` and :class:`CfGroup`."""

    examples: str | None
    params: list[click.Parameter]

    def _install_examples(self, examples: str | None) -> None:
        self.examples = examples
        if not examples:
            return
        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=self._print_examples,
                help="Show usage examples and exit.",
            )
        )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)


class CfCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        if examples:
            kwargs.setdefault("epilog", _HINT)
        super().__init__(*args, **kwargs)
        self._install_examples(examples)


class CfGroup(_ExamplesMixin, click.Group):
    """Group whose subcommands default to :class:`CfCommand`."""

    command_class = CfCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        if examples:
            kwargs.setdefault("epilog", _HINT)
        super().__init__(*args, **kwargs)
        self._install_examples(examples)
