"""Shell commands for managing aliases."""

from __future__ import annotations

from typing import Annotated

import typer
from pydantic import ValidationError
from rich.markup import escape
from rich.text import Text

from kubeshell.cli.commands.base import ShellContext, get_shell
from kubeshell.cli.output import Table


def _print_aliases(shell: ShellContext) -> None:
    aliases = shell.session.aliases.aliases
    if not aliases:
        shell.console.print("[dim]No aliases defined[/dim]")
        return

    table = Table(title="Aliases")
    table.add_column("Alias", style="cyan")
    table.add_column("Expands To")
    for alias in aliases:
        table.add_row(Text(alias.alias), Text(alias.expanded))
    shell.console.print(table)


def register_alias_commands(app: typer.Typer) -> None:
    """Register ``alias``, ``unalias`` and ``aliases``."""

    @app.command(
        "alias",
        context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
    )
    def alias_command(
        ctx: typer.Context,
        name: Annotated[
            str | None,
            typer.Argument(help="Word to expand"),
        ] = None,
        expansion: Annotated[
            list[str] | None,
            typer.Argument(help="Text the word expands to"),
        ] = None,
    ) -> None:
        """Define an alias, or list aliases when called without arguments.

        Only the first word of a line is expanded. Redefining an alias
        replaces it.

        Examples:
            alias
            alias p pods
            alias kp namespace kube-system
        """
        shell = get_shell(ctx)
        if name is None:
            _print_aliases(shell)
            return
        if not expansion:
            existing = shell.session.aliases.get(name)
            if existing is None:
                shell.console.print(f"No alias named {escape(name)}")
            else:
                shell.console.print(f"{escape(existing.alias)} = {escape(existing.expanded)}")
            return

        try:
            alias = shell.session.add_alias(name, " ".join(expansion))
        except ValidationError as e:
            raise typer.BadParameter(e.errors()[0]["msg"], param_hint="NAME") from e
        shell.console.print(f"Aliased {escape(alias.alias)} = {escape(alias.expanded)}")

    @app.command("unalias")
    def unalias_command(
        ctx: typer.Context,
        name: Annotated[str, typer.Argument(help="Alias to remove")],
    ) -> None:
        """Remove an alias."""
        shell = get_shell(ctx)
        if shell.session.remove_alias(name):
            shell.console.print(f"Removed alias {escape(name)}")
        else:
            shell.console.print(f"No alias named {escape(name)}")

    @app.command("aliases")
    def aliases_command(ctx: typer.Context) -> None:
        """List defined aliases."""
        _print_aliases(get_shell(ctx))
