"""Shell commands that list resources and select from the listing."""

from __future__ import annotations

from collections.abc import Callable

import typer

from kubeshell.cli.commands.base import IndexArgument, LabelSelectorOption, get_shell
from kubeshell.cli.output import build_resource_table
from kubeshell.services.kubernetes import ResourceManager
from kubeshell.session.kinds import KIND_ALIASES, ResourceKind


def _make_list_command(kind: ResourceKind) -> Callable[..., None]:
    def list_command(
        ctx: typer.Context,
        label_selector: LabelSelectorOption = None,
    ) -> None:
        shell = get_shell(ctx)
        session = shell.session
        namespace = session.namespace if kind.namespaced else None

        resource_list = session.run_on_cluster(
            lambda cluster: ResourceManager(cluster).list_resources(
                kind, namespace, label_selector=label_selector
            )
        )
        if resource_list is None:
            return

        session.record_list(resource_list)
        if not resource_list.items:
            shell.console.print(f"[dim]No {kind.value} objects found[/dim]")
            return
        table = build_resource_table(resource_list, show_namespace=namespace is None)
        shell.console.print(table)

    return list_command


def register_resource_commands(app: typer.Typer) -> None:
    """Register one listing command per resource kind, plus ``select``."""

    for kind, words in KIND_ALIASES.items():
        command = _make_list_command(kind)
        help_text = f"List {kind.value} objects in the active namespace (all if none is set)."
        primary, *shortcuts = words
        app.command(primary, help=help_text)(command)
        for word in shortcuts:
            app.command(word, help=help_text, hidden=True)(command)

    @app.command("select")
    def select_command(ctx: typer.Context, index: IndexArgument) -> None:
        """Select a row of the last listing.

        A row number outside the listing clears the selection. Typing the
        bare number does the same as ``select``.

        Examples:
            pods
            select 2
        """
        get_shell(ctx).session.select_by_index(index)
