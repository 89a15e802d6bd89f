"""Shell commands for the session itself.

Provides ``context``, ``contexts``, ``namespace``, ``clear``, ``env``,
``set`` and ``quit``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

import structlog
import typer
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from kubeshell.cli.commands.base import ShellContext, get_shell
from kubeshell.cli.output import Table
from kubeshell.integrations.kubernetes.client import list_contexts
from kubeshell.integrations.kubernetes.exceptions import KubernetesError

logger = structlog.get_logger()


class Setting(str, Enum):
    """Settings changeable with ``set``."""

    EDITOR = "editor"
    TERMINAL = "terminal"
    COMPLETION = "completion"
    EDITMODE = "editmode"


_COMPLETION_CHOICES = ("circular", "list")
_EDITMODE_CHOICES = ("emacs", "vi")


def _print_contexts(shell: ShellContext) -> None:
    contexts = list_contexts(shell.kube_config)
    if not contexts:
        shell.console.print("[dim]No contexts found in kubeconfig[/dim]")
        return

    current = shell.session.cluster_name
    table = Table(title="Contexts")
    table.add_column("", width=1)
    table.add_column("Name", style="cyan")
    table.add_column("Cluster")
    table.add_column("Namespace")
    for context in contexts:
        marker = "*" if context["name"] == current else ""
        table.add_row(
            marker,
            Text(context["name"]),
            Text(context.get("cluster") or ""),
            Text(context.get("namespace") or ""),
        )
    shell.console.print(table)


def register_context_commands(app: typer.Typer) -> None:
    """Register session-level shell commands."""

    # -------------------------------------------------------------------------
    # Context / Namespace
    # -------------------------------------------------------------------------

    def context_command(
        ctx: typer.Context,
        name: Annotated[
            str | None,
            typer.Argument(help="Context to switch to"),
        ] = None,
    ) -> None:
        """Switch to a kubeconfig context, or list contexts.

        Examples:
            context
            context prod-cluster
        """
        shell = get_shell(ctx)
        if name is None:
            _print_contexts(shell)
            return
        if shell.session.switch_cluster(name):
            shell.console.print(f"Switched to context [red]{escape(name)}[/red]")

    app.command("context")(context_command)
    app.command("ctx", hidden=True)(context_command)

    @app.command("contexts")
    def contexts_command(ctx: typer.Context) -> None:
        """List kubeconfig contexts; the active one is marked."""
        _print_contexts(get_shell(ctx))

    def namespace_command(
        ctx: typer.Context,
        name: Annotated[
            str | None,
            typer.Argument(help="Namespace to use; omit to use all namespaces"),
        ] = None,
    ) -> None:
        """Set the active namespace.

        Without a name the namespace is unset and listings cover all
        namespaces.

        Examples:
            namespace kube-system
            ns
        """
        shell = get_shell(ctx)
        shell.session.switch_namespace(name)
        if name is None:
            shell.console.print("[dim]Namespace unset, listing all namespaces[/dim]")

    app.command("namespace")(namespace_command)
    app.command("ns", hidden=True)(namespace_command)

    @app.command("clear")
    def clear_command(ctx: typer.Context) -> None:
        """Deselect the selected object."""
        get_shell(ctx).session.clear_selection()

    # -------------------------------------------------------------------------
    # Environment
    # -------------------------------------------------------------------------

    @app.command("env")
    def env_command(ctx: typer.Context) -> None:
        """Show the shell's current environment."""
        shell = get_shell(ctx)
        session = shell.session
        config = session.config
        contexts = ", ".join(c["name"] for c in list_contexts(shell.kube_config))
        version = "unknown"
        if session.cluster is not None:
            try:
                version = session.cluster.get_cluster_version()
            except KubernetesError as e:
                logger.debug("cluster_version_unavailable", error=str(e))

        lines = [
            f"[bold]Current Context:[/bold] {escape(session.cluster_name or 'none')}",
            f"[bold]Server Version:[/bold] {escape(version)}",
            f"[bold]Namespace:[/bold] {escape(session.namespace or 'all')}",
            f"[bold]Selected:[/bold] {escape(session.selected.label)}",
            f"[bold]Available Contexts:[/bold] {escape(contexts or 'none')}",
            f"[bold]Kubernetes Config File(s):[/bold] {escape(shell.kube_config.kubeconfig)}",
            f"[bold]Editor:[/bold] {escape(config.editor or 'unset')}",
            f"[bold]Terminal:[/bold] {escape(config.terminal or 'unset')}",
            f"[bold]Completion Type:[/bold] {config.completion_type}",
            f"[bold]Edit Mode:[/bold] {config.edit_mode}",
            f"[bold]Port Forwards:[/bold] {len(session.port_forwards)}",
        ]
        shell.console.print(Panel("\n".join(lines), title="Environment", border_style="blue"))

    @app.command("set")
    def set_command(
        ctx: typer.Context,
        setting: Annotated[Setting, typer.Argument(help="Setting to change")],
        value: Annotated[
            str | None,
            typer.Argument(help="New value; omit to unset editor or terminal"),
        ] = None,
    ) -> None:
        """Change a shell setting.

        Examples:
            set editor vim
            set completion list
            set editmode vi
        """
        session = get_shell(ctx).session
        if setting is Setting.EDITOR:
            session.set_editor(value)
        elif setting is Setting.TERMINAL:
            session.set_terminal(value)
        elif setting is Setting.COMPLETION:
            if value is None or value.lower() not in _COMPLETION_CHOICES:
                raise typer.BadParameter(
                    f"completion must be one of: {', '.join(_COMPLETION_CHOICES)}"
                )
            session.set_completion_type(value.lower())  # type: ignore[arg-type]
        else:
            if value is None or value.lower() not in _EDITMODE_CHOICES:
                raise typer.BadParameter(f"editmode must be one of: {', '.join(_EDITMODE_CHOICES)}")
            session.set_edit_mode(value.lower())  # type: ignore[arg-type]
        session.console.print(f"Set {setting.value} to {escape(value or 'unset')}")

    # -------------------------------------------------------------------------
    # Quit
    # -------------------------------------------------------------------------

    def quit_command(ctx: typer.Context) -> None:
        """Leave the shell, stopping every port forward."""
        get_shell(ctx).session.request_quit()

    app.command("quit")(quit_command)
    app.command("exit", hidden=True)(quit_command)
