"""Shell command for logs of the selected pod."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Annotated

import typer
from rich.markup import escape

from kubeshell.cli.commands.base import get_shell
from kubeshell.services.kubernetes import StreamingManager

if TYPE_CHECKING:
    from rich.console import Console


def register_logs_commands(app: typer.Typer) -> None:
    """Register the ``logs`` command."""

    @app.command("logs")
    def logs_command(
        ctx: typer.Context,
        container: Annotated[
            str | None,
            typer.Argument(help="Container name (defaults to the pod's first container)"),
        ] = None,
        follow: Annotated[
            bool,
            typer.Option("--follow", "-f", help="Stream new lines until Ctrl+C"),
        ] = False,
        tail: Annotated[
            int | None,
            typer.Option("--tail", help="Number of lines from the end to show"),
        ] = None,
        previous: Annotated[
            bool,
            typer.Option("--previous", "-p", help="Logs from the previous container instance"),
        ] = False,
    ) -> None:
        """Show logs of the selected pod.

        Examples:
            logs
            logs sidecar --tail 100
            logs -f
        """
        shell = get_shell(ctx)
        session = shell.session
        pod = session.current_pod_name()
        if pod is None:
            shell.console.print("No active pod")
            return

        selected = session.selected
        if container is None and selected.containers:
            container = selected.containers[0]
        elif container is not None and selected.containers and container not in selected.containers:
            shell.console.print(
                f"[red]Error:[/red] Pod {escape(pod)} has no container {escape(container)}. "
                f"Containers: {escape(', '.join(selected.containers))}"
            )
            return

        namespace = selected.namespace or session.namespace or "default"
        result = session.run_on_cluster(
            lambda cluster: StreamingManager(cluster).stream_logs(
                pod,
                namespace,
                container=container,
                follow=follow,
                tail_lines=tail,
                previous=previous,
                interrupt=session.interrupt,
            )
        )
        if result is None:
            return

        if isinstance(result, str):
            shell.console.print(result, markup=False, highlight=False, end="")
            return

        # Follow mode: the cluster is only contacted once iteration starts
        session.run_on_cluster(lambda _: _print_lines(shell.console, result))
        if session.interrupt.is_set():
            shell.console.print("\n[dim]Log streaming stopped.[/dim]")


def _print_lines(console: Console, lines: Iterable[str]) -> None:
    for line in lines:
        console.print(line, markup=False, highlight=False, end="")
