"""Shell commands for port forwarding to the selected pod.

``port-forward`` starts a ``kubectl port-forward`` process that keeps
running while the shell is used. ``port-forwards`` lists, stops and shows
output of those processes.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.text import Text

from kubeshell.cli.commands.base import IndexArgument, ShellContext, get_shell
from kubeshell.cli.output import Table
from kubeshell.services.kubernetes import StreamingManager, parse_port_mapping
from kubeshell.session.port_forward import PortForwardTask

# Time given to kubectl to fail fast (bad pod, port in use) before the
# forward is reported as started
STARTUP_GRACE_SECONDS = 0.5


def _print_forwards(shell: ShellContext) -> None:
    tasks = shell.session.port_forwards.list()
    if not tasks:
        shell.console.print("[dim]No active port forwards[/dim]")
        return

    table = Table(title="Port Forwards")
    table.add_index_column()
    table.add_column("Pod", style="cyan")
    table.add_column("Ports")
    table.add_column("PID", justify="right")
    table.add_column("Status")
    for index, task in enumerate(tasks):
        status = task.status()
        style = "green" if status == "Running" else "red"
        table.add_row(
            str(index),
            Text(task.pod),
            Text(", ".join(task.ports)),
            str(task.pid or ""),
            f"[{style}]{escape(status)}[/{style}]",
        )
    shell.console.print(table)


def _get_task(shell: ShellContext, index: int) -> PortForwardTask | None:
    task = shell.session.port_forwards.get(index)
    if task is None:
        shell.console.print(f"No port forward at index {index}")
    return task


def register_forward_commands(app: typer.Typer) -> None:
    """Register ``port-forward`` and the ``port-forwards`` group."""

    def port_forward_command(
        ctx: typer.Context,
        ports: Annotated[
            list[str],
            typer.Argument(help="Port mappings: [local:]remote (e.g., 8080:80)"),
        ],
    ) -> None:
        """Forward local ports to the selected pod in the background.

        Examples:
            port-forward 8080:80
            port-forward 5432 9090:9090
            port-forward :80
        """
        shell = get_shell(ctx)
        session = shell.session
        pod = session.current_pod_name()
        if pod is None:
            shell.console.print("No active pod")
            return

        try:
            mappings = [parse_port_mapping(p) for p in ports]
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="PORTS") from e

        namespace = session.selected.namespace or session.namespace
        task = session.run_on_cluster(
            lambda cluster: StreamingManager(
                cluster, kube_config=shell.kube_config, spawner=shell.spawner
            ).port_forward(pod, namespace, mappings)
        )
        if task is None:
            return

        session.interrupt.sleep(STARTUP_GRACE_SECONDS)
        if not task.is_running():
            task.join_reader(timeout=1.0)
            shell.console.print(f"[red]Error:[/red] Port forward to {escape(pod)} exited")
            output = task.new_output()
            if output:
                shell.console.print(output, markup=False, highlight=False, end="")
            return

        session.port_forwards.add(task)
        shell.console.print(
            f"Forwarding port(s) {escape(', '.join(mappings))} to pod {escape(pod)} "
            f"[dim](index {len(session.port_forwards) - 1})[/dim]"
        )

    app.command("port-forward")(port_forward_command)
    app.command("pf", hidden=True)(port_forward_command)

    forwards_app = typer.Typer(
        name="port-forwards",
        help="List, stop or inspect active port forwards",
    )
    app.add_typer(forwards_app, name="port-forwards")
    app.add_typer(forwards_app, name="pfs", hidden=True)

    @forwards_app.callback(invoke_without_command=True)
    def forwards_callback(ctx: typer.Context) -> None:
        """List active port forwards when no subcommand is given."""
        if ctx.invoked_subcommand is None:
            _print_forwards(get_shell(ctx))

    @forwards_app.command("list")
    def list_forwards(ctx: typer.Context) -> None:
        """List active port forwards."""
        _print_forwards(get_shell(ctx))

    @forwards_app.command("stop")
    def stop_forward(ctx: typer.Context, index: IndexArgument) -> None:
        """Stop a port forward.

        Examples:
            port-forwards stop 0
        """
        shell = get_shell(ctx)
        task = _get_task(shell, index)
        if task is None:
            return
        shell.session.port_forwards.stop(index)
        shell.console.print(f"Stopped port forward to {escape(task.pod)}")

    @forwards_app.command("output")
    def forward_output(
        ctx: typer.Context,
        index: IndexArgument,
        all_output: Annotated[
            bool,
            typer.Option("--all", "-a", help="Show all output, not only new lines"),
        ] = False,
    ) -> None:
        """Show output of a port forward's process.

        Examples:
            port-forwards output 0
        """
        shell = get_shell(ctx)
        task = _get_task(shell, index)
        if task is None:
            return
        text = task.output.text() if all_output else task.new_output()
        if not text:
            shell.console.print("[dim]No new output[/dim]")
            return
        shell.console.print(text, markup=False, highlight=False, end="")
