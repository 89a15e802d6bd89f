"""Base utilities for shell commands.

Provides the object passed to every command, common Typer option
annotations, and user-facing error reporting. Commands print through the
session console and never exit the shell on error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape

from kubeshell.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
)
from kubeshell.session.port_forward import ProcessSpawner, spawn_process

if TYPE_CHECKING:
    from kubeshell.integrations.kubernetes.config import KubernetesConfig
    from kubeshell.session.state import SessionState


@dataclass
class ShellContext:
    """Everything a shell command can reach through ``ctx.obj``."""

    session: SessionState
    kube_config: KubernetesConfig
    spawner: ProcessSpawner = spawn_process

    @property
    def console(self) -> Console:
        return self.session.console


def get_shell(ctx: typer.Context) -> ShellContext:
    """Return the shell context attached to a command invocation."""
    shell = ctx.find_object(ShellContext)
    if shell is None:
        raise RuntimeError("shell command invoked without a ShellContext")
    return shell


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

LabelSelectorOption = Annotated[
    str | None,
    typer.Option(
        "--selector",
        "-l",
        help="Label selector (e.g., 'app=nginx,tier=frontend')",
    ),
]

IndexArgument = Annotated[
    int,
    typer.Argument(help="Row number from the listing"),
]


# =============================================================================
# Error Handling
# =============================================================================


def handle_k8s_error(error: KubernetesError, console: Console) -> None:
    """Print a Kubernetes error with the hint its type carries."""
    if isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {escape(error.message)}")
        if error.original_error:
            console.print(f"  Cause: {escape(str(error.original_error))}")
    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {escape(error.message)}")
    else:
        console.print(f"[red]Error:[/red] {escape(str(error))}")
    if error.hint:
        console.print(f"[dim]Hint: {escape(error.hint)}[/dim]")
