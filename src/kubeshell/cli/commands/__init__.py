"""Commands available at the shell prompt."""

from __future__ import annotations

import typer

from kubeshell.cli.commands.aliases import register_alias_commands
from kubeshell.cli.commands.base import ShellContext, get_shell, handle_k8s_error
from kubeshell.cli.commands.context import register_context_commands
from kubeshell.cli.commands.forwards import register_forward_commands
from kubeshell.cli.commands.logs import register_logs_commands
from kubeshell.cli.commands.resources import register_resource_commands


def build_shell_app() -> typer.Typer:
    """Create the Typer app that parses each line typed at the prompt."""
    app = typer.Typer(
        help="Commands available at the kubeshell prompt.",
        add_completion=False,
    )
    register_context_commands(app)
    register_resource_commands(app)
    register_logs_commands(app)
    register_alias_commands(app)
    register_forward_commands(app)
    return app


__all__ = [
    "ShellContext",
    "build_shell_app",
    "get_shell",
    "handle_k8s_error",
]
