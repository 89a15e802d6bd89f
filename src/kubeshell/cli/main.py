"""Main CLI entry point using Typer."""

from __future__ import annotations

from functools import partial
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from kubeshell import __version__
from kubeshell.cli.commands import ShellContext
from kubeshell.cli.repl import CommandProcessor
from kubeshell.core.config.models import (
    CONFIG_FILE_NAME,
    HISTORY_FILE_NAME,
    ConfigSaveError,
    ShellConfigStore,
    load_config,
)
from kubeshell.integrations.kubernetes.client import KubernetesClient
from kubeshell.integrations.kubernetes.config import DEFAULT_CONFIG_DIR, KubernetesConfig
from kubeshell.logging.config import configure_logging, get_logger
from kubeshell.session.interrupt import install_signal_handler
from kubeshell.session.state import SessionState

app = typer.Typer(
    name="kubeshell",
    help="Interactive shell for exploring Kubernetes clusters.",
    add_completion=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"kubeshell version {__version__}")
        raise typer.Exit()


def _start_session(
    session: SessionState,
    context: str | None,
    namespace: str | None,
) -> None:
    """Apply the starting context and namespace, warning if they cannot be saved."""
    try:
        session.switch_cluster(context or session.config.context)
        if namespace is not None:
            session.switch_namespace(namespace)
    except ConfigSaveError as e:
        console.print(f"[yellow]Warning:[/yellow] {escape(str(e))}")


@app.command()
def main(
    config_dir: Path = typer.Option(
        DEFAULT_CONFIG_DIR,
        "--config-dir",
        "-c",
        help="Directory holding the kubeconfig and the shell's config and history.",
        file_okay=False,
        resolve_path=True,
    ),
    exec_line: str | None = typer.Option(
        None,
        "--exec",
        "-e",
        help="Run one command line and exit.",
    ),
    context: str | None = typer.Option(
        None,
        "--context",
        "-C",
        help="Context to start in, overriding the saved one.",
    ),
    namespace: str | None = typer.Option(
        None,
        "--namespace",
        "-n",
        help="Namespace to start in, overriding the saved one.",
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
) -> None:
    """kubeshell - an interactive shell for Kubernetes clusters."""
    configure_logging(verbose=verbose, debug=debug)
    logger = get_logger(__name__)

    try:
        kube_config = KubernetesConfig.from_env(config_dir=config_dir)
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid Kubernetes configuration: {escape(str(e))}")
        raise typer.Exit(1) from None

    config_path = config_dir / CONFIG_FILE_NAME
    store = ShellConfigStore(config_path)
    config = load_config(config_path)

    session = SessionState(
        config,
        store,
        resolver=partial(KubernetesClient.from_context, kube_config),
        interrupt=install_signal_handler(),
        console=console,
    )
    shell = ShellContext(session=session, kube_config=kube_config)
    processor = CommandProcessor(shell, history_path=config_dir / HISTORY_FILE_NAME)

    logger.info("shell_starting", config_dir=str(config_dir), kubeconfig=kube_config.kubeconfig)
    try:
        _start_session(session, context, namespace)
        if exec_line is not None:
            processor.process_line(exec_line)
        else:
            processor.run()
    finally:
        session.close()
        logger.info("shell_stopped")


if __name__ == "__main__":
    app()
