"""Interactive loop: read a line, expand aliases, run the command."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import TYPE_CHECKING

import click
import structlog
import typer
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.shortcuts import CompleteStyle
from rich.markup import escape

from kubeshell.cli.commands import build_shell_app, handle_k8s_error
from kubeshell.core.config.models import ConfigSaveError
from kubeshell.integrations.kubernetes.exceptions import KubernetesError
from kubeshell.session.port_forward import PortForwardError

if TYPE_CHECKING:
    from prompt_toolkit.history import History

    from kubeshell.cli.commands.base import ShellContext

logger = structlog.get_logger()

_COMPLETE_STYLES = {
    "circular": CompleteStyle.COLUMN,
    "list": CompleteStyle.READLINE_LIKE,
}


class CommandProcessor:
    """Runs shell lines against a session.

    Args:
        shell: Session and cluster configuration commands operate on.
        history_path: File that keeps input history between runs. None
            keeps history in memory only.
    """

    def __init__(self, shell: ShellContext, history_path: Path | None = None) -> None:
        self.shell = shell
        self.session = shell.session
        self._command = typer.main.get_command(build_shell_app())
        self._history_path = history_path
        self._prompt_session: PromptSession[str] | None = None

    @property
    def command_names(self) -> list[str]:
        if isinstance(self._command, click.Group):
            return sorted(self._command.commands)
        return []

    def _completion_words(self) -> list[str]:
        return self.command_names + [a.alias for a in self.session.aliases.aliases]

    def _history(self) -> History:
        if self._history_path is None:
            return InMemoryHistory()
        try:
            self._history_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("history_unavailable", path=str(self._history_path), error=str(e))
            return InMemoryHistory()
        return FileHistory(str(self._history_path))

    def _new_prompt_session(self) -> PromptSession[str]:
        config = self.session.config
        return PromptSession(
            history=self._history(),
            completer=WordCompleter(self._completion_words, sentence=True),
            complete_style=_COMPLETE_STYLES[config.completion_type],
            vi_mode=config.edit_mode == "vi",
        )

    # =========================================================================
    # Line processing
    # =========================================================================

    def process_line(self, line: str) -> None:
        """Run one line of input.

        Blank lines and ``#`` comments are ignored. A line that is a bare
        row number selects that row of the last listing.
        """
        self.session.interrupt.clear()
        line = line.strip()
        if not line or line.startswith("#"):
            return

        line = self.session.expand_aliases(line).strip()
        if line.isdigit():
            self.session.select_by_index(int(line))
            return

        try:
            argv = shlex.split(line)
        except ValueError as e:
            self.session.console.print(f"[red]Error:[/red] {escape(str(e))}")
            return
        self.dispatch(argv)

    def dispatch(self, argv: list[str]) -> None:
        """Parse and run one command; errors are reported, never raised."""
        console = self.session.console
        logger.debug("dispatch_command", argv=argv)
        try:
            self._command.main(
                args=argv,
                prog_name="",
                standalone_mode=False,
                obj=self.shell,
            )
        except click.ClickException as e:
            console.print(f"[red]Error:[/red] {escape(e.format_message())}")
        except click.exceptions.Abort:
            console.print("")
        except ConfigSaveError as e:
            console.print(f"[yellow]Warning:[/yellow] {escape(str(e))}")
        except PortForwardError as e:
            console.print(f"[red]Error:[/red] {escape(e.message)}")
        except KubernetesError as e:
            handle_k8s_error(e, console)

    # =========================================================================
    # Interactive loop
    # =========================================================================

    def run(self) -> None:
        """Prompt for lines until the user quits or sends EOF."""
        while not self.session.quit_requested:
            if self._prompt_session is None or self.session.need_new_editor:
                self._prompt_session = self._new_prompt_session()
                self.session.need_new_editor = False

            try:
                line = self._prompt_session.prompt(
                    self.session.prompt_message,
                    handle_sigint=False,
                )
            except KeyboardInterrupt:
                continue
            except EOFError:
                self.session.console.print("")
                break

            self.process_line(line)
