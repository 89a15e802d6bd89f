"""The shell session: active cluster, namespace, selection and helpers.

Every shell command reads and mutates one ``SessionState``. It is owned by
the interactive loop's thread; only the port-forward output logs and the
interrupt flag are shared with other threads.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

import structlog
from prompt_toolkit.formatted_text import FormattedText
from rich.console import Console
from rich.markup import escape

from kubeshell.core.config.models import Alias, CompletionType, EditMode, ShellConfig
from kubeshell.integrations.kubernetes.exceptions import KubernetesError
from kubeshell.session.aliases import AliasExpander
from kubeshell.session.interrupt import InterruptSignal, get_interrupt_signal
from kubeshell.session.port_forward import PortForwardSupervisor
from kubeshell.session.prompt import prompt_fragments, render_prompt
from kubeshell.session.selection import ResourceList, ResourceSelector, SelectedObject

if TYPE_CHECKING:
    from kubeshell.core.config.models import ShellConfigStore
    from kubeshell.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()

R = TypeVar("R")

ClusterResolver = Callable[[str], "KubernetesClient"]


class SessionState:
    """State shared by all commands of one shell session.

    Args:
        config: Persistent settings the session starts from. The session
            writes its context, namespace and aliases back into it.
        store: Where ``config`` is saved after each change. None disables
            persistence.
        resolver: Turns a context name into a cluster client, raising
            ``KubernetesError`` when it cannot.
        interrupt: Cooperative cancellation flag. Defaults to the
            process-wide flag.
        console: Where user-facing messages are printed.
    """

    def __init__(
        self,
        config: ShellConfig,
        store: ShellConfigStore | None,
        resolver: ClusterResolver,
        *,
        interrupt: InterruptSignal | None = None,
        console: Console | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._resolver = resolver
        self.interrupt = interrupt if interrupt is not None else get_interrupt_signal()
        self.console = console if console is not None else Console()

        self._cluster: KubernetesClient | None = None
        self._namespace: str | None = config.namespace
        self.selector = ResourceSelector()
        self.aliases = AliasExpander(config.aliases, on_change=self._aliases_changed)
        self.port_forwards = PortForwardSupervisor()

        self.quit_requested = False
        self.need_new_editor = False
        self._prompt = ""
        self._refresh_prompt()

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def config(self) -> ShellConfig:
        return self._config

    @property
    def cluster(self) -> KubernetesClient | None:
        return self._cluster

    @property
    def cluster_name(self) -> str | None:
        return self._cluster.name if self._cluster is not None else None

    @property
    def namespace(self) -> str | None:
        return self._namespace

    @property
    def selected(self) -> SelectedObject:
        return self.selector.selected

    @property
    def resource_list(self) -> ResourceList | None:
        return self.selector.resource_list

    @property
    def prompt(self) -> str:
        return self._prompt

    def prompt_message(self) -> FormattedText:
        """The prompt with per-field colors for prompt_toolkit."""
        return prompt_fragments(self.cluster_name, self._namespace, self.selected)

    def _refresh_prompt(self) -> None:
        self._prompt = render_prompt(self.cluster_name, self._namespace, self.selected)

    # =========================================================================
    # Persistence
    # =========================================================================

    def _persist(self) -> None:
        """Write context, namespace and aliases back to the config store.

        Raises:
            ConfigSaveError: If the store cannot be written. In-memory state
                is already updated.
        """
        self._config.context = self.cluster_name
        self._config.namespace = self._namespace
        self._config.aliases = self.aliases.aliases
        if self._store is not None:
            self._store.save(self._config)

    def _aliases_changed(self, aliases: list[Alias]) -> None:
        self._persist()

    # =========================================================================
    # Cluster and namespace
    # =========================================================================

    def switch_cluster(self, name: str | None) -> bool:
        """Make the context ``name`` the active cluster.

        On failure the session has no active cluster but keeps its namespace,
        selection and forwards. On success, forwards started against the
        previous cluster are stopped. ``None`` leaves everything unchanged.

        Returns:
            True if a cluster is active afterwards.

        Raises:
            ConfigSaveError: If the new context could not be persisted.
        """
        if name is None:
            return self._cluster is not None

        try:
            cluster = self._resolver(name)
        except KubernetesError as e:
            logger.warning("context_switch_failed", context=name, error=str(e))
            self.console.print(
                f"[yellow]Warning:[/yellow] Couldn't find/load context {escape(name)}, "
                f"now no current context. Error: {escape(str(e))}"
            )
            self._replace_cluster(None)
        else:
            self.port_forwards.stop_all()
            self._replace_cluster(cluster)
            logger.info("switched_context", context=name)

        self._refresh_prompt()
        self._persist()
        return self._cluster is not None

    def _replace_cluster(self, cluster: KubernetesClient | None) -> None:
        previous, self._cluster = self._cluster, cluster
        if previous is not None and previous is not cluster:
            previous.close()

    def switch_namespace(self, name: str | None) -> None:
        """Set the active namespace.

        A selected object in a different namespace is deselected; when either
        namespace is undefined the selection stays.

        Raises:
            ConfigSaveError: If the new namespace could not be persisted.
        """
        selected = self.selected
        if (
            not selected.is_empty
            and selected.namespace is not None
            and name is not None
            and selected.namespace != name
        ):
            self.selector.clear()
        self._namespace = name
        logger.info("switched_namespace", namespace=name)
        self._refresh_prompt()
        self._persist()

    def run_on_cluster(self, operation: Callable[[KubernetesClient], R]) -> R | None:
        """Run ``operation`` against the active cluster.

        Returns:
            The operation's result, or None when there is no active cluster
            or the operation failed (the failure is reported).
        """
        if self._cluster is None:
            self.console.print("Need to have an active context")
            return None
        try:
            return operation(self._cluster)
        except KubernetesError as e:
            logger.debug("cluster_operation_failed", context=self._cluster.name, error=str(e))
            self.console.print(f"[red]Error:[/red] {escape(str(e))}")
            if e.hint:
                self.console.print(f"[dim]Hint: {escape(e.hint)}[/dim]")
            return None

    # =========================================================================
    # Selection
    # =========================================================================

    def record_list(self, resource_list: ResourceList) -> None:
        self.selector.record_list(resource_list)
        self._refresh_prompt()

    def select_by_index(self, index: int) -> SelectedObject:
        """Select an item of the last list; problems are reported, never raised."""
        notice = self.selector.select_by_index(index)
        if notice is not None:
            self.console.print(notice)
        self._refresh_prompt()
        return self.selected

    def clear_selection(self) -> None:
        self.selector.clear()
        self._refresh_prompt()

    def current_pod_name(self) -> str | None:
        return self.selector.current_pod_name()

    # =========================================================================
    # Aliases
    # =========================================================================

    def add_alias(self, name: str, expansion: str) -> Alias:
        """Create or replace an alias and persist the alias set."""
        return self.aliases.add(name, expansion)

    def remove_alias(self, name: str) -> bool:
        """Remove an alias, persisting if it existed."""
        return self.aliases.remove(name)

    def expand_aliases(self, line: str) -> str:
        return self.aliases.expand_line(line)

    # =========================================================================
    # Editor settings
    # =========================================================================

    def set_editor(self, editor: str | None) -> None:
        self._config.editor = editor
        self._persist()

    def set_terminal(self, terminal: str | None) -> None:
        self._config.terminal = terminal
        self._persist()

    def set_completion_type(self, completion_type: CompletionType) -> None:
        self._config.completion_type = completion_type
        self.need_new_editor = True
        self._persist()

    def set_edit_mode(self, edit_mode: EditMode) -> None:
        self._config.edit_mode = edit_mode
        self.need_new_editor = True
        self._persist()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def request_quit(self) -> None:
        self.quit_requested = True

    def close(self) -> None:
        """End the session: kill every forward and drop the cluster client."""
        self.port_forwards.stop_all()
        self._replace_cluster(None)
        logger.debug("session_closed")
