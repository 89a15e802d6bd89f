"""Tests for the in-shell commands."""

from __future__ import annotations

import io
import threading
from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import ApiException

from kubeshell.cli.repl import CommandProcessor
from kubeshell.session.kinds import ResourceKind
from kubeshell.session.state import SessionState


@pytest.fixture(autouse=True)
def _no_startup_grace() -> Iterator[None]:
    with patch("kubeshell.cli.commands.forwards.STARTUP_GRACE_SECONDS", 0):
        yield


@pytest.mark.unit
class TestContextCommands:
    """Tests for context, namespace and session commands."""

    def test_contexts_marks_current(
        self,
        processor: CommandProcessor,
        connected: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        processor.process_line("contexts")

        rows = [line.split() for line in console_output.getvalue().splitlines()]
        assert ["*", "dev", "c-dev"] in rows
        assert ["prod", "c-dev"] in rows

    def test_switch_context(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        processor.process_line("context prod")

        assert session.cluster_name == "prod"
        assert "Switched to context prod" in console_output.getvalue()

    def test_switch_to_unknown_context(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        processor.process_line("ctx ghost")

        assert session.cluster_name is None
        assert "Couldn't find/load context ghost" in console_output.getvalue()

    def test_namespace(self, processor: CommandProcessor, session: SessionState) -> None:
        processor.process_line("namespace kube-system")

        assert session.namespace == "kube-system"
        assert session.prompt == "[none] [kube-system] [none] > "

    def test_namespace_unset(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        processor.process_line("ns web")
        processor.process_line("ns")

        assert session.namespace is None
        assert "listing all namespaces" in console_output.getvalue()

    def test_clear(
        self, processor: CommandProcessor, session: SessionState, pods_listed: MagicMock
    ) -> None:
        processor.process_line("0")
        processor.process_line("clear")

        assert session.selected.is_empty

    def test_env(
        self,
        processor: CommandProcessor,
        connected: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        connected.get_cluster_version.return_value = "v1.30"

        processor.process_line("env")

        output = console_output.getvalue()
        assert "Current Context: dev" in output
        assert "Server Version: v1.30" in output
        assert "Namespace: all" in output
        assert "Available Contexts: dev, prod" in output
        assert "Port Forwards: 0" in output

    def test_set_editor(self, processor: CommandProcessor, session: SessionState) -> None:
        processor.process_line("set editor vim")

        assert session.config.editor == "vim"

    def test_set_completion(self, processor: CommandProcessor, session: SessionState) -> None:
        processor.process_line("set completion LIST")

        assert session.config.completion_type == "list"
        assert session.need_new_editor is True

    def test_set_invalid_editmode(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        processor.process_line("set editmode nano")

        assert "editmode must be one of: emacs, vi" in console_output.getvalue()
        assert session.config.edit_mode == "emacs"


@pytest.mark.unit
class TestResourceCommands:
    """Tests for listing and selecting resources."""

    def test_lists_all_namespaces(
        self, pods_listed: MagicMock, console_output: io.StringIO, session: SessionState
    ) -> None:
        output = console_output.getvalue()
        assert "web-0" in output
        assert "Namespace" in output
        assert session.resource_list is not None
        assert session.resource_list.kind is ResourceKind.POD

    def test_lists_active_namespace(
        self, processor: CommandProcessor, connected: MagicMock
    ) -> None:
        connected.apps_v1.list_namespaced_deployment.return_value = MagicMock(items=[])

        processor.process_line("ns shop")
        processor.process_line("deploy -l app=web")

        connected.apps_v1.list_namespaced_deployment.assert_called_once_with(
            namespace="shop", label_selector="app=web", _request_timeout=30
        )

    def test_empty_listing(
        self, processor: CommandProcessor, connected: MagicMock, console_output: io.StringIO
    ) -> None:
        connected.core_v1.list_service_for_all_namespaces.return_value = MagicMock(items=[])

        processor.process_line("svc")

        assert "No Service objects found" in console_output.getvalue()

    def test_nodes(
        self,
        processor: CommandProcessor,
        connected: MagicMock,
        session: SessionState,
        node_factory: Any,
    ) -> None:
        connected.core_v1.list_node.return_value = MagicMock(items=[node_factory("worker-1")])

        processor.process_line("ns web")
        processor.process_line("no")
        processor.process_line("select 0")

        assert session.selected.name == "worker-1"
        assert session.selected.namespace is None

    def test_structured_kind(
        self, processor: CommandProcessor, connected: MagicMock, session: SessionState
    ) -> None:
        item = MagicMock()
        connected.core_v1.list_secret_for_all_namespaces.return_value = MagicMock(items=[item])
        connected.to_dict.return_value = {"metadata": {"name": "tls", "namespace": "web"}}

        processor.process_line("secrets")
        processor.process_line("0")

        assert session.selected.kind is ResourceKind.SECRET
        assert session.selected.name == "tls"
        assert session.selected.namespace == "web"

    def test_api_error_is_reported(
        self,
        processor: CommandProcessor,
        connected: MagicMock,
        session: SessionState,
        console_output: io.StringIO,
    ) -> None:
        connected.core_v1.list_pod_for_all_namespaces.side_effect = ApiException(
            status=403, reason="Forbidden"
        )

        processor.process_line("pods")

        assert "Error:" in console_output.getvalue()
        assert "Hint: Check your credentials" in console_output.getvalue()
        assert session.resource_list is None

    def test_select_out_of_range_clears(
        self, processor: CommandProcessor, session: SessionState, pods_listed: MagicMock
    ) -> None:
        processor.process_line("0")
        processor.process_line("select 7")

        assert session.selected.is_empty

    def test_select_without_listing(
        self, processor: CommandProcessor, console_output: io.StringIO
    ) -> None:
        processor.process_line("select 0")

        assert "No active object list" in console_output.getvalue()


class _LogResponse:
    def __init__(self, lines: list[bytes]) -> None:
        self._lines = lines

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._lines)

    def release_conn(self) -> None:
        pass


class _QuietLogResponse:
    """Sends one line, then blocks until closed."""

    def __init__(self) -> None:
        self.closed = threading.Event()

    def __iter__(self) -> Iterator[bytes]:
        yield b"first\n"
        self.closed.wait(timeout=10)

    def close(self) -> None:
        self.closed.set()


@pytest.mark.unit
class TestLogsCommand:
    """Tests for ``logs``."""

    def test_requires_pod(
        self, processor: CommandProcessor, console_output: io.StringIO
    ) -> None:
        processor.process_line("logs")

        assert "No active pod" in console_output.getvalue()

    def test_first_container_by_default(
        self,
        processor: CommandProcessor,
        pods_listed: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        pods_listed.core_v1.read_namespaced_pod_log.return_value = "hello from web\n"

        processor.process_line("0")
        processor.process_line("logs --tail 5")

        pods_listed.core_v1.read_namespaced_pod_log.assert_called_once_with(
            name="web-0", namespace="default", container="app", tail_lines=5
        )
        assert "hello from web" in console_output.getvalue()

    def test_named_container(self, processor: CommandProcessor, pods_listed: MagicMock) -> None:
        pods_listed.core_v1.read_namespaced_pod_log.return_value = ""

        processor.process_line("0")
        processor.process_line("logs sidecar -p")

        kwargs = pods_listed.core_v1.read_namespaced_pod_log.call_args.kwargs
        assert kwargs["container"] == "sidecar"
        assert kwargs["previous"] is True

    def test_unknown_container(
        self,
        processor: CommandProcessor,
        pods_listed: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        processor.process_line("0")
        processor.process_line("logs nginx")

        assert "has no container nginx" in console_output.getvalue()
        pods_listed.core_v1.read_namespaced_pod_log.assert_not_called()

    def test_follow(
        self,
        processor: CommandProcessor,
        pods_listed: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        pods_listed.core_v1.read_namespaced_pod_log.return_value = _LogResponse(
            [b"line one\n", b"line two\n"]
        )

        processor.process_line("1")
        processor.process_line("logs -f")

        output = console_output.getvalue()
        assert "line one\nline two\n" in output
        assert pods_listed.core_v1.read_namespaced_pod_log.call_args.kwargs["namespace"] == "data"

    def test_follow_stops_on_interrupt(
        self,
        processor: CommandProcessor,
        session: SessionState,
        pods_listed: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        response = _QuietLogResponse()
        pods_listed.core_v1.read_namespaced_pod_log.return_value = response
        processor.process_line("0")
        timer = threading.Timer(0.3, session.interrupt.set)

        timer.start()
        try:
            processor.process_line("logs -f")
        finally:
            timer.cancel()

        output = console_output.getvalue()
        assert "first" in output
        assert "Log streaming stopped." in output
        assert response.closed.is_set()


@pytest.mark.unit
class TestAliasCommands:
    """Tests for alias management."""

    def test_define_and_show(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        processor.process_line("alias p pods -l app=web")
        processor.process_line("alias p")

        assert session.aliases.get("p").expanded == "pods -l app=web"
        assert "p = pods -l app=web" in console_output.getvalue()

    def test_list(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        session.add_alias("p", "pods")
        session.add_alias("n", "nodes")

        processor.process_line("aliases")

        output = console_output.getvalue()
        assert output.index("pods") < output.index("nodes")

    def test_list_empty(
        self, processor: CommandProcessor, console_output: io.StringIO
    ) -> None:
        processor.process_line("alias")

        assert "No aliases defined" in console_output.getvalue()

    def test_bracketed_expansion_is_literal(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        processor.process_line("alias x echo [/] [bold]")
        processor.process_line("aliases")

        assert session.aliases.get("x").expanded == "echo [/] [bold]"
        assert console_output.getvalue().count("echo [/] [bold]") == 2

    def test_invalid_name(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        processor.process_line('alias "two words" pods')

        assert "Error:" in console_output.getvalue()
        assert session.aliases.aliases == []

    def test_unalias(
        self, processor: CommandProcessor, session: SessionState, console_output: io.StringIO
    ) -> None:
        session.add_alias("p", "pods")

        processor.process_line("unalias p")
        processor.process_line("unalias p")

        assert session.aliases.aliases == []
        assert "Removed alias p" in console_output.getvalue()
        assert "No alias named p" in console_output.getvalue()

    def test_persisted(
        self, processor: CommandProcessor, store: Any
    ) -> None:
        processor.process_line("alias p pods")

        assert store.saved[-1]["aliases"] == [{"alias": "p", "expanded": "pods"}]


@pytest.mark.unit
class TestPortForwardCommands:
    """Tests for port forwarding."""

    def test_requires_pod(
        self, processor: CommandProcessor, console_output: io.StringIO, spawner: MagicMock
    ) -> None:
        processor.process_line("port-forward 8080:80")

        assert "No active pod" in console_output.getvalue()
        spawner.assert_not_called()

    def test_start(
        self,
        processor: CommandProcessor,
        session: SessionState,
        pods_listed: MagicMock,
        spawner: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        processor.process_line("0")
        processor.process_line("pf 8080:80 9090")

        argv = spawner.call_args.args[0]
        assert argv[:3] == ["kubectl", "--context", "dev"]
        assert argv[-4:] == ["port-forward", "web-0", "8080:80", "9090:9090"]
        assert "--namespace" in argv
        assert len(session.port_forwards) == 1
        assert "Forwarding port(s) 8080:80, 9090:9090 to pod web-0" in console_output.getvalue()

    def test_process_exits_immediately(
        self,
        processor: CommandProcessor,
        session: SessionState,
        pods_listed: MagicMock,
        spawner: MagicMock,
        process_factory: Any,
        console_output: io.StringIO,
    ) -> None:
        spawner.return_value = process_factory(
            output="error: unable to listen on port 8080\n", returncode=1
        )

        processor.process_line("0")
        processor.process_line("port-forward 8080:80")

        output = console_output.getvalue()
        assert "Port forward to web-0 exited" in output
        assert "unable to listen on port 8080" in output
        assert len(session.port_forwards) == 0

    def test_invalid_mapping(
        self,
        processor: CommandProcessor,
        pods_listed: MagicMock,
        spawner: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        processor.process_line("0")
        processor.process_line("port-forward http")

        assert "Invalid port mapping 'http'" in console_output.getvalue()
        spawner.assert_not_called()

    def test_kubectl_missing(
        self,
        processor: CommandProcessor,
        pods_listed: MagicMock,
        spawner: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        spawner.side_effect = FileNotFoundError("No such file or directory: 'kubectl'")

        processor.process_line("0")
        processor.process_line("port-forward 8080:80")

        assert "Could not run kubectl" in console_output.getvalue()

    def test_list_stop_and_output(
        self,
        processor: CommandProcessor,
        session: SessionState,
        pods_listed: MagicMock,
        spawner: MagicMock,
        console_output: io.StringIO,
    ) -> None:
        processor.process_line("0")
        processor.process_line("port-forward 8080:80")
        task = session.port_forwards.get(0)
        assert task is not None
        task.join_reader(timeout=1)

        processor.process_line("port-forwards")
        processor.process_line("pfs output 0")
        processor.process_line("pfs output 0")
        processor.process_line("pfs output 0 --all")
        processor.process_line("port-forwards stop 0")

        output = console_output.getvalue()
        assert "Running" in output
        assert output.count("Forwarding from 127.0.0.1:8080 -> 80") == 2
        assert "No new output" in output
        assert "Stopped port forward to web-0" in output
        assert task.process.killed is True
        assert len(session.port_forwards) == 0

    def test_stop_unknown_index(
        self, processor: CommandProcessor, console_output: io.StringIO
    ) -> None:
        processor.process_line("port-forwards stop 3")

        assert "No port forward at index 3" in console_output.getvalue()

    def test_list_empty(
        self, processor: CommandProcessor, console_output: io.StringIO
    ) -> None:
        processor.process_line("port-forwards list")

        assert "No active port forwards" in console_output.getvalue()

    def test_quit_and_close_stop_forwards(
        self,
        processor: CommandProcessor,
        session: SessionState,
        pods_listed: MagicMock,
    ) -> None:
        processor.process_line("0")
        processor.process_line("port-forward 8080:80")
        task = session.port_forwards.get(0)
        assert task is not None

        processor.process_line("quit")
        session.close()

        assert task.process.killed is True
        assert len(session.port_forwards) == 0
