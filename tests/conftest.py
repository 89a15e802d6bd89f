"""Shared pytest fixtures for kubeshell tests."""

from __future__ import annotations

import io
import os
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
import typer
from rich.console import Console
from typer.testing import CliRunner

from kubeshell.cli.main import app
from kubeshell.core.config.models import ConfigSaveError, ShellConfig, ShellConfigStore
from kubeshell.integrations.kubernetes.exceptions import KubernetesConnectionError
from kubeshell.session.interrupt import InterruptSignal
from kubeshell.session.state import SessionState


class FakeProcess:
    """Stand-in for ``subprocess.Popen`` used by port-forward tests."""

    _next_pid = 4000

    def __init__(self, output: str = "", returncode: int | None = None) -> None:
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.stdout = io.StringIO(output)
        self.returncode = returncode
        self.killed = False

    def poll(self) -> int | None:
        return self.returncode

    def kill(self) -> None:
        self.killed = True
        if self.returncode is None:
            self.returncode = -9

    def wait(self, timeout: float | None = None) -> int | None:
        return self.returncode


def make_pod(
    name: str | None,
    namespace: str | None = "default",
    containers: tuple[str, ...] = ("app",),
) -> Any:
    """Build a pod the way the kubernetes client returns it."""
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace=namespace, creation_timestamp=None),
        spec=SimpleNamespace(containers=[SimpleNamespace(name=c) for c in containers]),
        status=SimpleNamespace(phase="Running", container_statuses=[]),
    )


def make_node(name: str | None) -> Any:
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace=None, creation_timestamp=None),
        status=SimpleNamespace(conditions=[], node_info=None),
    )


class RecordingStore(ShellConfigStore):
    """Config store that keeps saved configs in memory."""

    def __init__(self, fail: bool = False) -> None:
        super().__init__(Path("/nonexistent/kubeshell.config"))
        self.saved: list[dict[str, Any]] = []
        self.fail = fail

    def save(self, config: ShellConfig) -> None:
        if self.fail:
            raise ConfigSaveError(self.path, OSError("read-only file system"))
        self.saved.append(config.model_dump())


def make_cluster(name: str) -> MagicMock:
    cluster = MagicMock()
    cluster.name = name
    cluster.timeout = 30
    cluster.make_retry_decorator.return_value = lambda f: f
    return cluster


class FakeResolver:
    """Resolves a fixed set of context names to mock clients."""

    def __init__(self, *names: str) -> None:
        self.clusters = {name: make_cluster(name) for name in names}
        self.calls: list[str] = []

    def __call__(self, name: str) -> MagicMock:
        self.calls.append(name)
        if name not in self.clusters:
            raise KubernetesConnectionError(f"Couldn't find/load context {name}")
        return self.clusters[name]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("KUBESHELL_") or key == "KUBECONFIG":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def console_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(console_output: io.StringIO) -> Console:
    """A console that records to ``console_output`` without styling."""
    return Console(file=console_output, width=200, color_system=None, force_terminal=False)


@pytest.fixture
def interrupt() -> InterruptSignal:
    return InterruptSignal()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver("dev", "prod")


@pytest.fixture
def session(
    store: RecordingStore,
    resolver: FakeResolver,
    interrupt: InterruptSignal,
    console: Console,
) -> SessionState:
    """A session with no active cluster and default settings."""
    return SessionState(ShellConfig(), store, resolver, interrupt=interrupt, console=console)


@pytest.fixture
def failing_store() -> RecordingStore:
    return RecordingStore(fail=True)


@pytest.fixture
def pod_factory() -> Callable[..., Any]:
    return make_pod


@pytest.fixture
def node_factory() -> Callable[..., Any]:
    return make_node


@pytest.fixture
def process_factory() -> type[FakeProcess]:
    return FakeProcess


@pytest.fixture
def cluster_factory() -> Callable[[str], MagicMock]:
    return make_cluster
