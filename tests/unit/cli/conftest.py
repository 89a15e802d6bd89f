"""Fixtures for shell command tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import yaml

from kubeshell.cli.commands import ShellContext
from kubeshell.cli.repl import CommandProcessor
from kubeshell.integrations.kubernetes.client import KubernetesClient
from kubeshell.integrations.kubernetes.config import KubernetesConfig
from kubeshell.session.state import SessionState


def _write_kubeconfig(path: Path) -> None:
    cluster = {"server": "https://127.0.0.1:6443"}
    path.write_text(
        yaml.safe_dump(
            {
                "apiVersion": "v1",
                "kind": "Config",
                "clusters": [{"name": "c-dev", "cluster": cluster}],
                "users": [{"name": "u", "user": {"token": "t"}}],
                "contexts": [
                    {"name": "dev", "context": {"cluster": "c-dev", "user": "u"}},
                    {"name": "prod", "context": {"cluster": "c-dev", "user": "u"}},
                ],
                "current-context": "dev",
            }
        )
    )


@pytest.fixture
def kube_config(tmp_path: Path) -> KubernetesConfig:
    path = tmp_path / "config"
    _write_kubeconfig(path)
    return KubernetesConfig(kubeconfig_paths=[str(path)])


@pytest.fixture
def spawner(process_factory: Any) -> MagicMock:
    """Process spawner returning a running fake kubectl."""
    return MagicMock(
        return_value=process_factory(output="Forwarding from 127.0.0.1:8080 -> 80\n")
    )


@pytest.fixture
def processor(
    session: SessionState, kube_config: KubernetesConfig, spawner: MagicMock
) -> CommandProcessor:
    shell = ShellContext(session=session, kube_config=kube_config, spawner=spawner)
    return CommandProcessor(shell)


@pytest.fixture
def connected(session: SessionState) -> MagicMock:
    """Switch the session to ``dev`` and return its mock cluster."""
    session.switch_cluster("dev")
    cluster = session.cluster
    assert cluster is not None
    cluster.translate_api_exception = KubernetesClient.translate_api_exception
    return cluster


@pytest.fixture
def pods_listed(
    processor: CommandProcessor, connected: MagicMock, pod_factory: Any
) -> MagicMock:
    """Run ``pods`` against a cluster with two pods."""
    connected.core_v1.list_pod_for_all_namespaces.return_value = MagicMock(
        items=[
            pod_factory("web-0", "default", ("app", "sidecar")),
            pod_factory("db-0", "data"),
        ]
    )
    processor.process_line("pods")
    return connected
