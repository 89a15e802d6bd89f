"""Streaming operations: pod logs and port-forward processes.

Log follow mode is cut short by the session's interrupt flag. Port forwards
run ``kubectl port-forward`` as a supervised child process.
"""

from __future__ import annotations

import queue
import re
import threading
from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Any

from kubeshell.services.kubernetes.base import K8sBaseManager
from kubeshell.session.interrupt import POLL_INTERVAL
from kubeshell.session.port_forward import (
    PortForwardTask,
    ProcessSpawner,
    spawn_process,
    start_port_forward,
)

if TYPE_CHECKING:
    from kubeshell.integrations.kubernetes.client import KubernetesClient
    from kubeshell.integrations.kubernetes.config import KubernetesConfig
    from kubeshell.session.interrupt import InterruptSignal

# Port mapping: "8080:80", "80" or ":80" (random local port)
_PORT_MAPPING_RE = re.compile(r"^(\d*)(?::(\d+))?$")

KUBECTL = "kubectl"

_END_OF_STREAM = object()


def parse_port_mapping(mapping: str) -> str:
    """Validate a ``local[:remote]`` port mapping.

    Returns:
        The mapping, normalised to ``local:remote`` form (``:remote`` when
        the local port is left for kubectl to pick).

    Raises:
        ValueError: If the mapping is malformed or a port is out of range.
    """
    match = _PORT_MAPPING_RE.match(mapping.strip())
    if not match or (not match.group(1) and not match.group(2)):
        raise ValueError(f"Invalid port mapping '{mapping}'. Use 'local:remote' or 'port'.")

    local, remote = match.group(1), match.group(2)
    if remote is None:
        remote = local
    for port in (local, remote):
        if port and not 0 < int(port) < 65536:
            raise ValueError(f"Port out of range in '{mapping}'")
    return f"{local}:{remote}"


def _pump(response: Iterable[Any], lines: queue.Queue[Any]) -> None:
    """Move raw log chunks from ``response`` onto ``lines``, then an end marker.

    A read error is put on the queue in place of the end marker.
    """
    try:
        for chunk in response:
            lines.put(chunk)
    except Exception as e:
        lines.put(e)
    else:
        lines.put(_END_OF_STREAM)


def _decode_line(chunk: Any) -> str:
    if isinstance(chunk, bytes):
        return chunk.decode("utf-8", errors="replace")
    return str(chunk)


def _close_response(response: Any) -> None:
    """Close a streaming response so a blocked reader thread wakes up."""
    for name in ("close", "release_conn"):
        method = getattr(response, name, None)
        if callable(method):
            method()


class StreamingManager(K8sBaseManager):
    """Manager for streaming operations on pods."""

    _entity_name = "streaming"

    def __init__(
        self,
        client: KubernetesClient,
        *,
        kube_config: KubernetesConfig | None = None,
        spawner: ProcessSpawner = spawn_process,
    ) -> None:
        super().__init__(client)
        self._kube_config = kube_config
        self._spawner = spawner

    # =========================================================================
    # Log Streaming
    # =========================================================================

    def stream_logs(
        self,
        pod_name: str,
        namespace: str,
        *,
        container: str | None = None,
        follow: bool = False,
        tail_lines: int | None = None,
        previous: bool = False,
        interrupt: InterruptSignal | None = None,
    ) -> str | Iterator[str]:
        """Get or stream logs from a pod.

        Args:
            pod_name: Pod name.
            namespace: Pod namespace.
            container: Specific container name.
            follow: Stream logs as they are written.
            tail_lines: Number of lines from the end.
            previous: Logs from the previous container instance.
            interrupt: Flag that stops follow mode when set.

        Returns:
            Log content (static) or an iterator of lines (follow).
        """
        self._log.debug(
            "streaming_logs",
            pod=pod_name,
            namespace=namespace,
            follow=follow,
            container=container,
        )

        kwargs: dict[str, Any] = {"name": pod_name, "namespace": namespace}
        if container:
            kwargs["container"] = container
        if tail_lines is not None:
            kwargs["tail_lines"] = tail_lines
        if previous:
            kwargs["previous"] = previous

        if follow:
            return self._follow_logs(kwargs, interrupt)

        logs: str = self._call(
            lambda: self._client.core_v1.read_namespaced_pod_log(**kwargs),
            "Pod",
            pod_name,
            namespace,
        )
        return logs

    def _follow_logs(
        self, kwargs: dict[str, Any], interrupt: InterruptSignal | None
    ) -> Iterator[str]:
        kwargs = {**kwargs, "follow": True, "_preload_content": False}
        pod_name, namespace = kwargs["name"], kwargs["namespace"]
        response = self._call(
            lambda: self._client.core_v1.read_namespaced_pod_log(**kwargs),
            "Pod",
            pod_name,
            namespace,
        )

        # Reads block while the pod is quiet; the flag is polled between waits
        lines: queue.Queue[Any] = queue.Queue()
        reader = threading.Thread(
            target=_pump,
            args=(response, lines),
            name=f"logs-{pod_name}",
            daemon=True,
        )
        reader.start()
        try:
            while interrupt is None or not interrupt.is_set():
                try:
                    item = lines.get(timeout=POLL_INTERVAL)
                except queue.Empty:
                    continue
                if item is _END_OF_STREAM:
                    return
                if isinstance(item, Exception):
                    self._handle_api_error(item, "Pod", pod_name, namespace)
                if interrupt is not None and interrupt.is_set():
                    break
                yield _decode_line(item)
            self._log.debug("log_follow_interrupted", pod=pod_name, namespace=namespace)
        finally:
            _close_response(response)

    # =========================================================================
    # Port Forward
    # =========================================================================

    def port_forward_argv(
        self, pod_name: str, namespace: str | None, ports: Sequence[str]
    ) -> list[str]:
        """Build the ``kubectl port-forward`` command line."""
        argv = [KUBECTL, "--context", self._client.name]
        if self._kube_config is not None and len(self._kube_config.kubeconfig_paths) == 1:
            argv += ["--kubeconfig", self._kube_config.kubeconfig_paths[0]]
        if namespace:
            argv += ["--namespace", namespace]
        argv += ["port-forward", pod_name, *ports]
        return argv

    def port_forward(
        self, pod_name: str, namespace: str | None, ports: Sequence[str]
    ) -> PortForwardTask:
        """Start forwarding ``ports`` (``local:remote`` pairs) to a pod.

        Raises:
            PortForwardError: If kubectl cannot be started.
        """
        argv = self.port_forward_argv(pod_name, namespace, ports)
        self._log.debug("port_forward", pod=pod_name, namespace=namespace, ports=list(ports))
        return start_port_forward(argv, pod_name, ports, spawner=self._spawner)
