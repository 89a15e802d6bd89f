"""Numbered tables for fetched resource lists."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from rich.text import Text

from kubeshell.cli.output.table import Table
from kubeshell.session.kinds import ResourceKind, exhaustive
from kubeshell.session.selection import ResourceList, _safe_get, value_at

Column = tuple[str, Callable[[Any], str]]


def format_age(timestamp: Any) -> str:
    """Human-readable age of a creation timestamp (datetime or ISO string)."""
    if timestamp is None:
        return "Unknown"
    try:
        if isinstance(timestamp, datetime):
            created = timestamp
        else:
            created = datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
        if created.tzinfo is None:
            created = created.replace(tzinfo=UTC)
        delta = datetime.now(UTC) - created
    except (ValueError, TypeError):
        return "Unknown"

    days = delta.days
    hours, remainder = divmod(delta.seconds, 3600)
    minutes = remainder // 60
    if days > 0:
        return f"{days}d"
    if hours > 0:
        return f"{hours}h"
    return f"{minutes}m"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _ratio(ready: Any, total: Any) -> str:
    return f"{ready or 0}/{total or 0}"


def _node_status(node: Any) -> str:
    conditions = _safe_get(node, "status", "conditions", default=[])
    for condition in conditions:
        if getattr(condition, "type", None) == "Ready":
            return "Ready" if getattr(condition, "status", None) == "True" else "NotReady"
    return "Unknown"


def _pod_restarts(pod: Any) -> str:
    statuses = _safe_get(pod, "status", "container_statuses", default=[])
    return str(sum(getattr(s, "restart_count", 0) or 0 for s in statuses))


def _object_name(item: Any) -> str:
    return _text(_safe_get(item, "metadata", "name"))


def _object_namespace(item: Any) -> str:
    return _text(_safe_get(item, "metadata", "namespace"))


def _object_age(item: Any) -> str:
    return format_age(_safe_get(item, "metadata", "creation_timestamp"))


def _document_name(item: Any) -> str:
    return _text(value_at(item, "/metadata/name"))


def _document_namespace(item: Any) -> str:
    return _text(value_at(item, "/metadata/namespace"))


def _document_age(item: Any) -> str:
    return format_age(value_at(item, "/metadata/creationTimestamp"))


_STATUS_COLUMNS: dict[ResourceKind, list[Column]] = exhaustive(
    {
        ResourceKind.POD: [
            ("Phase", lambda p: _text(_safe_get(p, "status", "phase"))),
            ("Restarts", _pod_restarts),
        ],
        ResourceKind.NODE: [
            ("State", _node_status),
            ("Version", lambda n: _text(_safe_get(n, "status", "node_info", "kubelet_version"))),
        ],
        ResourceKind.DEPLOYMENT: [
            (
                "Ready",
                lambda d: _ratio(
                    _safe_get(d, "status", "ready_replicas"), _safe_get(d, "spec", "replicas")
                ),
            ),
        ],
        ResourceKind.SERVICE: [
            ("Type", lambda s: _text(_safe_get(s, "spec", "type"))),
            ("Cluster IP", lambda s: _text(_safe_get(s, "spec", "cluster_ip"))),
        ],
        ResourceKind.REPLICASET: [
            (
                "Ready",
                lambda r: _ratio(value_at(r, "/status/readyReplicas"), value_at(r, "/spec/replicas")),
            ),
        ],
        ResourceKind.STATEFULSET: [
            (
                "Ready",
                lambda s: _ratio(value_at(s, "/status/readyReplicas"), value_at(s, "/spec/replicas")),
            ),
        ],
        ResourceKind.CONFIGMAP: [
            ("Data", lambda c: str(len(value_at(c, "/data") or {}))),
        ],
        ResourceKind.SECRET: [
            ("Type", lambda s: _text(value_at(s, "/type"))),
            ("Data", lambda s: str(len(value_at(s, "/data") or {}))),
        ],
        ResourceKind.JOB: [
            (
                "Completions",
                lambda j: _ratio(value_at(j, "/status/succeeded"), value_at(j, "/spec/completions")),
            ),
        ],
    },
    "_STATUS_COLUMNS",
)


def build_resource_table(resource_list: ResourceList, *, show_namespace: bool = False) -> Table:
    """Render a fetched list as a numbered table.

    Args:
        resource_list: The list to render.
        show_namespace: Add a namespace column (for all-namespace listings).
    """
    kind = resource_list.kind
    if kind.structured:
        name, namespace, age = _document_name, _document_namespace, _document_age
    else:
        name, namespace, age = _object_name, _object_namespace, _object_age

    columns: list[Column] = [("Name", name)]
    if show_namespace and kind.namespaced:
        columns.append(("Namespace", namespace))
    columns.extend(_STATUS_COLUMNS[kind])
    columns.append(("Age", age))

    table = Table()
    table.add_index_column()
    for header, _ in columns:
        table.add_column(header)
    for index, item in enumerate(resource_list.items):
        table.add_row(str(index), *(Text(extract(item)) for _, extract in columns))
    return table
