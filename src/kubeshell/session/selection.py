"""Selection model: the last fetched list and the current object.

A list command records a ``ResourceList``; a numeric selection command then
picks one of its items and snapshots that item's identity into a
``SelectedObject``. Only one list is remembered at a time.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from kubeshell.session.kinds import ResourceKind, exhaustive

logger = structlog.get_logger()


@dataclass(frozen=True)
class ResourceList:
    """The ordered items of the most recent list fetch for one kind.

    ``namespace`` is the namespace the list was fetched from; None for
    all-namespace and cluster-scoped listings.
    """

    kind: ResourceKind
    items: tuple[Any, ...] = ()
    namespace: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class SelectedObject:
    """Identity of the object follow-up commands act on.

    ``kind`` is None for the empty selection. ``namespace`` is None for the
    empty selection and for cluster-scoped kinds.
    """

    kind: ResourceKind | None = None
    name: str | None = None
    namespace: str | None = None
    containers: tuple[str, ...] = field(default=())

    @property
    def is_empty(self) -> bool:
        return self.kind is None

    @property
    def label(self) -> str:
        """Name shown in the prompt."""
        return self.name if self.name is not None else "none"


EMPTY_SELECTION = SelectedObject()


def _safe_get(obj: Any, *attrs: str, default: Any = None) -> Any:
    """Safely traverse nested attributes on kubernetes SDK objects."""
    current = obj
    for attr in attrs:
        if current is None:
            return default
        current = getattr(current, attr, None)
    return current if current is not None else default


def value_at(document: Any, path: str) -> Any:
    """Look up a ``/``-separated path in a JSON-style document.

    Sequence segments are integer indexes. Returns None when any segment is
    missing.

    Example:
        >>> value_at({"metadata": {"name": "web"}}, "/metadata/name")
        'web'
    """
    current = document
    for segment in path.strip("/").split("/"):
        if isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(current, Sequence) and not isinstance(current, str):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return None
        else:
            return None
        if current is None:
            return None
    return current


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _object_identity(item: Any) -> tuple[str | None, str | None]:
    return (
        _str_or_none(_safe_get(item, "metadata", "name")),
        _str_or_none(_safe_get(item, "metadata", "namespace")),
    )


def _document_identity(item: Any) -> tuple[str | None, str | None]:
    return (
        _str_or_none(value_at(item, "/metadata/name")),
        _str_or_none(value_at(item, "/metadata/namespace")),
    )


def _pod_containers(item: Any) -> tuple[str, ...]:
    specs = _safe_get(item, "spec", "containers", default=[])
    return tuple(name for spec in specs if (name := getattr(spec, "name", None)) is not None)


def _no_containers(item: Any) -> tuple[str, ...]:
    return ()


# How each kind reads (name, namespace) from a list item
_IDENTITY_READERS: dict[ResourceKind, Callable[[Any], tuple[str | None, str | None]]] = exhaustive(
    {
        ResourceKind.POD: _object_identity,
        ResourceKind.NODE: _object_identity,
        ResourceKind.DEPLOYMENT: _object_identity,
        ResourceKind.SERVICE: _object_identity,
        ResourceKind.REPLICASET: _document_identity,
        ResourceKind.STATEFULSET: _document_identity,
        ResourceKind.CONFIGMAP: _document_identity,
        ResourceKind.SECRET: _document_identity,
        ResourceKind.JOB: _document_identity,
    },
    "_IDENTITY_READERS",
)

_CONTAINER_READERS: dict[ResourceKind, Callable[[Any], tuple[str, ...]]] = exhaustive(
    {
        ResourceKind.POD: _pod_containers,
        ResourceKind.NODE: _no_containers,
        ResourceKind.DEPLOYMENT: _no_containers,
        ResourceKind.SERVICE: _no_containers,
        ResourceKind.REPLICASET: _no_containers,
        ResourceKind.STATEFULSET: _no_containers,
        ResourceKind.CONFIGMAP: _no_containers,
        ResourceKind.SECRET: _no_containers,
        ResourceKind.JOB: _no_containers,
    },
    "_CONTAINER_READERS",
)


class ResourceSelector:
    """Tracks the last fetched list and the object selected from it."""

    def __init__(self) -> None:
        self._list: ResourceList | None = None
        self._selected: SelectedObject = EMPTY_SELECTION

    @property
    def resource_list(self) -> ResourceList | None:
        return self._list

    @property
    def selected(self) -> SelectedObject:
        return self._selected

    def record_list(self, resource_list: ResourceList) -> None:
        """Replace the remembered list, whatever kind it held before."""
        self._list = resource_list
        logger.debug("recorded_list", kind=resource_list.kind.value, count=len(resource_list))

    def select_by_index(self, index: int) -> str | None:
        """Select item ``index`` of the remembered list.

        An index outside the list clears the selection; that is not an error.

        Args:
            index: Zero-based position in the last fetched list.

        Returns:
            A message for the user when nothing could be selected from an
            existing item, otherwise None.
        """
        if self._list is None:
            return "No active object list"

        kind = self._list.kind
        if not 0 <= index < len(self._list.items):
            self._selected = EMPTY_SELECTION
            return None

        item = self._list.items[index]
        name, namespace = _IDENTITY_READERS[kind](item)
        if namespace is None:
            namespace = self._list.namespace
        if name is None:
            self._selected = EMPTY_SELECTION
            return f"{kind.value} has no name in metadata"

        self._selected = SelectedObject(
            kind=kind,
            name=name,
            namespace=namespace if kind.namespaced else None,
            containers=_CONTAINER_READERS[kind](item),
        )
        logger.debug("selected_object", kind=kind.value, name=name, namespace=namespace)
        return None

    def clear(self) -> None:
        """Drop the current selection."""
        self._selected = EMPTY_SELECTION

    def current_pod_name(self) -> str | None:
        """Name of the selected object if it is a pod."""
        if self._selected.kind is ResourceKind.POD:
            return self._selected.name
        return None
