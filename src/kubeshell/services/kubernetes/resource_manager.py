"""Listing of the resource kinds the shell can select from."""

from __future__ import annotations

from typing import Any, NamedTuple

from kubeshell.services.kubernetes.base import K8sBaseManager
from kubeshell.session.kinds import ResourceKind, exhaustive
from kubeshell.session.selection import ResourceList


class _ListCall(NamedTuple):
    api: str
    namespaced: str
    all_namespaces: str | None


# API group and list methods per kind. Nodes are cluster-scoped.
_LIST_CALLS = exhaustive(
    {
        ResourceKind.POD: _ListCall(
            "core_v1", "list_namespaced_pod", "list_pod_for_all_namespaces"
        ),
        ResourceKind.NODE: _ListCall("core_v1", "list_node", None),
        ResourceKind.DEPLOYMENT: _ListCall(
            "apps_v1", "list_namespaced_deployment", "list_deployment_for_all_namespaces"
        ),
        ResourceKind.SERVICE: _ListCall(
            "core_v1", "list_namespaced_service", "list_service_for_all_namespaces"
        ),
        ResourceKind.REPLICASET: _ListCall(
            "apps_v1", "list_namespaced_replica_set", "list_replica_set_for_all_namespaces"
        ),
        ResourceKind.STATEFULSET: _ListCall(
            "apps_v1", "list_namespaced_stateful_set", "list_stateful_set_for_all_namespaces"
        ),
        ResourceKind.CONFIGMAP: _ListCall(
            "core_v1", "list_namespaced_config_map", "list_config_map_for_all_namespaces"
        ),
        ResourceKind.SECRET: _ListCall(
            "core_v1", "list_namespaced_secret", "list_secret_for_all_namespaces"
        ),
        ResourceKind.JOB: _ListCall(
            "batch_v1", "list_namespaced_job", "list_job_for_all_namespaces"
        ),
    },
    "_LIST_CALLS",
)


class ResourceManager(K8sBaseManager):
    """Fetches resource lists for the selection model."""

    _entity_name = "resource"

    def list_resources(
        self,
        kind: ResourceKind,
        namespace: str | None = None,
        *,
        label_selector: str | None = None,
    ) -> ResourceList:
        """List objects of ``kind``.

        Args:
            kind: Resource kind to list.
            namespace: Namespace to list in; None lists all namespaces.
                Ignored for cluster-scoped kinds.
            label_selector: Filter by label selector (e.g., 'app=nginx').

        Returns:
            The fetched list. Items of structured kinds are converted to
            JSON-style dictionaries; others stay API model objects.
        """
        call = _LIST_CALLS[kind]
        api = getattr(self._client, call.api)

        kwargs: dict[str, Any] = {"_request_timeout": self._client.timeout}
        if label_selector:
            kwargs["label_selector"] = label_selector

        if call.all_namespaces is None:
            namespace = None
            method = getattr(api, call.namespaced)
        elif namespace is None:
            method = getattr(api, call.all_namespaces)
        else:
            method = getattr(api, call.namespaced)
            kwargs["namespace"] = namespace

        self._log.debug("listing_resources", kind=kind.value, namespace=namespace)
        result = self._call(lambda: method(**kwargs), kind.value, None, namespace)

        items = list(result.items or [])
        if kind.structured:
            items = [self._client.to_dict(item) for item in items]

        self._log.debug("listed_resources", kind=kind.value, count=len(items))
        return ResourceList(kind=kind, items=tuple(items), namespace=namespace)
