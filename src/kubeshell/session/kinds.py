"""Resource kind definitions for the shell's selection model.

The set of kinds is closed: every per-kind table below must cover all of
``ResourceKind`` and this is checked when the module is imported.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

V = TypeVar("V")


class ResourceKind(Enum):
    """Kubernetes resource kinds that can be listed and selected."""

    POD = "Pod"
    NODE = "Node"
    DEPLOYMENT = "Deployment"
    SERVICE = "Service"
    REPLICASET = "ReplicaSet"
    STATEFULSET = "StatefulSet"
    CONFIGMAP = "ConfigMap"
    SECRET = "Secret"
    JOB = "Job"

    @property
    def namespaced(self) -> bool:
        """Whether objects of this kind live in a namespace."""
        return self not in CLUSTER_SCOPED_KINDS

    @property
    def structured(self) -> bool:
        """Whether list items are raw JSON-style documents rather than API objects."""
        return self in STRUCTURED_KINDS


def exhaustive(table: dict[ResourceKind, V], name: str) -> dict[ResourceKind, V]:
    """Return ``table`` after checking it has an entry for every kind.

    Raises:
        RuntimeError: If a kind is missing.
    """
    missing = [kind.value for kind in ResourceKind if kind not in table]
    if missing:
        raise RuntimeError(f"{name} is missing entries for: {', '.join(missing)}")
    return table


# Kinds that are cluster-scoped (not namespaced)
CLUSTER_SCOPED_KINDS = frozenset({ResourceKind.NODE})

# Kinds whose items are kept as sanitized dicts and read by path lookup
STRUCTURED_KINDS = frozenset(
    {
        ResourceKind.REPLICASET,
        ResourceKind.STATEFULSET,
        ResourceKind.CONFIGMAP,
        ResourceKind.SECRET,
        ResourceKind.JOB,
    }
)

# prompt_toolkit style for the selected object's name in the prompt
PROMPT_STYLES = exhaustive(
    {
        ResourceKind.POD: "ansiyellow bold",
        ResourceKind.NODE: "ansiblue bold",
        ResourceKind.DEPLOYMENT: "ansimagenta bold",
        ResourceKind.SERVICE: "ansicyan bold",
        ResourceKind.REPLICASET: "ansigreen bold",
        ResourceKind.STATEFULSET: "ansigreen bold",
        ResourceKind.CONFIGMAP: "ansiblack bold",
        ResourceKind.SECRET: "ansired bold",
        ResourceKind.JOB: "ansimagenta bold",
    },
    "PROMPT_STYLES",
)

# Words accepted on the command line for each kind
KIND_ALIASES = exhaustive(
    {
        ResourceKind.POD: ("pods", "pod", "po"),
        ResourceKind.NODE: ("nodes", "node", "no"),
        ResourceKind.DEPLOYMENT: ("deployments", "deployment", "deploy"),
        ResourceKind.SERVICE: ("services", "service", "svc"),
        ResourceKind.REPLICASET: ("replicasets", "replicaset", "rs"),
        ResourceKind.STATEFULSET: ("statefulsets", "statefulset", "sts"),
        ResourceKind.CONFIGMAP: ("configmaps", "configmap", "cm"),
        ResourceKind.SECRET: ("secrets", "secret"),
        ResourceKind.JOB: ("jobs", "job"),
    },
    "KIND_ALIASES",
)
