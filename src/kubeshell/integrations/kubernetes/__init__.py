"""Kubernetes integration - API client and configuration models."""

from kubeshell.integrations.kubernetes.client import KubernetesClient, list_contexts
from kubeshell.integrations.kubernetes.config import KubernetesConfig
from kubeshell.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
)

__all__ = [
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConfig",
    "KubernetesConnectionError",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesTimeoutError",
    "list_contexts",
]
