"""Kubernetes API client wrapper.

One ``KubernetesClient`` is bound to exactly one kubeconfig context. Switching
clusters in the shell means resolving a new client, never mutating the
global kubernetes configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
import yaml
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kubeshell.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
)

if TYPE_CHECKING:
    from kubernetes.client import (
        ApiClient,
        AppsV1Api,
        BatchV1Api,
        CoreV1Api,
        VersionApi,
    )

    from kubeshell.integrations.kubernetes.config import KubernetesConfig

logger = structlog.get_logger()


class KubernetesClient:
    """API access for a single kubeconfig context.

    Provides:
    - Lazy API group initialization bound to a per-context ``ApiClient``
    - Automatic retry with tenacity for transient connection errors
    - Consistent error translation to custom exceptions
    - Context manager support

    Example:
        ```python
        config = KubernetesConfig.from_env()
        with KubernetesClient.from_context(config, "minikube") as client:
            pods = client.core_v1.list_namespaced_pod("default")
        ```
    """

    def __init__(self, name: str, api_client: ApiClient, config: KubernetesConfig) -> None:
        """Initialize the client.

        Args:
            name: The kubeconfig context this client talks to.
            api_client: Configured API client for that context.
            config: Connection settings (timeouts, retries).
        """
        self._name = name
        self._api_client = api_client
        self._config = config
        self._retries = config.retry_attempts

        self._core_v1: CoreV1Api | None = None
        self._apps_v1: AppsV1Api | None = None
        self._batch_v1: BatchV1Api | None = None
        self._version_api: VersionApi | None = None

    @classmethod
    def from_context(cls, config: KubernetesConfig, context: str) -> KubernetesClient:
        """Resolve a kubeconfig context into a client.

        Args:
            config: Connection settings naming the kubeconfig files.
            context: Context name to load.

        Returns:
            A client bound to the context.

        Raises:
            KubernetesConnectionError: If the context cannot be loaded.
        """
        from kubernetes import config as kube_config
        from kubernetes.config import ConfigException

        try:
            api_client = kube_config.new_client_from_config(
                config_file=config.kubeconfig,
                context=context,
            )
        except (ConfigException, OSError, ValueError, yaml.YAMLError) as e:
            raise KubernetesConnectionError(
                message=f"Couldn't find/load context {context}",
                original_error=e,
            ) from e

        logger.info("loaded_context", context=context, kubeconfig=config.kubeconfig)
        return cls(context, api_client, config)

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance (pods, nodes, services, secrets, configmaps)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api(self._api_client)
        return self._core_v1

    @property
    def apps_v1(self) -> AppsV1Api:
        """Get AppsV1Api instance (deployments, statefulsets, replicasets)."""
        if self._apps_v1 is None:
            from kubernetes.client import AppsV1Api

            self._apps_v1 = AppsV1Api(self._api_client)
        return self._apps_v1

    @property
    def batch_v1(self) -> BatchV1Api:
        """Get BatchV1Api instance (jobs)."""
        if self._batch_v1 is None:
            from kubernetes.client import BatchV1Api

            self._batch_v1 = BatchV1Api(self._api_client)
        return self._batch_v1

    @property
    def version_api(self) -> VersionApi:
        """Get VersionApi instance for cluster version info."""
        if self._version_api is None:
            from kubernetes.client import VersionApi

            self._version_api = VersionApi(self._api_client)
        return self._version_api

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert an API model object to its JSON (camelCase) dictionary."""
        result: dict[str, Any] = self._api_client.sanitize_for_serialization(obj)
        return result

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException to a custom exception.

        Args:
            e: The original exception.
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException
        from urllib3.exceptions import HTTPError
        from urllib3.exceptions import TimeoutError as Urllib3TimeoutError

        if isinstance(e, KubernetesError):
            return e

        if isinstance(e, Urllib3TimeoutError):
            return KubernetesTimeoutError(message=f"Request timed out: {e}")

        if isinstance(e, HTTPError):
            return KubernetesConnectionError(
                message="Cannot reach the Kubernetes API server",
                original_error=e,
            )

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Retry Decorator
    # =========================================================================

    def make_retry_decorator(self) -> Any:
        """Create a retry decorator for transient connection errors.

        Returns:
            A tenacity retry decorator configured with exponential backoff.
        """
        return retry(
            retry=retry_if_exception_type(KubernetesConnectionError),
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    # =========================================================================
    # Cluster Info
    # =========================================================================

    def get_cluster_version(self) -> str:
        """Get the Kubernetes cluster version string.

        Raises:
            KubernetesConnectionError: If the cluster is unreachable.
        """
        try:
            version_info = self.version_api.get_code()
            return f"v{version_info.major}.{version_info.minor}"
        except Exception as e:
            raise KubernetesConnectionError(
                message="Failed to get cluster version",
                original_error=e,
            ) from e

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        """The context name this client is bound to."""
        return self._name

    @property
    def timeout(self) -> int:
        """Per-request timeout in seconds."""
        return self._config.timeout

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release its connection pool."""
        self._core_v1 = None
        self._apps_v1 = None
        self._batch_v1 = None
        self._version_api = None
        self._api_client.close()
        logger.debug("kubernetes_client_closed", context=self._name)

    def __enter__(self) -> KubernetesClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()


def list_contexts(config: KubernetesConfig) -> list[dict[str, Any]]:
    """List all contexts defined in the configured kubeconfig files.

    Returns:
        Context dictionaries with 'name', 'cluster', 'namespace' and 'active'
        keys, sorted by name. Empty when the kubeconfig cannot be read.
    """
    from kubernetes import config as kube_config
    from kubernetes.config import ConfigException

    try:
        contexts, active = kube_config.list_kube_config_contexts(config_file=config.kubeconfig)
    except (ConfigException, OSError, ValueError, yaml.YAMLError):
        return []

    result = []
    for ctx in contexts:
        ctx_info = ctx.get("context", {})
        result.append(
            {
                "name": ctx.get("name", ""),
                "cluster": ctx_info.get("cluster", ""),
                "namespace": ctx_info.get("namespace"),
                "active": ctx.get("name") == active.get("name") if active else False,
            }
        )
    return sorted(result, key=lambda c: c["name"])
