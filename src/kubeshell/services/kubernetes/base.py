"""Base manager for Kubernetes service managers.

Provides shared infrastructure for the managers: client access, structured
logging and error translation.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, NoReturn, TypeVar

import structlog

if TYPE_CHECKING:
    from kubeshell.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()

T = TypeVar("T")


class K8sBaseManager:
    """Base class for Kubernetes service managers.

    Subclasses set ``_entity_name`` for structured log context.

    Example:
        >>> class ResourceManager(K8sBaseManager):
        ...     _entity_name = "resource"
    """

    _entity_name: str = ""

    def __init__(self, client: KubernetesClient) -> None:
        """Initialize the manager.

        Args:
            client: Kubernetes API client for the active context.
        """
        self._client = client
        self._log = logger.bind(entity=self._entity_name, context=client.name)

    def _handle_api_error(
        self,
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> NoReturn:
        """Translate a Kubernetes API exception and re-raise.

        Raises:
            KubernetesError: Always raises an appropriate subclass.
        """
        error = self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )
        if error is e:
            raise error
        raise error from e

    def _call(
        self,
        func: Callable[[], T],
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> T:
        """Call ``func``, translating errors and retrying connection failures."""

        @self._client.make_retry_decorator()
        def _attempt() -> T:
            try:
                return func()
            except Exception as e:
                self._handle_api_error(e, resource_type, resource_name, namespace)

        result: T = _attempt()
        return result
