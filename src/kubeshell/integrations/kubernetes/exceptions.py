"""Errors raised when talking to a cluster.

Each error carries an optional ``hint`` the shell prints under the message.
"""

from __future__ import annotations

from typing import ClassVar


class KubernetesError(Exception):
    """Base error for cluster operations.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status from the API server, if there was a response.
        resource_type: Kind involved (e.g., "Pod").
        resource_name: Name of the object involved.
        namespace: Namespace of the object involved.
    """

    hint: ClassVar[str | None] = None

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace

    @property
    def location(self) -> str | None:
        """``Kind/name in namespace`` when the object is known."""
        if not (self.resource_type and self.resource_name):
            return None
        where = f"{self.resource_type}/{self.resource_name}"
        return f"{where} in {self.namespace}" if self.namespace else where

    def __str__(self) -> str:
        text = self.message
        if self.status_code:
            text += f" (status: {self.status_code})"
        if self.location:
            text += f" [{self.location}]"
        return text


class KubernetesConnectionError(KubernetesError):
    """A context could not be loaded or its API server is unreachable."""

    hint = "Check that your kubeconfig is valid and the cluster is reachable."

    def __init__(
        self,
        message: str = "Failed to connect to Kubernetes cluster",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class KubernetesAuthError(KubernetesError):
    """The API server answered 401 or 403."""

    hint = "Check your credentials and RBAC permissions."

    def __init__(
        self,
        message: str = "Kubernetes authentication/authorization failed",
        status_code: int | None = 401,
        reason: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.reason = reason


class KubernetesNotFoundError(KubernetesError):
    """The API server answered 404, usually for a missing namespace."""

    def __init__(
        self,
        message: str = "Kubernetes resource not found",
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        if resource_type and resource_name:
            message = f"{resource_type} '{resource_name}' not found"
            if namespace:
                message += f" in namespace '{namespace}'"
        super().__init__(
            message,
            status_code=404,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )


class KubernetesTimeoutError(KubernetesError):
    """A request did not complete within the configured timeout."""

    hint = "Raise KUBESHELL_TIMEOUT for slow clusters."

    def __init__(
        self,
        message: str = "Kubernetes operation timed out",
        timeout_seconds: int | None = None,
    ) -> None:
        if timeout_seconds:
            message = f"{message} (after {timeout_seconds}s)"
        super().__init__(message)
        self.timeout_seconds = timeout_seconds
