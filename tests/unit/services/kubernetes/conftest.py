"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from kubeshell.integrations.kubernetes.client import KubernetesClient


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client.

    Retries are disabled and errors are translated by the real
    ``translate_api_exception`` so managers behave as in production.
    """
    mock_client = MagicMock()
    mock_client.name = "dev"
    mock_client.timeout = 30
    mock_client.make_retry_decorator.return_value = lambda func: func
    mock_client.translate_api_exception = KubernetesClient.translate_api_exception
    return mock_client
