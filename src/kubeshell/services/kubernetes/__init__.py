"""Kubernetes service managers used by shell commands."""

from kubeshell.services.kubernetes.resource_manager import ResourceManager
from kubeshell.services.kubernetes.streaming_manager import StreamingManager, parse_port_mapping

__all__ = [
    "ResourceManager",
    "StreamingManager",
    "parse_port_mapping",
]
