"""Kubernetes connection configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_CONFIG_DIR = Path.home() / ".kube"


class KubernetesConfig(BaseModel):
    """Where to find kubeconfig files and how to talk to clusters."""

    model_config = ConfigDict(extra="forbid")

    kubeconfig_paths: list[str] = [str(DEFAULT_CONFIG_DIR / "config")]
    timeout: int = 30
    retry_attempts: int = 3

    @field_validator("kubeconfig_paths")
    @classmethod
    def validate_kubeconfig_paths(cls, v: list[str]) -> list[str]:
        """Expand ~ in kubeconfig paths and require at least one."""
        if not v:
            raise ValueError("at least one kubeconfig path is required")
        return [str(Path(p).expanduser()) for p in v]

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate retry_attempts is at least one."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v

    @classmethod
    def from_env(
        cls,
        config_dir: Path | None = None,
        base_config: dict[str, Any] | None = None,
    ) -> KubernetesConfig:
        """Create configuration with environment variable overrides.

        Supported environment variables:
            KUBECONFIG: Path list (os.pathsep separated) of kubeconfig files
            KUBESHELL_TIMEOUT: Request timeout in seconds
            KUBESHELL_RETRY_ATTEMPTS: Attempts for transient connection errors

        Args:
            config_dir: Directory holding the default ``config`` file.
            base_config: Values to start from before applying overrides.
        """
        config_dict = base_config.copy() if base_config else {}

        if kubeconfig := os.environ.get("KUBECONFIG"):
            config_dict["kubeconfig_paths"] = [p for p in kubeconfig.split(os.pathsep) if p]
        elif config_dir is not None:
            config_dict["kubeconfig_paths"] = [str(config_dir / "config")]

        if timeout := os.environ.get("KUBESHELL_TIMEOUT"):
            config_dict["timeout"] = int(timeout)

        if retry_attempts := os.environ.get("KUBESHELL_RETRY_ATTEMPTS"):
            config_dict["retry_attempts"] = int(retry_attempts)

        return cls.model_validate(config_dict)

    @property
    def kubeconfig(self) -> str:
        """Kubeconfig paths joined the way the kubernetes client merges them."""
        return os.pathsep.join(self.kubeconfig_paths)
