"""Shell configuration models with Pydantic validation.

The shell config remembers the last active context and namespace, user
aliases, and line-editing preferences between sessions. It lives next to
the kubeconfig, by default at ``~/.kube/kubeshell.config``.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = structlog.get_logger()

CONFIG_FILE_NAME = "kubeshell.config"
HISTORY_FILE_NAME = "kubeshell.history"

CompletionType = Literal["circular", "list"]
EditMode = Literal["emacs", "vi"]


class ConfigSaveError(Exception):
    """Raised when the shell configuration cannot be written.

    Attributes:
        path: The file that could not be written.
        original_error: The underlying OS error.
    """

    def __init__(self, path: Path, original_error: Exception | None = None) -> None:
        message = f"Could not save shell config to {path}"
        if original_error is not None:
            message += f": {original_error}"
        super().__init__(message)
        self.path = path
        self.original_error = original_error


class Alias(BaseModel):
    """A single-token shorthand expanded before a command is parsed."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    alias: str = Field(description="The word that triggers expansion")
    expanded: str = Field(description="Text the word is replaced with")

    @field_validator("alias")
    @classmethod
    def validate_alias(cls, v: str) -> str:
        """An alias name is one non-empty, whitespace-free token."""
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("alias must be a single word")
        return v


class ShellConfig(BaseModel):
    """Persistent shell settings."""

    model_config = ConfigDict(extra="ignore")

    context: str | None = None
    namespace: str | None = None
    editor: str | None = None
    terminal: str | None = None
    completion_type: CompletionType = "circular"
    edit_mode: EditMode = "emacs"
    aliases: list[Alias] = Field(default_factory=list)

    @field_validator("completion_type", "edit_mode", mode="before")
    @classmethod
    def normalise_choice(cls, v: Any) -> Any:
        """Accept choices in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def to_yaml(self) -> str:
        """Render the config as YAML with a comment header."""
        header = "# kubeshell configuration\n# Managed by kubeshell; edits are kept between sessions.\n\n"
        data = self.model_dump(exclude_none=True)
        return header + yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


class ShellConfigStore:
    """Load and save ``ShellConfig`` at a fixed path.

    Example:
        >>> store = ShellConfigStore(Path("~/.kube/kubeshell.config").expanduser())
        >>> config = store.load()
        >>> config.namespace = "kube-system"
        >>> store.save(config)
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._log = logger.bind(entity="shell_config")

    def load(self) -> ShellConfig:
        """Load the config, returning defaults when the file is absent or empty.

        Raises:
            ValueError: If the file holds malformed YAML or invalid settings.
        """
        self._log.debug("loading_config", path=str(self.path))
        if not self.path.exists():
            return ShellConfig()

        content = self.path.read_text()
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {self.path}: {e}") from e

        if data is None:
            return ShellConfig()
        if not isinstance(data, dict):
            raise ValueError(f"Invalid config in {self.path}: expected a mapping")

        try:
            return ShellConfig.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid config in {self.path}: {e}") from e

    def save(self, config: ShellConfig) -> None:
        """Atomically write the config.

        Raises:
            ConfigSaveError: If the file (or its directory) cannot be written.
        """
        content = config.to_yaml()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", dir=self.path.parent, text=True
            )
            try:
                with os.fdopen(fd, "w") as f:
                    f.write(content)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            self._log.error("config_save_failed", path=str(self.path), error=str(e))
            raise ConfigSaveError(self.path, e) from e

        self._log.debug("config_saved", path=str(self.path))


def load_config(path: Path) -> ShellConfig:
    """Load the shell config, falling back to defaults if it is unreadable.

    Args:
        path: Config file location.

    Returns:
        The loaded config, or defaults when loading fails.
    """
    try:
        return ShellConfigStore(path).load()
    except (OSError, ValueError) as e:
        logger.warning("config_load_failed_using_defaults", path=str(path), error=str(e))
        return ShellConfig()
