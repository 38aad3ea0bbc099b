"""Provider configuration block and YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from helm_connect.kubernetes.config import ClientConfigInput


class ProviderConfig(BaseModel):
    """The raw provider block.

    Options left as None fall back to their environment variable (see
    ``Settings.from_provider`` and ``validation.effective_driver``).
    """

    model_config = ConfigDict(extra="forbid")

    debug: bool | None = None
    plugins_path: str | None = None
    registry_config_path: str | None = None
    repository_config_path: str | None = None
    repository_cache: str | None = None
    helm_driver: str | None = None
    kubernetes: list[ClientConfigInput] = Field(default_factory=list)

    @field_validator("kubernetes", mode="before")
    @classmethod
    def validate_kubernetes(cls, v: Any) -> Any:
        """Accept a bare mapping, None, or a list of at most one block."""
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        if isinstance(v, list) and len(v) > 1:
            raise ValueError("kubernetes accepts at most one block")
        return v

    @property
    def kubernetes_block(self) -> ClientConfigInput:
        """Return the kubernetes block, or an empty one if none was given."""
        if self.kubernetes:
            return self.kubernetes[0]
        return ClientConfigInput()


def load_provider_config(path: str | Path) -> ProviderConfig:
    """Load a provider block from a YAML file.

    An empty file yields an all-defaults configuration.

    Args:
        path: Path to the YAML file.

    Returns:
        The parsed provider configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document is not valid YAML or not a mapping.
        pydantic.ValidationError: If the mapping has unknown or mistyped keys.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Provider configuration file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Provider configuration {path} is not valid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"Provider configuration {path} must be a mapping, got {type(raw).__name__}")

    return ProviderConfig.model_validate(raw)
