"""Resolved Kubernetes client configuration models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConfigSource(StrEnum):
    """Where a resolved field came from, highest precedence first."""

    EXPLICIT = "explicit"
    KUBECONFIG = "kubeconfig"
    ENVIRONMENT = "environment"
    IN_CLUSTER = "in-cluster"


class ExecConfig(BaseModel):
    """An exec credential plugin invocation."""

    model_config = ConfigDict(frozen=True)

    api_version: str
    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)


_SECRET_FIELDS = frozenset({"password", "token", "client_key"})
_PEM_FIELDS = frozenset({"client_certificate", "client_key", "cluster_ca_certificate"})


class EffectiveClientConfig(BaseModel):
    """Connection and authentication parameters for one Kubernetes cluster.

    A field left as None was not supplied by any source. The same model is
    used for the partial output of a single source reader and for the merged
    result; ``sources`` records which source supplied each populated field.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str | None = None
    username: str | None = None
    password: str | None = None
    insecure: bool | None = None
    client_certificate: bytes | None = None
    client_key: bytes | None = None
    cluster_ca_certificate: bytes | None = None
    token: str | None = None
    config_path: str | None = None
    config_paths: list[str] | None = None
    config_context: str | None = None
    config_context_auth_info: str | None = None
    config_context_cluster: str | None = None
    exec: ExecConfig | None = None
    namespace: str | None = None

    sources: dict[str, ConfigSource] = Field(default_factory=dict, repr=False)

    @classmethod
    def field_names(cls) -> list[str]:
        """Names of the configuration fields, excluding bookkeeping."""
        return [name for name in cls.model_fields if name != "sources"]

    @classmethod
    def from_source(cls, source: ConfigSource, **values: Any) -> EffectiveClientConfig:
        """Build a partial config, tagging every non-None value with ``source``."""
        present = {key: value for key, value in values.items() if value is not None}
        return cls(**present, sources={key: source for key in present})

    def is_set(self, name: str) -> bool:
        """Return True if the field was supplied by some source."""
        return getattr(self, name) is not None

    @property
    def kubeconfig_paths(self) -> list[str]:
        """The configured kubeconfig paths, whichever form was used."""
        if self.config_path:
            return [self.config_path]
        return list(self.config_paths or [])

    def redacted(self) -> dict[str, str]:
        """Return populated fields as display strings with secrets masked."""
        result: dict[str, str] = {}
        for name in self.field_names():
            value = getattr(self, name)
            if value is None:
                continue
            if name in _PEM_FIELDS:
                result[name] = f"<{len(value)} bytes PEM>"
            elif name in _SECRET_FIELDS:
                result[name] = "<redacted>"
            elif isinstance(value, ExecConfig):
                result[name] = " ".join([value.command, *value.args])
            elif isinstance(value, list):
                result[name] = ", ".join(value)
            else:
                result[name] = str(value).lower() if isinstance(value, bool) else str(value)
        return result
