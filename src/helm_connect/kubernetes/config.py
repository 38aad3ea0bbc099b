"""Raw ``kubernetes`` block input models.

These models hold the block exactly as the user wrote it. Nothing here reads
the environment or the filesystem; see ``sources`` and ``resolver`` for that.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _wrap_single_block(v: Any) -> Any:
    """Accept a single mapping where a one-element block list is expected."""
    if isinstance(v, dict):
        return [v]
    return v


class ExecInput(BaseModel):
    """An exec credential plugin block."""

    model_config = ConfigDict(extra="forbid")

    api_version: str
    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("args", mode="before")
    @classmethod
    def validate_args(cls, v: Any) -> Any:
        """Turn null list entries into empty strings."""
        if isinstance(v, list):
            return ["" if item is None else item for item in v]
        return v


class ClientConfigInput(BaseModel):
    """The raw ``kubernetes`` block of a provider configuration.

    Every field is optional. Empty strings and empty lists mean "not set";
    ``insecure`` is tri-state so an explicit ``false`` is distinguishable from
    an absent value.
    """

    model_config = ConfigDict(extra="forbid")

    host: str | None = None
    username: str | None = None
    password: str | None = None
    insecure: bool | None = None
    client_certificate: str | None = None
    client_key: str | None = None
    cluster_ca_certificate: str | None = None
    config_paths: list[str] | None = None
    config_path: str | None = None
    config_context: str | None = None
    config_context_auth_info: str | None = None
    config_context_cluster: str | None = None
    token: str | None = None
    exec: list[ExecInput] = Field(default_factory=list)

    @field_validator("exec", mode="before")
    @classmethod
    def validate_exec(cls, v: Any) -> Any:
        """Accept a bare mapping, None, or a list of at most one exec block."""
        if v is None:
            return []
        v = _wrap_single_block(v)
        if isinstance(v, list) and len(v) > 1:
            raise ValueError("exec accepts at most one block")
        return v

    @field_validator("config_paths", mode="before")
    @classmethod
    def validate_config_paths(cls, v: Any) -> Any:
        """Turn null list entries into empty strings."""
        if isinstance(v, list):
            return ["" if item is None else item for item in v]
        return v
