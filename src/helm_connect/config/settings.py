"""Process-wide Helm settings.

Mirrors the subset of Helm's environment settings the provider exposes. Each
value comes from the provider block, else from its ``HELM_*`` environment
variable, else from Helm's default location for the current platform.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from helm_connect.utils.env import env_bool, env_str

if TYPE_CHECKING:
    from helm_connect.config.models import ProviderConfig

_LAZY_PATH = "helm"


def _platform_base(kind: str, environ: Mapping[str, str]) -> str:
    """Return the platform default base directory for config, data or cache."""
    home = Path(environ.get("HOME") or Path.home())
    if sys.platform == "darwin":
        return str(
            {
                "config": home / "Library" / "Preferences",
                "data": home / "Library",
                "cache": home / "Library" / "Caches",
            }[kind]
        )
    if sys.platform == "win32":
        if kind == "cache":
            return environ.get("TEMP", str(home / "AppData" / "Local" / "Temp"))
        return environ.get("APPDATA", str(home / "AppData" / "Roaming"))
    return str(
        {
            "config": home / ".config",
            "data": home / ".local" / "share",
            "cache": home / ".cache",
        }[kind]
    )


def _helm_path(kind: str, *elem: str, environ: Mapping[str, str]) -> str:
    """Resolve a path under Helm's config, data or cache home.

    ``HELM_<KIND>_HOME`` wins and is used as is; otherwise
    ``XDG_<KIND>_HOME`` (or the platform default) gets ``helm`` appended.
    """
    upper = kind.upper()
    if helm_home := env_str(environ, f"HELM_{upper}_HOME"):
        return os.path.join(helm_home, *elem)
    base = env_str(environ, f"XDG_{upper}_HOME") or _platform_base(kind, environ)
    return os.path.join(base, _LAZY_PATH, *elem)


def config_path(*elem: str, environ: Mapping[str, str] | None = None) -> str:
    """Path under Helm's configuration home."""
    return _helm_path("config", *elem, environ=os.environ if environ is None else environ)


def data_path(*elem: str, environ: Mapping[str, str] | None = None) -> str:
    """Path under Helm's data home."""
    return _helm_path("data", *elem, environ=os.environ if environ is None else environ)


def cache_path(*elem: str, environ: Mapping[str, str] | None = None) -> str:
    """Path under Helm's cache home."""
    return _helm_path("cache", *elem, environ=os.environ if environ is None else environ)


class Settings(BaseModel):
    """Immutable Helm settings shared by every operation of one provider."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    debug: bool = False
    plugins_directory: str
    registry_config: str
    repository_config: str
    repository_cache: str

    @classmethod
    def from_provider(
        cls,
        config: ProviderConfig,
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        """Build settings from a provider block and environment.

        Args:
            config: The raw provider configuration.
            environ: Environment snapshot. Defaults to ``os.environ``.

        Returns:
            The resolved, frozen settings.
        """
        env = os.environ if environ is None else environ

        debug = config.debug
        if debug is None:
            debug = bool(env_bool(env, "HELM_DEBUG"))

        return cls(
            debug=debug,
            plugins_directory=(
                config.plugins_path
                or env_str(env, "HELM_PLUGINS")
                or data_path("plugins", environ=env)
            ),
            registry_config=(
                config.registry_config_path
                or env_str(env, "HELM_REGISTRY_CONFIG")
                or config_path("registry.json", environ=env)
            ),
            repository_config=(
                config.repository_config_path
                or env_str(env, "HELM_REPOSITORY_CONFIG")
                or config_path("repositories.yaml", environ=env)
            ),
            repository_cache=(
                config.repository_cache
                or env_str(env, "HELM_REPOSITORY_CACHE")
                or cache_path("repository", environ=env)
            ),
        )

    def helm_env(self) -> dict[str, str]:
        """Render the settings as the ``HELM_*`` variables the Helm CLI reads."""
        return {
            "HELM_DEBUG": "true" if self.debug else "false",
            "HELM_PLUGINS": self.plugins_directory,
            "HELM_REGISTRY_CONFIG": self.registry_config,
            "HELM_REPOSITORY_CONFIG": self.repository_config,
            "HELM_REPOSITORY_CACHE": self.repository_cache,
        }
