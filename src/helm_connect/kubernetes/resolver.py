"""Precedence resolution of the Kubernetes client configuration.

Sources, highest precedence first:

1. explicit fields of the provider's kubernetes block
2. kubeconfig file(s)
3. ``KUBE_*`` environment variables
4. the in-cluster service account

For every field the first source that set it wins. Booleans count as set
whenever they are not None, so an explicit ``False`` is never overridden.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from helm_connect.exceptions import ConfigPathConflict
from helm_connect.kubernetes.config import ClientConfigInput
from helm_connect.kubernetes.models import ConfigSource, EffectiveClientConfig
from helm_connect.kubernetes.sources import (
    read_environment,
    read_explicit,
    read_in_cluster,
    read_kubeconfig,
)

logger = structlog.get_logger()


def merge(*partials: EffectiveClientConfig) -> EffectiveClientConfig:
    """Merge partial configurations, highest precedence first.

    Args:
        *partials: Partial configurations ordered from highest to lowest
            precedence.

    Returns:
        A configuration where each field holds the value of the first
        partial that set it.
    """
    values: dict[str, Any] = {}
    sources: dict[str, ConfigSource] = {}
    for partial in partials:
        for name in EffectiveClientConfig.field_names():
            if name in values:
                continue
            value = getattr(partial, name)
            if value is None:
                continue
            values[name] = value
            if name in partial.sources:
                sources[name] = partial.sources[name]
    return EffectiveClientConfig(**values, sources=sources)


def check_path_conflict(*partials: EffectiveClientConfig) -> None:
    """Reject configurations that set both ``config_path`` and ``config_paths``.

    The check spans all sources: a single path from one source and a path
    list from another conflict just as much as both in the same block.

    Raises:
        ConfigPathConflict: If both forms are set anywhere.
    """
    single = next((p.config_path for p in partials if p.config_path), None)
    many = next((p.config_paths for p in partials if p.config_paths), None)
    if single and many:
        raise ConfigPathConflict(single, many)


def _expand(paths: list[str]) -> list[str]:
    return [str(Path(p).expanduser()) for p in paths]


def resolve_client_config(
    block: ClientConfigInput,
    environ: Mapping[str, str] | None = None,
    namespace: str | None = None,
) -> EffectiveClientConfig:
    """Resolve the effective client configuration from every source.

    The path conflict check runs before any file is read.

    Args:
        block: The raw kubernetes block.
        environ: Environment snapshot. Defaults to ``os.environ``.
        namespace: Per-call namespace, overriding the context namespace.

    Returns:
        The merged configuration.

    Raises:
        ConfigPathConflict: If both a single path and a path list are set.
        ValueError: If a kubeconfig file is malformed.
        OSError: If a file referenced by a kubeconfig cannot be read.
    """
    env = os.environ if environ is None else environ

    explicit = read_explicit(block)
    environment = read_environment(env)
    check_path_conflict(explicit, environment)

    selectors = merge(explicit, environment)
    paths = _expand(selectors.kubeconfig_paths)
    kubeconfig = read_kubeconfig(
        paths,
        context=selectors.config_context,
        auth_info=selectors.config_context_auth_info,
        cluster=selectors.config_context_cluster,
    )
    in_cluster = read_in_cluster(env)

    layers = [explicit, kubeconfig, environment, in_cluster]
    if namespace:
        override = EffectiveClientConfig.from_source(ConfigSource.EXPLICIT, namespace=namespace)
        layers.insert(0, override)

    resolved = merge(*layers)
    if paths:
        resolved = resolved.model_copy(update=_expanded_paths(resolved, paths))

    logger.debug(
        "client_config_resolved",
        sources={name: str(source) for name, source in resolved.sources.items()},
    )
    return resolved


def _expanded_paths(resolved: EffectiveClientConfig, paths: list[str]) -> dict[str, Any]:
    if resolved.config_path:
        return {"config_path": paths[0]}
    return {"config_paths": paths}
