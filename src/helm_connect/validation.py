"""Provider configuration validation.

Validation reports problems as diagnostics instead of raising, leaving the
decision to abort to the caller.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

import structlog

from helm_connect.config.driver import DEFAULT_DRIVER, StorageDriver
from helm_connect.config.models import ProviderConfig
from helm_connect.diagnostics import Diagnostic
from helm_connect.exceptions import AuthenticationMissing, ConfigurationError
from helm_connect.kubernetes.resolver import check_path_conflict, merge
from helm_connect.kubernetes.sources import in_cluster_available, read_environment, read_explicit

logger = structlog.get_logger()

# Any one of these, from the provider block or its environment variable,
# counts as a configured authentication mechanism.
AUTH_MECHANISMS = (
    "host",
    "config_path",
    "config_paths",
    "client_certificate",
    "token",
    "exec",
)


def effective_driver(config: ProviderConfig, environ: Mapping[str, str]) -> str:
    """Return the requested driver name: provider block, then HELM_DRIVER, then the default."""
    return config.helm_driver or environ.get("HELM_DRIVER") or DEFAULT_DRIVER


def check_authentication(config: ProviderConfig, environ: Mapping[str, str]) -> None:
    """Ensure at least one way of reaching the cluster is configured.

    Passes when running in-cluster, when ``KUBE_CONFIG_PATHS`` is set, or when
    any of ``AUTH_MECHANISMS`` is set explicitly or through its environment
    variable.

    Raises:
        AuthenticationMissing: If none of the above holds.
    """
    if in_cluster_available(environ):
        logger.debug("running_inside_kubernetes_cluster")
        return

    if environ.get("KUBE_CONFIG_PATHS"):
        return

    declared = merge(read_explicit(config.kubernetes_block), read_environment(environ))
    if any(declared.is_set(name) for name in AUTH_MECHANISMS):
        return

    raise AuthenticationMissing(AUTH_MECHANISMS)


def check_driver(config: ProviderConfig, environ: Mapping[str, str]) -> StorageDriver:
    """Parse the requested storage driver.

    Raises:
        DriverInvalid: If the name is not a supported driver.
    """
    return StorageDriver.parse(effective_driver(config, environ))


def validate(config: ProviderConfig, environ: Mapping[str, str] | None = None) -> list[Diagnostic]:
    """Validate a provider configuration.

    Args:
        config: The raw provider configuration.
        environ: Environment snapshot. Defaults to ``os.environ``.

    Returns:
        Diagnostics for every problem found; empty when the configuration is
        usable.
    """
    env = os.environ if environ is None else environ
    diagnostics: list[Diagnostic] = []

    block = config.kubernetes_block
    checks = (
        lambda: check_path_conflict(read_explicit(block), read_environment(env)),
        lambda: check_authentication(config, env),
        lambda: check_driver(config, env),
    )
    for check in checks:
        try:
            check()
        except ConfigurationError as e:
            diagnostics.append(e.to_diagnostic())

    for diagnostic in diagnostics:
        logger.warning(
            "provider_configuration_invalid",
            summary=diagnostic.summary,
            attribute=diagnostic.attribute,
        )
    return diagnostics
