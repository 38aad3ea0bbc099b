"""Namespace-scoped Helm action configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from helm_connect.config.driver import StorageDriver
from helm_connect.config.settings import Settings
from helm_connect.helm.storage import SQL_CONNECTION_ENV, LogSink, SqlStorage, StorageBackend
from helm_connect.kubernetes.models import EffectiveClientConfig

if TYPE_CHECKING:
    from kubernetes.client import ApiClient, CoreV1Api


def make_log_sink(enabled: bool, **context: Any) -> LogSink:
    """Create a printf-style debug sink for the release engine.

    Args:
        enabled: Emit events; when False the sink discards everything.
        **context: Key/value pairs bound to every event.

    Returns:
        A callable taking a format string and its arguments.
    """
    log = structlog.get_logger().bind(**context)

    def sink(fmt: str, *args: Any) -> None:
        if not enabled:
            return
        log.debug(fmt % args if args else fmt)

    return sink


@dataclass
class ActionConfiguration:
    """A client, namespace and storage backend bound together for one operation.

    Instances are created fresh by ``Meta.get_action_configuration`` and are
    meant to be discarded once the caller's release operation completes.
    """

    namespace: str
    driver: StorageDriver
    api_client: ApiClient
    storage: StorageBackend
    settings: Settings
    client_config: EffectiveClientConfig
    log: LogSink
    _core_v1: CoreV1Api | None = field(default=None, init=False, repr=False)

    @property
    def core_v1(self) -> CoreV1Api:
        """Get a CoreV1Api bound to this configuration's client."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api(self.api_client)
        return self._core_v1

    def helm_env(self) -> dict[str, str]:
        """Render this configuration as environment for a Helm CLI subprocess.

        Returns:
            ``HELM_*`` variables (and ``KUBECONFIG`` when kubeconfig paths are
            configured) describing the same cluster, namespace and driver.
        """
        env = self.settings.helm_env()
        env["HELM_NAMESPACE"] = self.namespace
        env["HELM_DRIVER"] = str(self.driver)

        config = self.client_config
        if config.kubeconfig_paths:
            env["KUBECONFIG"] = os.pathsep.join(config.kubeconfig_paths)
        if config.config_context:
            env["HELM_KUBECONTEXT"] = config.config_context
        if config.host:
            env["HELM_KUBEAPISERVER"] = config.host
        if config.token:
            env["HELM_KUBETOKEN"] = config.token
        if config.insecure is not None:
            env["HELM_KUBEINSECURE_SKIP_TLS_VERIFY"] = "true" if config.insecure else "false"
        if isinstance(self.storage, SqlStorage):
            env[SQL_CONNECTION_ENV] = self.storage.connection_string
        return env

    def close(self) -> None:
        """Release the client's connection pool."""
        self._core_v1 = None
        self.api_client.close()

    def __enter__(self) -> ActionConfiguration:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
