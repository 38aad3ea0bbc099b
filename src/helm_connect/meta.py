"""Provider lifecycle and shared session state.

A ``Provider`` is configured once. Configuration validates the raw provider
block and, when it is usable, produces a ``Meta``: the long-lived handle every
release operation receives. ``Meta.get_action_configuration`` is the only way
to obtain a client bound to a namespace and storage backend, and it is
serialized across all callers.
"""

from __future__ import annotations

import hashlib
import os
import threading
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType

import structlog

from helm_connect.config.driver import StorageDriver
from helm_connect.config.models import ProviderConfig
from helm_connect.config.settings import Settings
from helm_connect.diagnostics import Diagnostic, has_errors
from helm_connect.exceptions import BackendBindFailed, ClientConstructionFailed, ProviderStateError
from helm_connect.helm.action import ActionConfiguration, make_log_sink
from helm_connect.helm.storage import bind_storage
from helm_connect.kubernetes import resolver, sources
from helm_connect.kubernetes.kubeconfig import build_api_client
from helm_connect.kubernetes.models import EffectiveClientConfig
from helm_connect.validation import check_driver, validate

logger = structlog.get_logger()

DEFAULT_NAMESPACE = "default"


def _stamp(path: str | Path) -> tuple[int, int] | None:
    try:
        stat = os.stat(Path(path).expanduser())
    except OSError:
        return None
    return stat.st_mtime_ns, stat.st_size


class Meta:
    """Shared state for one configured provider.

    Holds the raw configuration, the frozen Settings, the storage driver and
    an environment snapshot, all fixed at construction. The lock guards the
    whole of ``get_action_configuration`` together with the resolution cache,
    which is the only state that changes afterwards.
    """

    def __init__(
        self,
        config: ProviderConfig,
        settings: Settings,
        driver: StorageDriver,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._settings = settings
        self._driver = driver
        snapshot = dict(os.environ if environ is None else environ)
        self._environ: Mapping[str, str] = MappingProxyType(snapshot)
        self._lock = threading.Lock()
        self._resolved: dict[tuple[object, ...], EffectiveClientConfig] = {}

    @property
    def config(self) -> ProviderConfig:
        """The raw provider configuration."""
        return self._config

    @property
    def settings(self) -> Settings:
        """The Helm settings for this provider."""
        return self._settings

    @property
    def driver(self) -> StorageDriver:
        """The storage driver for every action configuration."""
        return self._driver

    @property
    def environ(self) -> Mapping[str, str]:
        """Read-only environment snapshot taken at construction."""
        return self._environ

    def _cache_key(self, namespace: str | None) -> tuple[object, ...]:
        """Key the resolution cache on the raw block, namespace and file stamps.

        Kubeconfig files, the files their clusters and users reference, and
        the service account token can change on disk without the raw input
        changing, so their modification times and sizes are part of the key.
        """
        block = self._config.kubernetes_block
        digest = hashlib.sha256(block.model_dump_json().encode()).hexdigest()
        explicit = sources.read_explicit(block)
        environment = sources.read_environment(self._environ)
        resolver.check_path_conflict(explicit, environment)
        declared = resolver.merge(explicit, environment)
        paths = declared.kubeconfig_paths
        files = [*paths, *sources.referenced_files(paths)]
        stamps = tuple((path, _stamp(path)) for path in files)
        return (digest, namespace, stamps, _stamp(sources.SERVICE_ACCOUNT_TOKEN))

    def _resolve(self, namespace: str | None) -> EffectiveClientConfig:
        key = self._cache_key(namespace)
        cached = self._resolved.get(key)
        if cached is not None:
            logger.debug("client_config_cache_hit", namespace=namespace)
            return cached

        resolved = resolver.resolve_client_config(
            self._config.kubernetes_block,
            self._environ,
            namespace=namespace,
        )
        self._resolved.clear()
        self._resolved[key] = resolved
        return resolved

    def resolve_client_config(self, namespace: str | None = None) -> EffectiveClientConfig:
        """Resolve the effective client configuration under the lock.

        Raises:
            ConfigPathConflict: If both kubeconfig path forms are set.
            ClientConstructionFailed: If a kubeconfig file is malformed or
                a referenced file cannot be read.
        """
        with self._lock:
            return self._resolve_or_raise(namespace)

    def _resolve_or_raise(self, namespace: str | None) -> EffectiveClientConfig:
        try:
            return self._resolve(namespace)
        except (ValueError, OSError) as e:
            raise ClientConstructionFailed(original_error=e) from e

    def get_action_configuration(self, namespace: str) -> ActionConfiguration:
        """Build a fresh action configuration for ``namespace``.

        All calls are serialized, whatever their namespace. An empty namespace
        falls back to the kubeconfig context's namespace, then ``default``.

        Args:
            namespace: Namespace the configuration is bound to.

        Returns:
            A new ActionConfiguration.

        Raises:
            ConfigPathConflict: If both kubeconfig path forms are set.
            ClientConstructionFailed: If no Kubernetes client could be built.
            BackendBindFailed: If the storage backend could not be bound.
        """
        with self._lock:
            log = logger.bind(namespace=namespace, driver=str(self._driver))
            log.debug("action_configuration_start")

            client_config = self._resolve_or_raise(namespace or None)
            namespace = namespace or client_config.namespace or DEFAULT_NAMESPACE
            api_client = build_api_client(client_config)

            sink = make_log_sink(self._settings.debug, namespace=namespace)
            try:
                storage = bind_storage(self._driver, api_client, namespace, self._environ, sink)
            except BackendBindFailed:
                api_client.close()
                log.error("storage_backend_bind_failed")
                raise

            log.debug("action_configuration_created")
            return ActionConfiguration(
                namespace=namespace,
                driver=self._driver,
                api_client=api_client,
                storage=storage,
                settings=self._settings,
                client_config=client_config,
                log=sink,
            )


class ProviderState(StrEnum):
    """Lifecycle of a Provider."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


class Provider:
    """Configures a ``Meta`` exactly once.

    Example:
        ```python
        provider = Provider()
        diagnostics = provider.configure(ProviderConfig(helm_driver="configmap"))
        if provider.state is ProviderState.READY:
            with provider.meta.get_action_configuration("apps") as action:
                env = action.helm_env()
        ```
    """

    def __init__(self) -> None:
        self._meta: Meta | None = None
        self._state_lock = threading.Lock()

    @property
    def state(self) -> ProviderState:
        """Current lifecycle state."""
        return ProviderState.READY if self._meta is not None else ProviderState.UNINITIALIZED

    @property
    def meta(self) -> Meta:
        """The configured shared state.

        Raises:
            ProviderStateError: If the provider is not configured yet.
        """
        if self._meta is None:
            raise ProviderStateError("Provider is not configured")
        return self._meta

    def configure(
        self,
        config: ProviderConfig,
        environ: Mapping[str, str] | None = None,
    ) -> list[Diagnostic]:
        """Validate ``config`` and, if usable, move to READY.

        Args:
            config: The raw provider configuration.
            environ: Environment snapshot. Defaults to ``os.environ``.

        Returns:
            Diagnostics from validation. When any has error severity the
            provider stays UNINITIALIZED and may be configured again.

        Raises:
            ProviderStateError: If the provider is already READY.
        """
        with self._state_lock:
            if self._meta is not None:
                raise ProviderStateError("Provider is already configured")

            env = dict(os.environ if environ is None else environ)
            diagnostics = validate(config, env)
            if has_errors(diagnostics):
                return diagnostics

            settings = Settings.from_provider(config, env)
            driver = check_driver(config, env)
            self._meta = Meta(config, settings, driver, env)

            logger.info("provider_configured", driver=str(driver), debug=settings.debug)
            return diagnostics
