"""Helm release storage backends.

Binding a backend is the last step of building an action configuration. The
Kubernetes-backed drivers store one ConfigMap or Secret per release revision,
labelled ``owner=helm``; the SQL driver only needs a PostgreSQL DSN at bind
time.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from helm_connect.config.driver import StorageDriver
from helm_connect.exceptions import BackendBindFailed, DriverInvalid, StorageError

if TYPE_CHECKING:
    from kubernetes.client import ApiClient, CoreV1Api

logger = structlog.get_logger()

OWNER_LABEL_SELECTOR = "owner=helm"
SQL_CONNECTION_ENV = "HELM_DRIVER_SQL_CONNECTION_STRING"

_POSTGRES_SCHEMES = ("postgres://", "postgresql://")

LogSink = Callable[..., None]


@dataclass(frozen=True)
class ReleaseRecord:
    """One stored release revision."""

    name: str
    namespace: str
    version: int
    status: str


class StorageBackend:
    """Base class for a namespace-scoped release store."""

    driver: StorageDriver

    def __init__(self, namespace: str, log: LogSink | None = None) -> None:
        self.namespace = namespace
        self._log = log or (lambda *args: None)

    def describe(self) -> dict[str, str]:
        """Return a printable summary of the binding."""
        return {"driver": str(self.driver), "namespace": self.namespace}


class MemoryStorage(StorageBackend):
    """Process-local store, discarded with its action configuration."""

    driver = StorageDriver.MEMORY

    def __init__(self, namespace: str, log: LogSink | None = None) -> None:
        super().__init__(namespace, log)
        self.records: list[ReleaseRecord] = []

    def add(self, record: ReleaseRecord) -> None:
        """Store a release revision."""
        self._log("memory storage: adding %s.v%d", record.name, record.version)
        self.records.append(record)

    def list_releases(self, name: str | None = None) -> list[ReleaseRecord]:
        """List stored revisions in this namespace, optionally for one release."""
        return [
            r
            for r in self.records
            if (not self.namespace or r.namespace == self.namespace)
            and (name is None or r.name == name)
        ]


class KubernetesObjectStorage(StorageBackend, ABC):
    """Release store backed by labelled namespaced objects."""

    kind: str = ""

    def __init__(self, core_v1: CoreV1Api, namespace: str, log: LogSink | None = None) -> None:
        super().__init__(namespace, log)
        self._core_v1 = core_v1

    @abstractmethod
    def _list_objects(self, label_selector: str) -> Any:
        """Call the list endpoint for this object kind."""

    def list_releases(self, name: str | None = None) -> list[ReleaseRecord]:
        """List stored revisions, optionally for one release.

        Raises:
            StorageError: If the Kubernetes API call fails.
        """
        selector = OWNER_LABEL_SELECTOR
        if name:
            selector += f",name={name}"
        self._log("%s storage: listing with selector %s", self.kind, selector)

        try:
            result = self._list_objects(selector)
        except Exception as e:
            raise StorageError(f"Failed to list Helm release {self.kind}s", original_error=e) from e

        records = []
        for item in result.items:
            labels = item.metadata.labels or {}
            try:
                version = int(labels.get("version", "0"))
            except ValueError:
                version = 0
            records.append(
                ReleaseRecord(
                    name=labels.get("name", item.metadata.name),
                    namespace=item.metadata.namespace,
                    version=version,
                    status=labels.get("status", "unknown"),
                )
            )
        return records


class ConfigMapStorage(KubernetesObjectStorage):
    """Releases stored as ConfigMaps."""

    driver = StorageDriver.CONFIGMAP
    kind = "ConfigMap"

    def _list_objects(self, label_selector: str) -> Any:
        if self.namespace:
            return self._core_v1.list_namespaced_config_map(
                self.namespace, label_selector=label_selector
            )
        return self._core_v1.list_config_map_for_all_namespaces(label_selector=label_selector)


class SecretStorage(KubernetesObjectStorage):
    """Releases stored as Secrets."""

    driver = StorageDriver.SECRET
    kind = "Secret"

    def _list_objects(self, label_selector: str) -> Any:
        if self.namespace:
            return self._core_v1.list_namespaced_secret(
                self.namespace, label_selector=label_selector
            )
        return self._core_v1.list_secret_for_all_namespaces(label_selector=label_selector)


class SqlStorage(StorageBackend):
    """Releases stored in PostgreSQL."""

    driver = StorageDriver.SQL

    def __init__(self, connection_string: str, namespace: str, log: LogSink | None = None) -> None:
        super().__init__(namespace, log)
        self.connection_string = connection_string

    def describe(self) -> dict[str, str]:
        """Return a printable summary without the connection string."""
        return {**super().describe(), "connection": "<redacted>"}


def _check_postgres_dsn(dsn: str) -> None:
    if dsn.startswith(_POSTGRES_SCHEMES):
        return
    if "=" in dsn and ("host=" in dsn or "dbname=" in dsn):
        return
    raise ValueError("the sql driver only supports PostgreSQL connection strings")


def bind_storage(
    driver: StorageDriver | str,
    api_client: ApiClient,
    namespace: str,
    environ: Mapping[str, str] | None = None,
    log: LogSink | None = None,
) -> StorageBackend:
    """Bind a storage backend for one namespace.

    Args:
        driver: The storage driver, as an enum member or name.
        api_client: The resolved Kubernetes client.
        namespace: Namespace the backend is scoped to.
        environ: Environment snapshot. Defaults to ``os.environ``.
        log: Debug log sink handed to the backend.

    Returns:
        The bound backend.

    Raises:
        BackendBindFailed: If the driver is unknown or cannot be initialized.
    """
    env = os.environ if environ is None else environ
    name = str(driver)

    try:
        kind = driver if isinstance(driver, StorageDriver) else StorageDriver.parse(driver)
    except DriverInvalid as e:
        raise BackendBindFailed(
            message=f"Unknown driver {name!r}",
            driver=name,
            namespace=namespace,
            original_error=e,
        ) from e

    try:
        if kind is StorageDriver.MEMORY:
            backend: StorageBackend = MemoryStorage(namespace=namespace, log=log)
        elif kind in (StorageDriver.CONFIGMAP, StorageDriver.SECRET):
            from kubernetes.client import CoreV1Api

            storage_cls = ConfigMapStorage if kind is StorageDriver.CONFIGMAP else SecretStorage
            backend = storage_cls(CoreV1Api(api_client), namespace, log)
        else:
            dsn = env.get(SQL_CONNECTION_ENV, "")
            if not dsn:
                raise ValueError(f"{SQL_CONNECTION_ENV} must be set to use the sql driver")
            _check_postgres_dsn(dsn)
            backend = SqlStorage(dsn, namespace, log)
    except (ValueError, TypeError) as e:
        raise BackendBindFailed(driver=str(kind), namespace=namespace, original_error=e) from e

    logger.debug("storage_backend_bound", driver=str(kind), namespace=namespace)
    return backend
