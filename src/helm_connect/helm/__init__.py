"""Helm action configuration and release storage binding."""

from helm_connect.helm.action import ActionConfiguration, make_log_sink
from helm_connect.helm.storage import (
    ConfigMapStorage,
    MemoryStorage,
    ReleaseRecord,
    SecretStorage,
    SqlStorage,
    StorageBackend,
    bind_storage,
)

__all__ = [
    "ActionConfiguration",
    "ConfigMapStorage",
    "MemoryStorage",
    "ReleaseRecord",
    "SecretStorage",
    "SqlStorage",
    "StorageBackend",
    "bind_storage",
    "make_log_sink",
]
