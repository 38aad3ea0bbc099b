"""Provider configuration: raw input models, storage drivers and Helm settings."""

from helm_connect.config.driver import DEFAULT_DRIVER, StorageDriver
from helm_connect.config.models import ProviderConfig, load_provider_config
from helm_connect.config.settings import Settings

__all__ = [
    "DEFAULT_DRIVER",
    "ProviderConfig",
    "Settings",
    "StorageDriver",
    "load_provider_config",
]
