"""Kubernetes connection configuration: source readers, resolution and client construction."""

from helm_connect.kubernetes.config import ClientConfigInput, ExecInput
from helm_connect.kubernetes.kubeconfig import build_api_client
from helm_connect.kubernetes.models import ConfigSource, EffectiveClientConfig, ExecConfig
from helm_connect.kubernetes.resolver import merge, resolve_client_config
from helm_connect.kubernetes.sources import in_cluster_available

__all__ = [
    "ClientConfigInput",
    "ConfigSource",
    "EffectiveClientConfig",
    "ExecConfig",
    "ExecInput",
    "build_api_client",
    "in_cluster_available",
    "merge",
    "resolve_client_config",
]
