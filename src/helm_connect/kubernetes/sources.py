"""Credential source readers.

Each reader turns one origin (the explicit provider block, the process
environment, kubeconfig files, the in-cluster service account mount) into a
partial ``EffectiveClientConfig``. Missing data is never an error: it simply
leaves the field unset.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import structlog
import yaml

from helm_connect.kubernetes.config import ClientConfigInput
from helm_connect.kubernetes.models import ConfigSource, EffectiveClientConfig, ExecConfig
from helm_connect.utils.env import env_bool, env_str, parse_bool, split_path_list

logger = structlog.get_logger()

SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")
SERVICE_ACCOUNT_TOKEN = SERVICE_ACCOUNT_DIR / "token"
SERVICE_ACCOUNT_CA = SERVICE_ACCOUNT_DIR / "ca.crt"

# Environment variables backing each field of the kubernetes block.
ENV_VARS: dict[str, str] = {
    "host": "KUBE_HOST",
    "username": "KUBE_USER",
    "password": "KUBE_PASSWORD",
    "insecure": "KUBE_INSECURE",
    "client_certificate": "KUBE_CLIENT_CERT_DATA",
    "client_key": "KUBE_CLIENT_KEY_DATA",
    "cluster_ca_certificate": "KUBE_CLUSTER_CA_CERT_DATA",
    "config_path": "KUBE_CONFIG_PATH",
    "config_paths": "KUBE_CONFIG_PATHS",
    "config_context": "KUBE_CTX",
    "config_context_auth_info": "KUBE_CTX_AUTH_INFO",
    "config_context_cluster": "KUBE_CTX_CLUSTER",
    "token": "KUBE_TOKEN",
}


def _text(value: str | None) -> str | None:
    return value or None


def _pem(value: str | None) -> bytes | None:
    if not value:
        return None
    return value.encode()


# ---------------------------------------------------------------------------
# Explicit block and environment
# ---------------------------------------------------------------------------


def read_explicit(block: ClientConfigInput) -> EffectiveClientConfig:
    """Read the fields set directly in the provider's kubernetes block."""
    exec_config = None
    if block.exec:
        first = block.exec[0]
        exec_config = ExecConfig(
            api_version=first.api_version,
            command=first.command,
            args=list(first.args),
            env=dict(first.env),
        )

    return EffectiveClientConfig.from_source(
        ConfigSource.EXPLICIT,
        host=_text(block.host),
        username=_text(block.username),
        password=_text(block.password),
        insecure=block.insecure,
        client_certificate=_pem(block.client_certificate),
        client_key=_pem(block.client_key),
        cluster_ca_certificate=_pem(block.cluster_ca_certificate),
        token=_text(block.token),
        config_path=_text(block.config_path),
        config_paths=list(block.config_paths) if block.config_paths else None,
        config_context=_text(block.config_context),
        config_context_auth_info=_text(block.config_context_auth_info),
        config_context_cluster=_text(block.config_context_cluster),
        exec=exec_config,
    )


def read_environment(environ: Mapping[str, str]) -> EffectiveClientConfig:
    """Read the ``KUBE_*`` environment variables."""
    return EffectiveClientConfig.from_source(
        ConfigSource.ENVIRONMENT,
        host=env_str(environ, ENV_VARS["host"]),
        username=env_str(environ, ENV_VARS["username"]),
        password=env_str(environ, ENV_VARS["password"]),
        insecure=env_bool(environ, ENV_VARS["insecure"]),
        client_certificate=_pem(env_str(environ, ENV_VARS["client_certificate"])),
        client_key=_pem(env_str(environ, ENV_VARS["client_key"])),
        cluster_ca_certificate=_pem(env_str(environ, ENV_VARS["cluster_ca_certificate"])),
        token=env_str(environ, ENV_VARS["token"]),
        config_path=env_str(environ, ENV_VARS["config_path"]),
        config_paths=split_path_list(environ.get(ENV_VARS["config_paths"])) or None,
        config_context=env_str(environ, ENV_VARS["config_context"]),
        config_context_auth_info=env_str(environ, ENV_VARS["config_context_auth_info"]),
        config_context_cluster=env_str(environ, ENV_VARS["config_context_cluster"]),
    )


# ---------------------------------------------------------------------------
# Kubeconfig files
# ---------------------------------------------------------------------------

_FILE_KEYS = ("certificate-authority", "client-certificate", "client-key", "tokenFile")


def _absolutize(entry: dict[str, Any], base: Path) -> dict[str, Any]:
    """Resolve file references in a cluster or user entry against its kubeconfig's directory."""
    resolved = dict(entry)
    for key in _FILE_KEYS:
        value = resolved.get(key)
        if value:
            path = Path(value).expanduser()
            resolved[key] = str(path if path.is_absolute() else base / path)
    return resolved


def load_kubeconfig(paths: Sequence[str]) -> dict[str, Any]:
    """Load and merge kubeconfig files the way kubectl does.

    The first file to define a named cluster, context or user wins, as does
    the first non-empty ``current-context``. Files that do not exist are
    skipped.

    Returns:
        A mapping with ``clusters``, ``contexts`` and ``users`` keyed by name,
        and ``current-context``.

    Raises:
        ValueError: If a file is not valid YAML or not a mapping.
        OSError: If an existing file cannot be read.
    """
    merged: dict[str, Any] = {"clusters": {}, "contexts": {}, "users": {}, "current-context": None}

    for raw_path in paths:
        path = Path(raw_path).expanduser()
        if not path.is_file():
            logger.debug("kubeconfig_missing", path=str(path))
            continue

        try:
            document = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"kubeconfig {path} is not valid YAML: {e}") from e
        if not isinstance(document, dict):
            raise ValueError(f"kubeconfig {path} must be a mapping, got {type(document).__name__}")

        base = path.parent
        for section, inner in (("clusters", "cluster"), ("contexts", "context"), ("users", "user")):
            for item in document.get(section) or []:
                name = item.get("name") if isinstance(item, dict) else None
                if not name or name in merged[section]:
                    continue
                body = item.get(inner) or {}
                if section != "contexts":
                    body = _absolutize(body, base)
                merged[section][name] = body

        if not merged["current-context"] and document.get("current-context"):
            merged["current-context"] = document["current-context"]

    return merged


def referenced_files(paths: Sequence[str]) -> list[str]:
    """Return every file that the cluster and user entries of ``paths`` point at.

    Raises:
        ValueError: If a file is not valid YAML or not a mapping.
        OSError: If an existing file cannot be read.
    """
    merged = load_kubeconfig(paths)
    found: set[str] = set()
    for section in ("clusters", "users"):
        for entry in merged[section].values():
            found.update(entry[key] for key in _FILE_KEYS if entry.get(key))
    return sorted(found)


def _b64(value: str, field: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"kubeconfig field {field} is not valid base64") from e


def _data_or_file(entry: Mapping[str, Any], key: str) -> bytes | None:
    """Return ``<key>-data`` decoded, else the content of the ``<key>`` file."""
    if data := entry.get(f"{key}-data"):
        return _b64(data, f"{key}-data")
    if file_path := entry.get(key):
        return Path(file_path).read_bytes()
    return None


def _flag(value: Any) -> bool | None:
    """YAML booleans pass through; quoted strings are parsed, anything else is unset."""
    if value is None or isinstance(value, bool):
        return value
    return parse_bool(str(value))


def _exec_from_kubeconfig(raw: Mapping[str, Any] | None) -> ExecConfig | None:
    if not raw or not raw.get("command"):
        return None
    env = {item["name"]: item.get("value", "") for item in raw.get("env") or [] if item.get("name")}
    return ExecConfig(
        api_version=raw.get("apiVersion", ""),
        command=raw["command"],
        args=[str(arg) for arg in raw.get("args") or []],
        env=env,
    )


def read_kubeconfig(
    paths: Sequence[str],
    *,
    context: str | None = None,
    auth_info: str | None = None,
    cluster: str | None = None,
) -> EffectiveClientConfig:
    """Read connection fields from the selected context of kubeconfig files.

    Args:
        paths: Kubeconfig files in precedence order.
        context: Context to use instead of ``current-context``.
        auth_info: User entry to use instead of the context's user.
        cluster: Cluster entry to use instead of the context's cluster.

    Returns:
        A partial configuration; empty if nothing could be selected.
    """
    if not paths:
        return EffectiveClientConfig()

    merged = load_kubeconfig(paths)
    context_name = context or merged["current-context"]
    context_entry = merged["contexts"].get(context_name, {}) if context_name else {}
    if context_name and not context_entry:
        logger.debug("kubeconfig_context_not_found", context=context_name)

    cluster_name = cluster or context_entry.get("cluster")
    user_name = auth_info or context_entry.get("user")
    cluster_entry: dict[str, Any] = merged["clusters"].get(cluster_name, {}) if cluster_name else {}
    user_entry: dict[str, Any] = merged["users"].get(user_name, {}) if user_name else {}

    token = user_entry.get("token")
    if not token and user_entry.get("tokenFile"):
        token = Path(user_entry["tokenFile"]).read_text().strip()

    return EffectiveClientConfig.from_source(
        ConfigSource.KUBECONFIG,
        host=cluster_entry.get("server") or None,
        insecure=_flag(cluster_entry.get("insecure-skip-tls-verify")),
        cluster_ca_certificate=_data_or_file(cluster_entry, "certificate-authority"),
        client_certificate=_data_or_file(user_entry, "client-certificate"),
        client_key=_data_or_file(user_entry, "client-key"),
        token=token or None,
        username=user_entry.get("username") or None,
        password=user_entry.get("password") or None,
        exec=_exec_from_kubeconfig(user_entry.get("exec")),
        namespace=context_entry.get("namespace") or None,
    )


# ---------------------------------------------------------------------------
# In-cluster service account
# ---------------------------------------------------------------------------


def in_cluster_available(environ: Mapping[str, str]) -> bool:
    """Return True when running inside a cluster with a mounted service account."""
    host = environ.get("KUBERNETES_SERVICE_HOST", "")
    port = environ.get("KUBERNETES_SERVICE_PORT", "")
    if not host or not port:
        return False
    return SERVICE_ACCOUNT_TOKEN.exists()


def read_in_cluster(environ: Mapping[str, str]) -> EffectiveClientConfig:
    """Read the in-cluster API endpoint and service account credentials."""
    if not in_cluster_available(environ):
        return EffectiveClientConfig()

    host = environ["KUBERNETES_SERVICE_HOST"]
    port = environ["KUBERNETES_SERVICE_PORT"]
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"

    ca = SERVICE_ACCOUNT_CA.read_bytes() if SERVICE_ACCOUNT_CA.exists() else None
    logger.debug("in_cluster_service_account_found", host=host, port=port)

    return EffectiveClientConfig.from_source(
        ConfigSource.IN_CLUSTER,
        host=f"https://{host}:{port}",
        token=SERVICE_ACCOUNT_TOKEN.read_text().strip() or None,
        cluster_ca_certificate=ca,
    )
