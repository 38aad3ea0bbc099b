"""Build a Kubernetes API client from a resolved configuration.

The resolved configuration is rendered as a single-context kubeconfig
document and loaded with the official client's kubeconfig loader, so exec
plugins, basic auth, bearer tokens and client certificates all go through
the same code path kubectl users expect.
"""

from __future__ import annotations

import base64
import binascii
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from helm_connect.exceptions import ClientConstructionFailed
from helm_connect.kubernetes.models import EffectiveClientConfig

if TYPE_CHECKING:
    from kubernetes.client import ApiClient

logger = structlog.get_logger()

CONTEXT_NAME = "helm-connect"

_PEM_BLOCK_RE = re.compile(
    r"-----BEGIN (?P<label>[A-Z0-9 ]+)-----(?P<body>.*?)-----END (?P=label)-----",
    re.DOTALL,
)


def check_pem(data: bytes, field: str, *, key: bool = False) -> None:
    """Check that ``data`` holds well formed PEM blocks of the expected kind.

    Args:
        data: Raw PEM bytes.
        field: Option name used in the error message.
        key: Expect a private key instead of certificates.

    Raises:
        ValueError: If no block is found, a block has the wrong label, or a
            block body is not valid base64.
    """
    text = data.decode("ascii", errors="replace")
    blocks = list(_PEM_BLOCK_RE.finditer(text))
    if not blocks:
        raise ValueError(f"{field} does not contain PEM-encoded data")

    for block in blocks:
        label = block.group("label")
        if key and not label.endswith("PRIVATE KEY"):
            raise ValueError(f"{field} contains a {label} block, expected a private key")
        if not key and label != "CERTIFICATE":
            raise ValueError(f"{field} contains a {label} block, expected CERTIFICATE")
        body = "".join(block.group("body").split())
        try:
            base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"{field} has a malformed {label} block") from e


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def to_kubeconfig_dict(config: EffectiveClientConfig) -> dict[str, Any]:
    """Render a resolved configuration as a single-context kubeconfig mapping."""
    cluster: dict[str, Any] = {"server": config.host}
    if config.cluster_ca_certificate:
        cluster["certificate-authority-data"] = _b64(config.cluster_ca_certificate)
    if config.insecure is not None:
        cluster["insecure-skip-tls-verify"] = config.insecure

    user: dict[str, Any] = {}
    if config.client_certificate:
        user["client-certificate-data"] = _b64(config.client_certificate)
    if config.client_key:
        user["client-key-data"] = _b64(config.client_key)
    if config.token:
        user["token"] = config.token
    if config.username:
        user["username"] = config.username
    if config.password:
        user["password"] = config.password
    if config.exec:
        exec_entry: dict[str, Any] = {
            "apiVersion": config.exec.api_version,
            "command": config.exec.command,
            "args": list(config.exec.args),
        }
        if config.exec.env:
            exec_entry["env"] = [{"name": k, "value": v} for k, v in config.exec.env.items()]
        user["exec"] = exec_entry

    context: dict[str, Any] = {"cluster": CONTEXT_NAME, "user": CONTEXT_NAME}
    if config.namespace:
        context["namespace"] = config.namespace

    return {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{"name": CONTEXT_NAME, "cluster": cluster}],
        "users": [{"name": CONTEXT_NAME, "user": user}],
        "contexts": [{"name": CONTEXT_NAME, "context": context}],
        "current-context": CONTEXT_NAME,
    }


def _check_paths(config: EffectiveClientConfig) -> None:
    """A single configured kubeconfig must exist; in a path list, missing files are skipped."""
    if config.config_path and not Path(config.config_path).expanduser().is_file():
        raise FileNotFoundError(f"kubeconfig not found: {config.config_path}")


def build_api_client(config: EffectiveClientConfig) -> ApiClient:
    """Create an isolated Kubernetes API client for a resolved configuration.

    Uses ``new_client_from_config_dict`` with ``persist_config=False`` so the
    kubernetes package's global default configuration is never touched.

    Args:
        config: The resolved client configuration.

    Returns:
        A new ApiClient.

    Raises:
        ClientConstructionFailed: On a missing kubeconfig, malformed PEM
            material, a missing API server host, or an exec plugin that
            fails or returns no credentials.
    """
    from kubernetes.config import ConfigException, new_client_from_config_dict

    try:
        _check_paths(config)
        if config.client_certificate:
            check_pem(config.client_certificate, "client_certificate")
        if config.client_key:
            check_pem(config.client_key, "client_key", key=True)
        if config.cluster_ca_certificate:
            check_pem(config.cluster_ca_certificate, "cluster_ca_certificate")
        if not config.host:
            raise ValueError("no Kubernetes API server host could be resolved from any source")

        api_client = new_client_from_config_dict(
            to_kubeconfig_dict(config),
            context=CONTEXT_NAME,
            persist_config=False,
        )
    except (ConfigException, OSError, ValueError) as e:
        raise ClientConstructionFailed(original_error=e) from e

    if config.exec:
        configuration = api_client.configuration
        if not configuration.api_key.get("authorization") and not configuration.cert_file:
            api_client.close()
            raise ClientConstructionFailed(
                message=f"Exec credential plugin '{config.exec.command}' did not produce credentials",
            )

    logger.debug(
        "kubernetes_api_client_created",
        host=config.host,
        namespace=config.namespace,
    )
    return api_client
