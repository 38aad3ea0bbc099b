"""Unit tests for ActionConfiguration."""

from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import pytest
from structlog.testing import capture_logs

from helm_connect.config.driver import StorageDriver
from helm_connect.config.settings import Settings
from helm_connect.helm.action import ActionConfiguration, make_log_sink
from helm_connect.helm.storage import SQL_CONNECTION_ENV, MemoryStorage, SqlStorage
from helm_connect.kubernetes.models import EffectiveClientConfig


@pytest.fixture
def settings() -> Settings:
    """Fixed Helm settings."""
    return Settings(
        debug=False,
        plugins_directory="/p",
        registry_config="/r",
        repository_config="/rc",
        repository_cache="/c",
    )


def _action(settings: Settings, client_config: EffectiveClientConfig, **overrides: object) -> ActionConfiguration:
    values: dict[str, object] = {
        "namespace": "apps",
        "driver": StorageDriver.MEMORY,
        "api_client": MagicMock(),
        "storage": MemoryStorage("apps"),
        "settings": settings,
        "client_config": client_config,
        "log": make_log_sink(False),
    }
    values.update(overrides)
    return ActionConfiguration(**values)  # type: ignore[arg-type]


@pytest.mark.unit
class TestMakeLogSink:
    """Tests for make_log_sink."""

    def test_disabled_sink_discards(self) -> None:
        """A disabled sink emits nothing."""
        with capture_logs() as logs:
            make_log_sink(False)("dropped %s", "event")
        assert logs == []

    def test_enabled_sink_formats(self) -> None:
        """An enabled sink formats printf style and binds context."""
        with capture_logs() as logs:
            make_log_sink(True, namespace="apps")("listing %d releases", 3)
        assert logs == [{"event": "listing 3 releases", "namespace": "apps", "log_level": "debug"}]


@pytest.mark.unit
class TestActionConfiguration:
    """Tests for ActionConfiguration."""

    def test_helm_env_minimal(self, settings: Settings) -> None:
        """Settings, namespace and driver are always rendered."""
        env = _action(settings, EffectiveClientConfig()).helm_env()
        assert env == {
            **settings.helm_env(),
            "HELM_NAMESPACE": "apps",
            "HELM_DRIVER": "memory",
        }

    def test_helm_env_connection(self, settings: Settings) -> None:
        """Connection fields map to the Helm CLI's variables."""
        client_config = EffectiveClientConfig(
            host="https://k8s",
            token="abc",
            insecure=False,
            config_paths=["/a", "/b"],
            config_context="prod",
        )
        env = _action(settings, client_config).helm_env()
        assert env["HELM_KUBEAPISERVER"] == "https://k8s"
        assert env["HELM_KUBETOKEN"] == "abc"
        assert env["HELM_KUBEINSECURE_SKIP_TLS_VERIFY"] == "false"
        assert env["HELM_KUBECONTEXT"] == "prod"
        assert env["KUBECONFIG"] == os.pathsep.join(["/a", "/b"])

    def test_helm_env_sql(self, settings: Settings) -> None:
        """The SQL connection string is passed through."""
        dsn = "postgres://db/helm"
        action = _action(
            settings,
            EffectiveClientConfig(),
            driver=StorageDriver.SQL,
            storage=SqlStorage(dsn, "apps"),
        )
        env = action.helm_env()
        assert env["HELM_DRIVER"] == "sql"
        assert env[SQL_CONNECTION_ENV] == dsn

    @pytest.mark.kubernetes
    def test_core_v1_cached(self, settings: Settings) -> None:
        """The CoreV1Api is created once per action configuration."""
        action = _action(settings, EffectiveClientConfig())
        with patch("kubernetes.client.CoreV1Api") as core_v1_cls:
            first = action.core_v1
            second = action.core_v1
        assert first is second
        core_v1_cls.assert_called_once_with(action.api_client)

    def test_context_manager_closes_client(self, settings: Settings) -> None:
        """Leaving the context closes the client."""
        action = _action(settings, EffectiveClientConfig())
        with action as entered:
            assert entered is action
        action.api_client.close.assert_called_once()  # type: ignore[attr-defined]
