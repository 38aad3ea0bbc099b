"""Tests for the helm-connect CLI."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from helm_connect import __version__
from helm_connect.cli.commands import base
from helm_connect.cli.main import app


@pytest.fixture(autouse=True)
def no_logging_setup() -> Generator[MagicMock]:
    """Keep CLI runs from touching the real log directory."""
    with patch("helm_connect.cli.main.configure_logging") as configure:
        yield configure


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Render tables wide enough that cells are not wrapped."""
    monkeypatch.setattr(base.console, "width", 240)


@pytest.fixture
def write_provider(tmp_path: Path) -> Callable[[dict[str, object]], Path]:
    """Return a factory writing a provider block YAML file."""

    def _write(block: dict[str, object]) -> Path:
        path = tmp_path / "provider.yaml"
        path.write_text(yaml.safe_dump(block))
        return path

    return _write


class TestCLIMain:
    """Test main CLI entry point."""

    @pytest.mark.unit
    def test_help_option(self, cli_runner: CliRunner) -> None:
        """--help lists the commands."""
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "check" in result.stdout
        assert "show" in result.stdout

    @pytest.mark.unit
    def test_version_option(self, cli_runner: CliRunner) -> None:
        """--version prints the version."""
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"helm-connect version {__version__}" in result.stdout

    @pytest.mark.unit
    def test_debug_flag_configures_logging(self, cli_runner: CliRunner, no_logging_setup: MagicMock) -> None:
        """Global flags are passed to configure_logging."""
        cli_runner.invoke(app, ["--debug", "check"])
        no_logging_setup.assert_called_once_with(verbose=False, debug=True)


class TestCheckCommand:
    """Test check command."""

    @pytest.mark.unit
    def test_valid_configuration(
        self,
        cli_runner: CliRunner,
        write_provider: Callable[[dict[str, object]], Path],
    ) -> None:
        """A usable block exits 0."""
        path = write_provider({"kubernetes": {"host": "https://k8s"}, "helm_driver": "ConfigMap"})
        result = cli_runner.invoke(app, ["check", "--config", str(path)])
        assert result.exit_code == 0
        assert "Provider configuration is valid" in result.stdout

    @pytest.mark.unit
    def test_missing_authentication(self, cli_runner: CliRunner) -> None:
        """Without any configuration the check fails."""
        result = cli_runner.invoke(app, ["check"])
        assert result.exit_code == 1
        assert "Provider not configured" in result.stdout

    @pytest.mark.unit
    def test_invalid_driver(
        self,
        cli_runner: CliRunner,
        write_provider: Callable[[dict[str, object]], Path],
    ) -> None:
        """An unknown driver is reported."""
        path = write_provider({"kubernetes": {"host": "https://k8s"}, "helm_driver": "redis"})
        result = cli_runner.invoke(app, ["check", "-c", str(path)])
        assert result.exit_code == 1
        assert "Invalid storage driver: redis used for helm_driver" in result.stdout

    @pytest.mark.unit
    def test_missing_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """A missing config file exits 1."""
        result = cli_runner.invoke(app, ["check", "--config", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 1
        assert "not found" in result.stdout

    @pytest.mark.unit
    def test_malformed_yaml(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """A YAML syntax error exits 1 with an error line."""
        path = tmp_path / "provider.yaml"
        path.write_text('kubernetes: {host: "https://k8s"\n')
        result = cli_runner.invoke(app, ["check", "--config", str(path)])
        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert "not valid YAML" in result.stdout

    @pytest.mark.unit
    def test_unknown_key(
        self,
        cli_runner: CliRunner,
        write_provider: Callable[[dict[str, object]], Path],
    ) -> None:
        """Unknown keys in the block are reported."""
        path = write_provider({"kubernetes": {"host": "https://k8s"}, "load_config_file": True})
        result = cli_runner.invoke(app, ["check", "--config", str(path)])
        assert result.exit_code == 1
        assert "Invalid provider configuration" in result.stdout
        assert "load_config_file" in result.stdout


class TestShowCommand:
    """Test show command."""

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_shows_sources(
        self,
        cli_runner: CliRunner,
        kubeconfig_file: Path,
        write_provider: Callable[[dict[str, object]], Path],
    ) -> None:
        """Resolved fields are listed with their source and secrets masked."""
        path = write_provider({"kubernetes": {"config_path": str(kubeconfig_file), "insecure": False}})
        result = cli_runner.invoke(app, ["show", "--config", str(path)])
        assert result.exit_code == 0
        assert "https://prod.example.com:6443" in result.stdout
        assert "kubeconfig" in result.stdout
        assert "<redacted>" in result.stdout
        assert "prod-token" not in result.stdout
        assert "apps" in result.stdout
        assert "secret" in result.stdout

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_namespace_override(
        self,
        cli_runner: CliRunner,
        kubeconfig_file: Path,
        write_provider: Callable[[dict[str, object]], Path],
    ) -> None:
        """--namespace replaces the context namespace."""
        path = write_provider({"kubernetes": {"config_path": str(kubeconfig_file)}})
        result = cli_runner.invoke(app, ["show", "--config", str(path), "--namespace", "billing"])
        assert result.exit_code == 0
        assert "billing" in result.stdout

    @pytest.mark.unit
    def test_unconfigured(self, cli_runner: CliRunner) -> None:
        """Validation errors are printed and exit 1."""
        result = cli_runner.invoke(app, ["show"])
        assert result.exit_code == 1
        assert "Provider not configured" in result.stdout

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_malformed_kubeconfig(
        self,
        cli_runner: CliRunner,
        tmp_path: Path,
        write_provider: Callable[[dict[str, object]], Path],
    ) -> None:
        """A broken kubeconfig is a client construction error."""
        broken = tmp_path / "broken"
        broken.write_text("clusters: [unclosed")
        path = write_provider({"kubernetes": {"config_path": str(broken)}})
        result = cli_runner.invoke(app, ["show", "--config", str(path)])
        assert result.exit_code == 1
        assert "Cannot build a Kubernetes client" in result.stdout
