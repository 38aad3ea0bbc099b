"""Unit tests for the exception hierarchy and diagnostics."""

from __future__ import annotations

import pytest

from helm_connect.diagnostics import Diagnostic, has_errors
from helm_connect.exceptions import (
    AuthenticationMissing,
    BackendBindFailed,
    ClientConstructionFailed,
    ConfigPathConflict,
    ConfigurationError,
    DriverInvalid,
    HelmConnectError,
    StorageError,
)


@pytest.mark.unit
class TestHelmConnectError:
    """Tests for the base error."""

    def test_str_with_detail(self) -> None:
        """Detail is appended to the message."""
        assert str(HelmConnectError("Failed", detail="because")) == "Failed: because"
        assert str(HelmConnectError("Failed")) == "Failed"

    def test_to_diagnostic(self) -> None:
        """Errors render as error-severity diagnostics."""
        diagnostic = HelmConnectError("Failed", detail="because", attribute="helm_driver").to_diagnostic()
        assert diagnostic == Diagnostic(
            severity="error",
            summary="Failed",
            detail="because",
            attribute="helm_driver",
        )

    @pytest.mark.parametrize(
        "error",
        [
            AuthenticationMissing(["host"]),
            DriverInvalid("redis", ["secret"]),
            ConfigPathConflict("/a", ["/b"]),
        ],
    )
    def test_configuration_errors(self, error: HelmConnectError) -> None:
        """Configuration problems share a base class."""
        assert isinstance(error, ConfigurationError)


@pytest.mark.unit
class TestWrappedErrors:
    """Tests for errors carrying an original error."""

    def test_client_construction_failed(self) -> None:
        """The cause is kept and shown."""
        cause = ValueError("bad PEM")
        error = ClientConstructionFailed(original_error=cause)
        assert error.original_error is cause
        assert str(error) == "Failed to build Kubernetes client configuration: bad PEM"

    def test_backend_bind_failed_distinct(self) -> None:
        """Bind failures are a separate class from construction failures."""
        error = BackendBindFailed(driver="sql", namespace="apps", original_error=ValueError("no DSN"))
        assert not isinstance(error, ClientConstructionFailed)
        assert str(error) == "Failed to initialize Helm storage backend: no DSN [driver=sql namespace=apps]"

    def test_backend_bind_failed_without_target(self) -> None:
        """Without a driver no target suffix is added."""
        assert str(BackendBindFailed()) == "Failed to initialize Helm storage backend"

    def test_storage_error(self) -> None:
        """StorageError keeps its cause."""
        cause = RuntimeError("timeout")
        assert StorageError("List failed", original_error=cause).original_error is cause


@pytest.mark.unit
class TestDiagnostics:
    """Tests for Diagnostic and has_errors."""

    def test_has_errors(self) -> None:
        """Only error severity counts."""
        warning = Diagnostic(severity="warning", summary="careful")
        error = Diagnostic(summary="broken")
        assert not has_errors([])
        assert not has_errors([warning])
        assert has_errors([warning, error])

    def test_frozen(self) -> None:
        """Diagnostics are immutable."""
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            Diagnostic(summary="x").summary = "y"  # type: ignore[misc]
