"""helm_connect exception hierarchy."""

from __future__ import annotations

from collections.abc import Sequence

from helm_connect.diagnostics import Diagnostic

AUTH_DOCUMENTATION_URL = "https://registry.terraform.io/providers/hashicorp/helm/latest/docs#authentication"


class HelmConnectError(Exception):
    """Base exception for helm_connect.

    Attributes:
        message: Human-readable error message.
        detail: Longer remediation text, if any.
        attribute: Configuration option the error refers to, if any.
    """

    def __init__(
        self,
        message: str,
        detail: str = "",
        attribute: str | None = None,
    ) -> None:
        """Initialize HelmConnectError.

        Args:
            message: Human-readable error message.
            detail: Longer remediation text.
            attribute: Configuration option the error refers to.
        """
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.attribute = attribute

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def to_diagnostic(self) -> Diagnostic:
        """Render the error as an error-severity diagnostic."""
        return Diagnostic(
            severity="error",
            summary=self.message,
            detail=self.detail,
            attribute=self.attribute,
        )


class ConfigurationError(HelmConnectError):
    """Raised when the provider configuration itself is unusable."""


class AuthenticationMissing(ConfigurationError):
    """No Kubernetes authentication mechanism is configured.

    Attributes:
        checked: The mechanisms that were looked for, in check order.
    """

    def __init__(self, checked: Sequence[str]) -> None:
        """Initialize AuthenticationMissing.

        Args:
            checked: Names of the options that were checked.
        """
        self.checked = list(checked)
        super().__init__(
            message="Provider not configured",
            detail=(
                "you must configure a path to your kubeconfig or explicitly supply "
                "credentials via the provider block or environment variables. "
                f"None of the following were set: {', '.join(self.checked)}. "
                f"See our documentation at: {AUTH_DOCUMENTATION_URL}"
            ),
            attribute="kubernetes",
        )


class DriverInvalid(ConfigurationError):
    """The storage driver name is not one Helm supports.

    Attributes:
        driver: The rejected driver name, lower-cased.
        valid: The accepted driver names.
    """

    def __init__(self, driver: str, valid: Sequence[str]) -> None:
        """Initialize DriverInvalid.

        Args:
            driver: The rejected driver name.
            valid: The accepted driver names.
        """
        self.driver = driver.lower()
        self.valid = list(valid)
        super().__init__(
            message=f"Invalid storage driver: {self.driver} used for helm_driver",
            detail=(
                "Helm backend storage driver must be set to one of the following values: "
                f"{', '.join(self.valid)}"
            ),
            attribute="helm_driver",
        )


class ConfigPathConflict(ConfigurationError):
    """Both a single kubeconfig path and a list of paths were configured."""

    def __init__(self, config_path: str, config_paths: Sequence[str]) -> None:
        """Initialize ConfigPathConflict.

        Args:
            config_path: The single path that was set.
            config_paths: The path list that was set.
        """
        self.config_path = config_path
        self.config_paths = list(config_paths)
        super().__init__(
            message="Conflicting kubeconfig paths",
            detail=(
                f"config_path ({config_path}) and config_paths ({', '.join(self.config_paths)}) "
                "are mutually exclusive; set only one of them (or KUBE_CONFIG_PATH / KUBE_CONFIG_PATHS)"
            ),
            attribute="kubernetes.config_path",
        )


class ClientConstructionFailed(HelmConnectError):
    """A Kubernetes client could not be built from the resolved configuration.

    Covers malformed PEM material, unreadable kubeconfig files and exec
    credential plugin failures.
    """

    def __init__(
        self,
        message: str = "Failed to build Kubernetes client configuration",
        original_error: Exception | None = None,
    ) -> None:
        """Initialize ClientConstructionFailed.

        Args:
            message: Human-readable error message.
            original_error: The exception that caused this error.
        """
        super().__init__(message=message, detail=str(original_error) if original_error else "")
        self.original_error = original_error


class BackendBindFailed(HelmConnectError):
    """The Helm storage backend could not be bound to a resolved client."""

    def __init__(
        self,
        message: str = "Failed to initialize Helm storage backend",
        driver: str | None = None,
        namespace: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize BackendBindFailed.

        Args:
            message: Human-readable error message.
            driver: The storage driver being bound.
            namespace: The namespace being bound.
            original_error: The exception that caused this error.
        """
        super().__init__(message=message, detail=str(original_error) if original_error else "")
        self.driver = driver
        self.namespace = namespace
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation including the binding target."""
        text = super().__str__()
        if self.driver:
            text += f" [driver={self.driver}"
            if self.namespace:
                text += f" namespace={self.namespace}"
            text += "]"
        return text


class StorageError(HelmConnectError):
    """A query against a bound storage backend failed."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """Initialize StorageError.

        Args:
            message: Human-readable error message.
            original_error: The exception that caused this error.
        """
        super().__init__(message=message, detail=str(original_error) if original_error else "")
        self.original_error = original_error


class ProviderStateError(HelmConnectError):
    """A provider was used before configuration or configured twice."""
