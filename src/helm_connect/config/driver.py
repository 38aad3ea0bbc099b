"""Helm storage driver enumeration."""

from __future__ import annotations

from enum import StrEnum

from helm_connect.exceptions import DriverInvalid

DEFAULT_DRIVER = "secret"


class StorageDriver(StrEnum):
    """Backends Helm can persist release state to."""

    MEMORY = "memory"
    CONFIGMAP = "configmap"
    SECRET = "secret"
    SQL = "sql"

    @classmethod
    def names(cls) -> list[str]:
        """Return the valid driver names in declaration order."""
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: str) -> StorageDriver:
        """Parse a driver name case-insensitively.

        Args:
            value: Driver name as supplied by the user (e.g. ``ConfigMap``).

        Returns:
            The matching StorageDriver.

        Raises:
            DriverInvalid: If the name is not one of the supported drivers.
        """
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise DriverInvalid(normalized, cls.names())
