"""Environment variable helpers.

Every helper takes the environment as an explicit mapping so callers can pass
a snapshot instead of reading ``os.environ`` at arbitrary points.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

# Spellings accepted by Go's strconv.ParseBool, which the KUBE_* and HELM_*
# variables have always been parsed with.
_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(value: str | None) -> bool | None:
    """Parse a boolean string.

    Returns:
        True or False for a recognised spelling, None for anything else
        (including None and the empty string).
    """
    if value is None:
        return None
    value = value.strip()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


def env_str(environ: Mapping[str, str], name: str) -> str | None:
    """Return an environment variable, treating empty values as unset."""
    value = environ.get(name)
    if not value:
        return None
    return value


def env_bool(environ: Mapping[str, str], name: str) -> bool | None:
    """Return an environment variable parsed as a tri-state boolean."""
    return parse_bool(environ.get(name))


def split_path_list(value: str | None) -> list[str]:
    """Split a PATH-style list (``os.pathsep`` separated), dropping empty entries."""
    if not value:
        return []
    return [part for part in value.split(os.pathsep) if part]
