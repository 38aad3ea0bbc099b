"""Structured diagnostics returned by configuration checks."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Diagnostic(BaseModel):
    """A single configuration finding.

    Attributes:
        severity: ``error`` blocks configuration, ``warning`` does not.
        summary: One line description of the problem.
        detail: Remediation text shown to the user.
        attribute: Dotted path of the offending option, if any.
    """

    model_config = ConfigDict(frozen=True)

    severity: Literal["error", "warning"] = "error"
    summary: str
    detail: str = ""
    attribute: str | None = Field(default=None, description="Option the finding refers to")


def has_errors(diagnostics: list[Diagnostic]) -> bool:
    """Return True if any diagnostic has error severity."""
    return any(d.severity == "error" for d in diagnostics)
