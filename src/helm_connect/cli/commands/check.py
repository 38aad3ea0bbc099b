"""Check command for validating a provider block."""

from __future__ import annotations

import structlog
import typer

from helm_connect.cli.commands.base import ConfigOption, console, load_config, print_diagnostics
from helm_connect.diagnostics import has_errors
from helm_connect.validation import validate

logger = structlog.get_logger()


def check(config: ConfigOption = None) -> None:
    """Validate a provider block against the current environment."""
    provider_config = load_config(config)
    logger.info("Validating provider configuration", path=str(config) if config else None)

    diagnostics = validate(provider_config)
    if not diagnostics:
        console.print("[green]Provider configuration is valid.[/green]")
        return

    print_diagnostics(diagnostics)
    if has_errors(diagnostics):
        raise typer.Exit(1)
