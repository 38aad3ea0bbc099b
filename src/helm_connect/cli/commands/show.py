"""Show command for printing the resolved connection settings."""

from __future__ import annotations

import structlog
import typer
from rich.markup import escape
from rich.table import Table

from helm_connect.cli.commands.base import (
    ConfigOption,
    NamespaceOption,
    console,
    handle_error,
    load_config,
    print_diagnostics,
)
from helm_connect.diagnostics import has_errors
from helm_connect.exceptions import HelmConnectError
from helm_connect.meta import Provider

logger = structlog.get_logger()


def show(
    config: ConfigOption = None,
    namespace: NamespaceOption = None,
) -> None:
    """Show the effective Kubernetes client configuration and Helm settings."""
    provider_config = load_config(config)

    provider = Provider()
    diagnostics = provider.configure(provider_config)
    if has_errors(diagnostics):
        print_diagnostics(diagnostics)
        raise typer.Exit(1)

    meta = provider.meta
    try:
        resolved = meta.resolve_client_config(namespace)
    except HelmConnectError as e:
        handle_error(e)
        return

    table = Table(title="Kubernetes Client Configuration")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Source", style="magenta")
    table.add_column("Value")
    for name, value in resolved.redacted().items():
        source = resolved.sources.get(name)
        table.add_row(name, str(source) if source else "-", escape(value))
    console.print(table)

    settings = Table(title="Helm Settings")
    settings.add_column("Setting", style="cyan", no_wrap=True)
    settings.add_column("Value")
    settings.add_row("driver", str(meta.driver))
    for key, value in meta.settings.model_dump().items():
        settings.add_row(key, escape(str(value).lower() if isinstance(value, bool) else str(value)))
    console.print(settings)

    logger.info("Resolved configuration shown", fields=len(resolved.sources))
