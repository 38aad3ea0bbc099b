"""Shared options and error handling for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from helm_connect.config.models import ProviderConfig, load_provider_config
from helm_connect.diagnostics import Diagnostic
from helm_connect.exceptions import BackendBindFailed, ClientConstructionFailed, HelmConnectError

console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML file holding the provider block (defaults to an empty block)",
    ),
]

NamespaceOption = Annotated[
    str | None,
    typer.Option(
        "--namespace",
        "-n",
        help="Namespace to resolve for (defaults to the kubeconfig context's)",
    ),
]


def load_config(path: Path | None) -> ProviderConfig:
    """Load the provider block, exiting with code 1 if it cannot be read.

    Raises:
        typer.Exit: If the file is missing, not a mapping, or has bad keys.
    """
    if path is None:
        return ProviderConfig()
    try:
        return load_provider_config(path)
    except (FileNotFoundError, ValueError) as e:
        # ValidationError is a ValueError
        if isinstance(e, ValidationError):
            console.print(f"[red]Error:[/red] Invalid provider configuration in {escape(str(path))}")
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"])
                console.print(f"    - {escape(loc)}: {escape(err['msg'])}")
        else:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


def print_diagnostics(diagnostics: list[Diagnostic]) -> None:
    """Render diagnostics as a table."""
    table = Table(title="Configuration Diagnostics")
    table.add_column("Severity", no_wrap=True)
    table.add_column("Attribute", style="cyan")
    table.add_column("Summary")
    table.add_column("Detail", style="dim")

    for diagnostic in diagnostics:
        colour = "red" if diagnostic.severity == "error" else "yellow"
        table.add_row(
            f"[{colour}]{diagnostic.severity}[/{colour}]",
            diagnostic.attribute or "-",
            escape(diagnostic.summary),
            escape(diagnostic.detail),
        )
    console.print(table)


def handle_error(error: HelmConnectError) -> None:
    """Print a helm_connect error and exit.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, ClientConstructionFailed):
        console.print("[red]Error:[/red] Cannot build a Kubernetes client")
        console.print(f"  {escape(error.message)}")
        if error.original_error:
            console.print(f"  Cause: {escape(str(error.original_error))}")
        console.print(
            "\n[dim]Hint: Check the kubeconfig path, PEM material and exec plugin.[/dim]"
        )

    elif isinstance(error, BackendBindFailed):
        console.print("[red]Error:[/red] Cannot bind the Helm storage backend")
        console.print(f"  {escape(str(error))}")

    else:
        console.print(f"[red]Error:[/red] {escape(error.message)}")
        if error.detail:
            console.print(f"  {escape(error.detail)}")

    raise typer.Exit(1)
