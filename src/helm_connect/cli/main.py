"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from helm_connect import __version__
from helm_connect.cli.commands import check, show
from helm_connect.logging.config import configure_logging

app = typer.Typer(
    name="helm-connect",
    help="Inspect how a Helm provider block resolves to a Kubernetes connection.",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"helm-connect version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
) -> None:
    """helm-connect - validate provider blocks and show resolved cluster access."""
    configure_logging(verbose=verbose, debug=debug)


app.command()(check.check)
app.command()(show.show)


if __name__ == "__main__":
    app()
