"""Root Typer application. Command modules register themselves on import."""

from typing import Optional

import typer

from copilot_connector import __version__
from copilot_connector.config import init_cli_logging


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"copilot-connector {__version__}")
        raise typer.Exit()


app = typer.Typer(name="copilot-connector", help="Schema inference and item ingestion for external connections")


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Copilot connector command line."""
    init_cli_logging()
