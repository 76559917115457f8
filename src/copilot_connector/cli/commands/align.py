"""Align a raw document against a registered schema file, offline."""

import json
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from copilot_connector.cli.app import app
from copilot_connector.config import ConfigManager
from copilot_connector.exceptions import ConnectorError
from copilot_connector.schema.alignment import align_document
from copilot_connector.schema.validator import validate_item
from copilot_connector.schemas.connection import SchemaConfiguration
from copilot_connector.schemas.reports import ValidationReport

console = Console()


@app.command()
def align(
    document: Annotated[Path, typer.Argument(help="Raw JSON document to align")],
    schema: Annotated[
        Path, typer.Option("--schema", "-s", help="Published schema JSON (SchemaConfiguration)")
    ],
    as_json: bool = typer.Option(False, "--json", help="Print the aligned item as JSON"),
):
    """Show how a document would be aligned and whether it would be accepted."""
    try:
        schema_config = SchemaConfiguration.model_validate_json(schema.read_text(encoding="utf-8"))
        raw = document.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError, ValidationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    policy = ConfigManager().config.alignment_policy()
    try:
        result = align_document(raw, schema_config, policy)
    except ConnectorError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    validation = validate_item(result.item, schema_config)
    report = ValidationReport(
        is_valid=validation.is_valid,
        item_id=result.item.id,
        errors=validation.errors,
        warnings=result.warnings,
        item=result.item,
    )

    if as_json:
        typer.echo(json.dumps(report.model_dump(mode="json", by_alias=True), indent=2))
    else:
        table = Table(title=f"Aligned Item: {result.item.id}")
        table.add_column("Property", style="cyan")
        table.add_column("Value")
        for name, value in result.item.properties.items():
            table.add_row(name, json.dumps(value))
        console.print(table)

        for warning in result.warnings:
            console.print(f"[yellow]warning:[/yellow] {warning}")
        for error in validation.errors:
            console.print(f"[red]error:[/red] {error}")

    if not validation.is_valid:
        raise typer.Exit(1)
