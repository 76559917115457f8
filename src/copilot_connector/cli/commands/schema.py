"""Schema CLI commands.

Registered as a subcommand group: `copilot-connector schema infer`,
`copilot-connector schema validate`, `copilot-connector schema publish`.

Results render as Rich tables by default; --json prints the camelCase
payload the HTTP API returns.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from copilot_connector.cli.app import app
from copilot_connector.config import ConfigManager
from copilot_connector.exceptions import ConnectorError, SchemaViolationError
from copilot_connector.schema.inference import FieldDefinition
from copilot_connector.schemas.reports import FieldDefinitionModel, InferenceReport
from copilot_connector.services.provisioning_service import (
    ProvisioningService,
    from_field_model,
)
from copilot_connector.services.schema_store import FileSchemaStore

console = Console()

schema_app = typer.Typer(help="Schema inference and publication commands")
app.add_typer(schema_app, name="schema")


def _provisioning_service() -> ProvisioningService:
    config = ConfigManager().config
    return ProvisioningService(FileSchemaStore(config.schema_dir_path), config)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        typer.echo(f"Cannot read {path}: {e}", err=True)
        raise typer.Exit(1)


def load_field_file(path: Path) -> list[FieldDefinition]:
    """Read field definitions saved by `schema infer --output`.

    Accepts either a bare list of fields or an inference report with a
    "fields" key.
    """
    data = json.loads(_read_text(path))
    if isinstance(data, dict):
        data = data.get("fields", [])
    if not isinstance(data, list):
        raise ValueError("Schema file must contain a list of fields")
    return [from_field_model(FieldDefinitionModel.model_validate(item)) for item in data]


# --- Rendering helpers ---


def _render_fields_table(report: InferenceReport) -> None:
    table = Table(title="Inferred Schema")
    table.add_column("Field", style="cyan")
    table.add_column("Type")
    table.add_column("Label")
    table.add_column("Flags")
    table.add_column("Path", style="dim")
    table.add_column("Sample", style="dim")

    for f in report.fields:
        flags = "".join(
            letter if enabled else "-"
            for letter, enabled in (
                ("S", f.is_searchable),
                ("Q", f.is_queryable),
                ("R", f.is_retrievable),
                ("F", f.is_refinable),
            )
        )
        label = f.semantic_label.value if f.semantic_label.value != "none" else ""
        table.add_row(
            f.field_name,
            f.data_type.value,
            f"[green]{label}[/green]" if label else "",
            flags,
            f.json_path,
            str(f.sample_value) if f.sample_value is not None else "",
        )

    console.print(table)
    console.print("[dim]Flags: S=searchable Q=queryable R=retrievable F=refinable[/dim]")


def _render_errors(errors: list[str]) -> None:
    if not errors:
        console.print("[green]Schema is valid.[/green]")
        return
    console.print(f"[red]{len(errors)} validation errors:[/red]")
    for error in errors:
        console.print(f"  [red]-[/red] {error}")


# --- Commands ---


@schema_app.command()
def infer(
    sample: Annotated[Path, typer.Argument(help="Sample JSON document to infer from")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the inferred fields as JSON to this file"),
    ] = None,
    as_json: bool = typer.Option(False, "--json", help="Print the inference report as JSON"),
):
    """Infer a labeled schema from a sample document.

    Validation problems are listed after the table; the exit code is 1 when
    the inferred schema would be rejected at publish time.
    """
    try:
        report = _provisioning_service().infer_report(_read_text(sample))
    except ConnectorError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    payload = report.model_dump(mode="json", by_alias=True)
    if output:
        output.write_text(json.dumps(payload["fields"], indent=2), encoding="utf-8")
        logger.info(f"Wrote {len(report.fields)} fields to {output}")

    if as_json:
        typer.echo(json.dumps(payload, indent=2))
    else:
        _render_fields_table(report)
        _render_errors(report.errors)
        if output:
            console.print(f"\nSaved fields to [cyan]{output}[/cyan]")

    if report.errors:
        raise typer.Exit(1)


@schema_app.command()
def validate(
    schema_file: Annotated[Path, typer.Argument(help="Field list written by `schema infer --output`")],
):
    """Check a (possibly hand-edited) field list against the schema rules."""
    try:
        fields = load_field_file(schema_file)
    except (ValueError, ValidationError) as e:
        typer.echo(f"Invalid schema file: {e}", err=True)
        raise typer.Exit(1)

    errors = _provisioning_service().validate(fields)
    _render_errors(errors)
    if errors:
        raise typer.Exit(1)


@schema_app.command()
def publish(
    schema_file: Annotated[Path, typer.Argument(help="Field list written by `schema infer --output`")],
    connection_id: Annotated[
        Optional[str],
        typer.Option("--connection-id", help="Connection to publish to. Defaults to the configured one."),
    ] = None,
):
    """Validate a field list and register it in the schema store."""
    try:
        fields = load_field_file(schema_file)
    except (ValueError, ValidationError) as e:
        typer.echo(f"Invalid schema file: {e}", err=True)
        raise typer.Exit(1)

    service = _provisioning_service()
    target = connection_id or service.config.connection_id
    try:
        schema = asyncio.run(service.publish(target, fields))
    except SchemaViolationError as e:
        _render_errors(e.errors)
        raise typer.Exit(1)
    except ConnectorError as e:
        logger.error(f"Error during schema publish: {e}")
        typer.echo(f"Error during schema publish: {e}", err=True)
        raise typer.Exit(1)

    console.print(
        f"[green]Published {len(schema.fields)} fields to connection '{target}'.[/green] "
        f"Required: {', '.join(schema.required_fields) or 'none'}"
    )
