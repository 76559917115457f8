"""Tests for the schema, align and serve CLI commands."""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from copilot_connector import __version__
from copilot_connector.cli.main import app as cli_app
from copilot_connector.config import ConfigManager

runner = CliRunner()


# --- schema infer ---


def test_infer_renders_table(sample_file):
    result = runner.invoke(cli_app, ["schema", "infer", str(sample_file)])

    assert result.exit_code == 0, f"CLI failed: {result.output}"
    assert "Inferred Schema" in result.output
    assert "createdDate" in result.output
    assert "Schema is valid" in result.output


def test_infer_json_output(sample_file):
    result = runner.invoke(cli_app, ["schema", "infer", str(sample_file), "--json"])

    assert result.exit_code == 0, f"CLI failed: {result.output}"
    data = json.loads(result.stdout)
    assert data["errors"] == []
    assert [f["fieldName"] for f in data["fields"]] == ["name", "price", "tags", "createdDate"]


def test_infer_writes_output_file(sample_file, tmp_path):
    output = tmp_path / "fields.json"

    result = runner.invoke(cli_app, ["schema", "infer", str(sample_file), "--output", str(output)])

    assert result.exit_code == 0, f"CLI failed: {result.output}"
    fields = json.loads(output.read_text(encoding="utf-8"))
    assert fields[0]["fieldName"] == "name"
    assert fields[0]["semanticLabel"] == "title"


def test_infer_invalid_json(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")

    result = runner.invoke(cli_app, ["schema", "infer", str(bad)])
    assert result.exit_code == 1


def test_infer_empty_sample_exits_nonzero(tmp_path):
    empty = tmp_path / "empty.json"
    empty.write_text("{}", encoding="utf-8")

    result = runner.invoke(cli_app, ["schema", "infer", str(empty)])

    assert result.exit_code == 1
    assert "validation errors" in result.output


def test_infer_unreadable_sample(tmp_path):
    sample = tmp_path / "latin1.json"
    sample.write_bytes(b'{"name": "\xff"}')

    result = runner.invoke(cli_app, ["schema", "infer", str(sample)])
    assert result.exit_code == 1


# --- schema validate / publish ---


def test_validate_inferred_fields(sample_file, tmp_path):
    output = tmp_path / "fields.json"
    runner.invoke(cli_app, ["schema", "infer", str(sample_file), "--output", str(output)])

    result = runner.invoke(cli_app, ["schema", "validate", str(output)])

    assert result.exit_code == 0, f"CLI failed: {result.output}"
    assert "Schema is valid" in result.output


def test_validate_reports_errors(tmp_path):
    path = tmp_path / "fields.json"
    path.write_text(
        json.dumps([{"fieldName": "flag", "dataType": "Boolean", "isRefinable": True}]),
        encoding="utf-8",
    )

    result = runner.invoke(cli_app, ["schema", "validate", str(path)])

    assert result.exit_code == 1
    assert "cannot be refinable" in result.output


def test_validate_rejects_malformed_file(tmp_path):
    path = tmp_path / "fields.json"
    path.write_text('{"fields": "nope"}', encoding="utf-8")

    result = runner.invoke(cli_app, ["schema", "validate", str(path)])
    assert result.exit_code == 1


def test_publish_writes_schema_store(sample_file, tmp_path):
    output = tmp_path / "fields.json"
    runner.invoke(cli_app, ["schema", "infer", str(sample_file), "--output", str(output)])

    result = runner.invoke(
        cli_app, ["schema", "publish", str(output), "--connection-id", "widgets"]
    )

    assert result.exit_code == 0, f"CLI failed: {result.output}"
    assert "Published 4 fields" in result.output
    schema_path = ConfigManager().config.schema_dir_path / "widgets.json"
    stored = json.loads(schema_path.read_text(encoding="utf-8"))
    assert stored["requiredFields"] == ["name"]


# --- align ---


def test_align_json(schema_file, tmp_path):
    document = tmp_path / "doc.json"
    document.write_text(json.dumps({"id": "p1", "title": "Widget", "isActive": True}))

    result = runner.invoke(
        cli_app, ["align", str(document), "--schema", str(schema_file), "--json"]
    )

    assert result.exit_code == 0, f"CLI failed: {result.output}"
    data = json.loads(result.stdout)
    assert data["isValid"] is True
    assert data["item"]["properties"]["inStock"] is True
    assert data["item"]["properties"]["url"] == "https://example.com/items/p1"


def test_align_missing_id(schema_file, tmp_path):
    document = tmp_path / "doc.json"
    document.write_text(json.dumps({"title": "Widget"}))

    result = runner.invoke(cli_app, ["align", str(document), "--schema", str(schema_file)])

    assert result.exit_code == 1


def test_align_invalid_item_exits_nonzero(schema_file, tmp_path):
    document = tmp_path / "doc.json"
    document.write_text(json.dumps({"id": "p1", "price": "cheap"}))

    result = runner.invoke(cli_app, ["align", str(document), "--schema", str(schema_file)])

    assert result.exit_code == 1
    assert "must be a number" in result.output


# --- serve and version ---


@patch("copilot_connector.cli.commands.serve.init_api_logging")
@patch("copilot_connector.cli.commands.serve.uvicorn.run")
def test_serve_runs_uvicorn(mock_run, mock_logging):
    result = runner.invoke(cli_app, ["serve", "--host", "0.0.0.0", "--port", "9000"])

    assert result.exit_code == 0, f"CLI failed: {result.output}"
    mock_run.assert_called_once()
    assert mock_run.call_args.kwargs["host"] == "0.0.0.0"
    assert mock_run.call_args.kwargs["port"] == 9000


def test_version():
    result = runner.invoke(cli_app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
