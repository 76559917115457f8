"""CLI test fixtures."""

import json
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def no_cli_logging(monkeypatch):
    """Keep the CLI callback from reconfiguring loguru sinks during tests."""
    monkeypatch.setattr("copilot_connector.cli.app.init_cli_logging", lambda: None)


@pytest.fixture
def sample_file(tmp_path, widget_sample) -> Path:
    path = tmp_path / "sample.json"
    path.write_text(json.dumps(widget_sample), encoding="utf-8")
    return path


@pytest.fixture
def schema_file(tmp_path, product_schema) -> Path:
    path = tmp_path / "products.schema.json"
    path.write_text(product_schema.model_dump_json(by_alias=True), encoding="utf-8")
    return path
