"""CLI entry point: imports command modules so they register on the app."""

from copilot_connector.cli.app import app

# Register commands
from copilot_connector.cli.commands import align, schema, serve  # noqa: F401

if __name__ == "__main__":  # pragma: no cover
    app()
