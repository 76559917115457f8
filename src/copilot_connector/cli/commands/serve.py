"""Run the ingestion API with uvicorn."""

import typer
import uvicorn

from copilot_connector.api.app import create_app
from copilot_connector.cli.app import app
from copilot_connector.config import ConfigManager, init_api_logging


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
):
    """Start the ingestion and provisioning HTTP API."""
    init_api_logging()
    config = ConfigManager().config
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)
