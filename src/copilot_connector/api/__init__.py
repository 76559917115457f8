"""HTTP API for copilot-connector."""
