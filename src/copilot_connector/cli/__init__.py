"""CLI tools for copilot-connector."""
