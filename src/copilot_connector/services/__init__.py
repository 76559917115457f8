"""Services and external collaborators for copilot-connector."""
