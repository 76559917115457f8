"""API routers for copilot-connector."""

from copilot_connector.api.routers.items_router import router as items_router
from copilot_connector.api.routers.schema_router import router as schema_router

__all__ = ["items_router", "schema_router"]
