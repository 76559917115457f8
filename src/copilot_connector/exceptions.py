"""Exceptions raised by the schema core and its collaborators."""


class ConnectorError(Exception):
    """Base exception for copilot-connector."""


class InvalidInputError(ConnectorError):
    """Raised when a sample or raw document is not valid JSON."""


class MissingIdError(ConnectorError):
    """Raised when a raw ingestion document has no usable id."""

    def __init__(self, message: str = "Document is missing required 'id' field"):
        super().__init__(message)
        self.message = message


class SchemaViolationError(ConnectorError):
    """Raised when a candidate schema fails validation.

    Carries every violated rule so callers can surface all problems at once.
    """

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors) or "Schema validation failed")
        self.errors = errors


class SchemaNotFoundError(ConnectorError):
    """Raised when the schema store holds no schema for a connection."""

    def __init__(self, connection_id: str):
        super().__init__(f"No schema registered for connection '{connection_id}'")
        self.connection_id = connection_id


class ItemNotFoundError(ConnectorError):
    """Raised when an update or delete targets an item the sink does not have."""

    def __init__(self, item_id: str):
        super().__init__(f"External item with ID '{item_id}' not found")
        self.item_id = item_id


class UpstreamError(ConnectorError):
    """Failure reported by the schema store or the item sink.

    The original message is preserved; no retries happen at this layer.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
