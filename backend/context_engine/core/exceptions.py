"""
Context Engine error types.

Every core operation either completes or raises one of these. The API layer
maps them to JSON error responses using ``status_code`` and ``code``.
"""
from typing import Any


class ContextEngineError(Exception):
    """Base exception for context engine errors."""

    status_code = 500
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, **details: Any):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(ContextEngineError):
    """Operation referenced a context id absent from the store."""
    status_code = 404
    code = "CONTEXT_NOT_FOUND"
    message = "Context not found"


class InvalidConfigError(ContextEngineError):
    """Chunking, embedding or search parameters are out of range."""
    status_code = 400
    code = "INVALID_CONFIG"
    message = "Invalid configuration"


class DimensionMismatchError(ContextEngineError):
    """Two vectors of different length were compared."""
    status_code = 500
    code = "DIMENSION_MISMATCH"
    message = "Embedding dimensions do not match"
