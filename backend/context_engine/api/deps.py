"""
Shared FastAPI dependencies.
"""
from fastapi import Request

from context_engine.services.context import ContextManager


def get_context_manager(request: Request) -> ContextManager:
    """Context manager created during application startup."""
    return request.app.state.context_manager
