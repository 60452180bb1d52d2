"""
Services module - Application business logic layer.

Modules:
- context: Chunking, embedding, storage and similarity search
"""
from context_engine.services.context import ContextManager

__all__ = [
    "ContextManager",
]
