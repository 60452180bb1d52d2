from context_engine.models.context import (
    Context,
    ContextChunk,
    ChunkMatch,
    SearchResult,
    ContextReference,
)

__all__ = [
    "Context",
    "ContextChunk",
    "ChunkMatch",
    "SearchResult",
    "ContextReference",
]
