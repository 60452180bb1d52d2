"""
Context management module for chunked semantic search.
Provides chunking, embedding, storage and retrieval services.
"""
from context_engine.services.context.chunker import Chunker, chunk_text
from context_engine.services.context.embedding import EmbeddingService, HashingEmbeddingService
from context_engine.services.context.similarity import cosine_score
from context_engine.services.context.store import ContextStore, InMemoryContextStore
from context_engine.services.context.search import SearchCoordinator
from context_engine.services.context.manager import ContextManager

__all__ = [
    "Chunker",
    "chunk_text",
    "EmbeddingService",
    "HashingEmbeddingService",
    "cosine_score",
    "ContextStore",
    "InMemoryContextStore",
    "SearchCoordinator",
    "ContextManager",
]
