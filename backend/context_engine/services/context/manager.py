"""
Context Manager - High-level entry point for context storage and retrieval.
Wires chunking, embedding, storage and search from settings and assembles
retrieved contexts into prompt-ready text.
"""
from typing import Optional, Set

from context_engine.core.config import Settings, settings as default_settings
from context_engine.core.logging import get_logger
from context_engine.models.context import SearchResult
from context_engine.services.context.chunker import Chunker
from context_engine.services.context.embedding import (
    EmbeddingService,
    HashingEmbeddingService,
)
from context_engine.services.context.search import SearchCoordinator
from context_engine.services.context.store import ContextStore, InMemoryContextStore

logger = get_logger(__name__)


class ContextManager:
    """High-level context management for language-model consumers."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        embedding_service: Optional[EmbeddingService] = None,
        store: Optional[ContextStore] = None,
    ):
        """
        Build the context pipeline.

        Args:
            config: Settings to read chunking/embedding/search parameters from
            embedding_service: Override the default hashing embedder
            store: Override the default in-memory store

        Raises:
            InvalidConfigError: if any configured parameter is out of range
        """
        self.config = config or default_settings
        self.chunker = Chunker(self.config.MAX_CHUNK_SIZE, self.config.CHUNK_OVERLAP)
        self.embedding_service = embedding_service or HashingEmbeddingService(
            self.config.EMBEDDING_DIMENSION
        )
        self.store = store or InMemoryContextStore(self.chunker, self.embedding_service)
        self.search = SearchCoordinator(
            self.store,
            self.embedding_service,
            default_limit=self.config.SEARCH_DEFAULT_LIMIT,
        )

        logger.info(
            "Context manager initialized",
            max_chunk_size=self.chunker.max_chunk_size,
            chunk_overlap=self.chunker.chunk_overlap,
            embedding_dimension=self.embedding_service.get_dimensions(),
            default_limit=self.search.default_limit,
        )

    def retrieve_context(
        self,
        query: str,
        tags: Optional[Set[str]] = None,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> str:
        """
        Retrieve relevant context for a query.

        Returns:
            Formatted context string for prompt injection, or "" if nothing
            matched
        """
        results = self.search.search(query, tags=tags, limit=limit, min_score=min_score)
        if not results:
            return ""

        return "\n\n---\n\n".join(self._format_result(r) for r in results)

    def _format_result(self, result: SearchResult) -> str:
        label = ", ".join(sorted(result.context.tags)) or "untagged"
        return f"[{label}] (score {result.score:.2f})\n{result.context.content}"
