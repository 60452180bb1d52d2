"""
Search Coordinator - Similarity search and reference-based retrieval.
"""
from typing import Iterable, List, Optional, Set

from context_engine.core.exceptions import InvalidConfigError, NotFoundError
from context_engine.core.logging import get_logger, OperationLogger
from context_engine.models.context import (
    ChunkMatch,
    Context,
    ContextReference,
    SearchResult,
)
from context_engine.services.context.embedding import EmbeddingService
from context_engine.services.context.similarity import cosine_score
from context_engine.services.context.store import ContextStore

logger = get_logger(__name__)
op_logger = OperationLogger(logger)


class SearchCoordinator:
    """Ranks stored contexts against a query."""

    def __init__(
        self,
        store: ContextStore,
        embedding_service: EmbeddingService,
        default_limit: int = 10,
    ):
        if default_limit <= 0:
            raise InvalidConfigError("search limit must be positive", limit=default_limit)
        self.store = store
        self.embedding_service = embedding_service
        self.default_limit = default_limit

    def search(
        self,
        query: str,
        tags: Optional[Set[str]] = None,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> List[SearchResult]:
        """
        Search for contexts similar to a query.

        Args:
            query: Query text
            tags: Only contexts sharing at least one of these tags are scored
            limit: Maximum number of results (defaults to the configured limit)
            min_score: Chunks scoring below this are ignored. Chunks with no
                overlap at all (score 0) never match.

        Returns:
            Results ordered by descending aggregate score, then creation time,
            then id
        """
        limit = self.default_limit if limit is None else limit
        if limit <= 0:
            raise InvalidConfigError("search limit must be positive", limit=limit)
        floor = 0.0 if min_score is None else min_score

        with op_logger.track(
            "search",
            limit=limit,
            min_score=floor,
            tag_filter=sorted(tags) if tags else None,
        ) as op:
            op.debug_text("query", query)
            query_vector = self.embedding_service.embed(query)

            candidates = []
            snapshot = self.store.snapshot(tags)
            for context, chunks in snapshot:
                matches = []
                for chunk in chunks:
                    score = cosine_score(query_vector, chunk.embedding)
                    if score > 0.0 and score >= floor:
                        matches.append(ChunkMatch(chunk=chunk, score=score))
                if not matches:
                    continue
                matches.sort(key=lambda m: (-m.score, m.chunk.index))
                candidates.append(
                    SearchResult(context=context, score=matches[0].score, chunks=matches)
                )

            candidates.sort(key=lambda r: (-r.score, r.context.created_at, r.context.id))
            results = candidates[:limit]

            op.add(
                contexts_scanned=len(snapshot),
                candidates=len(candidates),
                results_count=len(results),
            )

        return results

    def get_by_reference(self, ids: Iterable[str]) -> List[Context]:
        """
        Fetch full records for the given ids.

        Input order is preserved; ids that do not exist are skipped.
        """
        contexts = []
        for context_id in ids:
            try:
                contexts.append(self.store.get(context_id))
            except NotFoundError:
                logger.debug("Skipping unknown reference", context_id=context_id)
        return contexts

    def retrieve_references(self, references: Iterable[ContextReference]) -> List[SearchResult]:
        """
        Resolve references into results without similarity scoring.

        Each result carries the reference weight (default 1.0) as its score
        and, when chunk ids are given, only those chunks.
        """
        results = []
        for reference in references:
            try:
                context, chunks = self.store.get_indexed(reference.context_id)
            except NotFoundError:
                logger.debug("Skipping unknown reference", context_id=reference.context_id)
                continue

            if reference.chunk_ids is not None:
                wanted = set(reference.chunk_ids)
                chunks = [c for c in chunks if c.chunk_id in wanted]

            weight = 1.0 if reference.weight is None else reference.weight
            results.append(
                SearchResult(
                    context=context,
                    score=weight,
                    chunks=[ChunkMatch(chunk=c, score=weight) for c in chunks],
                )
            )
        return results
