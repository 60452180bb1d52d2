"""
Search and reference retrieval API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from context_engine.api.contexts import ContextResponse, to_response
from context_engine.api.deps import get_context_manager
from context_engine.core.logging import get_logger
from context_engine.models.context import ContextReference, SearchResult
from context_engine.services.context import ContextManager

logger = get_logger(__name__)
router = APIRouter()


# ========================================
# Request/Response Schemas
# ========================================

class SearchRequest(BaseModel):
    """Request to search contexts by similarity."""
    query: str = Field(..., description="Query text")
    tags: Optional[list[str]] = Field(None, description="Only contexts with any of these tags")
    limit: Optional[int] = Field(None, gt=0, description="Maximum number of results")
    min_score: Optional[float] = Field(None, ge=0.0, le=1.0, description="Chunk score floor")


class ReferenceRequest(BaseModel):
    """Request to fetch contexts by id."""
    ids: list[str] = Field(..., description="Context IDs, in the order to return them")


class ContextReferenceItem(BaseModel):
    """A single context reference."""
    context_id: str
    chunk_ids: Optional[list[str]] = None
    weight: Optional[float] = None


class ResolveReferencesRequest(BaseModel):
    """Request to resolve references into matches with chunks."""
    references: list[ContextReferenceItem]


class ChunkMatchResponse(BaseModel):
    """A chunk with its score."""
    id: str
    index: int
    offset: int
    content: str
    score: float


class MatchResponse(BaseModel):
    """A context with its aggregate score and matching chunks."""
    context: ContextResponse
    score: float
    chunks: list[ChunkMatchResponse]


class SearchResponse(BaseModel):
    """Response for search operations."""
    matches: list[MatchResponse]
    total_matches: int


def to_search_response(results: list[SearchResult]) -> SearchResponse:
    matches = [
        MatchResponse(
            context=to_response(r.context),
            score=r.score,
            chunks=[
                ChunkMatchResponse(
                    id=m.chunk.chunk_id,
                    index=m.chunk.index,
                    offset=m.chunk.offset,
                    content=m.chunk.text,
                    score=m.score,
                )
                for m in r.chunks
            ],
        )
        for r in results
    ]
    return SearchResponse(matches=matches, total_matches=len(matches))


# ========================================
# API Endpoints
# ========================================

@router.post("/search", response_model=SearchResponse)
def search_contexts(
    request: SearchRequest,
    manager: ContextManager = Depends(get_context_manager),
):
    """
    Rank contexts by similarity of their chunks to the query.
    """
    results = manager.search.search(
        request.query,
        tags=set(request.tags) if request.tags else None,
        limit=request.limit,
        min_score=request.min_score,
    )
    logger.info("Search served", results_count=len(results), limit=request.limit)
    return to_search_response(results)


@router.post("/references", response_model=list[ContextResponse])
def get_by_reference(
    request: ReferenceRequest,
    manager: ContextManager = Depends(get_context_manager),
):
    """
    Fetch full contexts by id. Unknown ids are omitted.
    """
    contexts = manager.search.get_by_reference(request.ids)
    logger.info("References fetched", requested=len(request.ids), found=len(contexts))
    return [to_response(c) for c in contexts]


@router.post("/references/resolve", response_model=SearchResponse)
def resolve_references(
    request: ResolveReferencesRequest,
    manager: ContextManager = Depends(get_context_manager),
):
    """
    Resolve references into weighted matches, optionally narrowed to chunks.
    """
    references = [
        ContextReference(
            context_id=r.context_id,
            chunk_ids=r.chunk_ids,
            weight=r.weight,
        )
        for r in request.references
    ]
    results = manager.search.retrieve_references(references)
    logger.info("References resolved", requested=len(references), found=len(results))
    return to_search_response(results)
