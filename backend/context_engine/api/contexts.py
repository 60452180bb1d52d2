"""
Contexts API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from context_engine.api.deps import get_context_manager
from context_engine.models.context import Context
from context_engine.services.context import ContextManager

router = APIRouter()


# ========================================
# Request/Response Schemas
# ========================================

class CreateContextRequest(BaseModel):
    """Request to store a new context."""
    content: str = Field(..., description="Text to store")
    tags: list[str] = Field(default_factory=list, description="Tags for filtering")
    source: Optional[str] = Field(None, description="Where the content came from")
    content_type: Optional[str] = Field(None, description="Kind of content, e.g. text or code")
    metadata: dict[str, str] = Field(default_factory=dict, description="Arbitrary key/value pairs")


class UpdateContextRequest(BaseModel):
    """Request to update a context. Omitted fields are left unchanged."""
    content: Optional[str] = None
    tags: Optional[list[str]] = None
    source: Optional[str] = None
    content_type: Optional[str] = None
    metadata: Optional[dict[str, str]] = None


class ContextResponse(BaseModel):
    """Context response."""
    id: str
    content: str
    tags: list[str]
    source: Optional[str]
    content_type: Optional[str]
    metadata: dict[str, str]
    content_hash: str
    created_at: str
    updated_at: str


class ChunkResponse(BaseModel):
    """Context chunk response."""
    id: str
    context_id: str
    index: int
    offset: int
    content: str


def to_response(context: Context) -> ContextResponse:
    return ContextResponse(**context.to_dict())


def parse_tags(tags: Optional[str]) -> Optional[set[str]]:
    """Comma-separated tag list from a query string."""
    if not tags:
        return None
    parsed = {t.strip() for t in tags.split(",") if t.strip()}
    return parsed or None


# ========================================
# API Endpoints
# ========================================

@router.post("", response_model=ContextResponse, status_code=201)
def create_context(
    request: CreateContextRequest,
    manager: ContextManager = Depends(get_context_manager),
):
    """
    Store a new context and index its chunks.
    """
    context = manager.store.create(
        request.content,
        tags=set(request.tags),
        source=request.source,
        content_type=request.content_type,
        metadata=request.metadata,
    )
    return to_response(context)


@router.get("", response_model=list[ContextResponse])
def list_contexts(
    tags: Optional[str] = Query(None, description="Comma-separated tags; all must match"),
    limit: Optional[int] = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    manager: ContextManager = Depends(get_context_manager),
):
    """
    List stored contexts in insertion order.
    """
    contexts = manager.store.list(tags=parse_tags(tags), limit=limit, offset=offset)
    return [to_response(c) for c in contexts]


@router.get("/{context_id}", response_model=ContextResponse)
def get_context(
    context_id: str,
    manager: ContextManager = Depends(get_context_manager),
):
    """
    Get a specific context by ID.
    """
    return to_response(manager.store.get(context_id))


@router.get("/{context_id}/chunks", response_model=list[ChunkResponse])
def get_context_chunks(
    context_id: str,
    manager: ContextManager = Depends(get_context_manager),
):
    """
    Get the chunks currently indexed for a context.
    """
    return [ChunkResponse(**c.to_dict()) for c in manager.store.chunks_for(context_id)]


@router.put("/{context_id}", response_model=ContextResponse)
def update_context(
    context_id: str,
    request: UpdateContextRequest,
    manager: ContextManager = Depends(get_context_manager),
):
    """
    Update a context. Changing content re-indexes its chunks.
    """
    context = manager.store.update(
        context_id,
        content=request.content,
        tags=set(request.tags) if request.tags is not None else None,
        source=request.source,
        content_type=request.content_type,
        metadata=request.metadata,
    )
    return to_response(context)


@router.delete("/{context_id}", status_code=204)
def delete_context(
    context_id: str,
    manager: ContextManager = Depends(get_context_manager),
):
    """
    Delete a context and its chunks.
    """
    manager.store.delete(context_id)
    return Response(status_code=204)
