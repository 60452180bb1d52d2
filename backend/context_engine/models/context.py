"""
Context domain models.

A Context is a stored unit of text plus metadata. Its content is split into
ContextChunks, each carrying an embedding vector used for similarity search.
"""
import hashlib
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

import numpy as np


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def content_hash(content: str) -> str:
    """Stable fingerprint of a context's content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass
class Context:
    """A stored text record with tags and metadata."""
    id: str
    content: str
    tags: set[str] = field(default_factory=set)
    source: Optional[str] = None
    content_type: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def content_hash(self) -> str:
        return content_hash(self.content)

    def copy(self) -> "Context":
        """Detached copy so callers cannot mutate stored state."""
        return replace(self, tags=set(self.tags), metadata=dict(self.metadata))

    def has_any_tag(self, tags: set[str]) -> bool:
        return not self.tags.isdisjoint(tags)

    def has_all_tags(self, tags: set[str]) -> bool:
        return set(tags).issubset(self.tags)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "id": self.id,
            "content": self.content,
            "tags": sorted(self.tags),
            "source": self.source,
            "content_type": self.content_type,
            "metadata": dict(self.metadata),
            "content_hash": self.content_hash,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ContextChunk:
    """A bounded, possibly overlapping slice of a context's content."""
    context_id: str
    index: int
    offset: int
    text: str
    embedding: np.ndarray = field(repr=False, compare=False)
    chunk_id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.chunk_id,
            "context_id": self.context_id,
            "index": self.index,
            "offset": self.offset,
            "content": self.text,
        }


@dataclass
class ChunkMatch:
    """A chunk paired with its similarity to a query."""
    chunk: ContextChunk
    score: float

    def to_dict(self) -> dict:
        data = self.chunk.to_dict()
        data["score"] = self.score
        return data


@dataclass
class SearchResult:
    """
    One context's relevance to a query.

    ``score`` is the best individual chunk score; ``chunks`` holds every
    chunk that met the score floor, best first.
    """
    context: Context
    score: float
    chunks: list[ChunkMatch] = field(default_factory=list)

    @property
    def context_id(self) -> str:
        return self.context.id

    def to_dict(self) -> dict:
        return {
            "context": self.context.to_dict(),
            "score": self.score,
            "chunks": [m.to_dict() for m in self.chunks],
        }


@dataclass
class ContextReference:
    """Pointer to a context, optionally narrowed to specific chunks."""
    context_id: str
    chunk_ids: Optional[list[str]] = None
    weight: Optional[float] = None
