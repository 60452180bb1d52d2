"""
Context Store - Authoritative map of contexts and their chunk/vector index.

ContextStore is the interface; InMemoryContextStore keeps everything in
process memory behind a readers-writer lock. A single lock covers the whole
store, so writes to different contexts still serialize. That trades write
throughput for a simple guarantee: no reader ever sees a context whose chunk
set does not match its current content.
"""
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Tuple

import numpy as np

from context_engine.core.exceptions import NotFoundError
from context_engine.core.logging import get_logger, OperationLogger
from context_engine.models.context import Context, ContextChunk, new_id, utcnow
from context_engine.services.context.chunker import Chunker
from context_engine.services.context.embedding import EmbeddingService

logger = get_logger(__name__)
op_logger = OperationLogger(logger)

# (offset, text, vector) for one chunk, before it is bound to a context id
EmbeddedSpan = Tuple[int, str, np.ndarray]
IndexedContext = Tuple[Context, Tuple[ContextChunk, ...]]


class ReadWriteLock:
    """
    Many concurrent readers or one writer.

    Waiting writers block new readers so a steady stream of searches cannot
    starve an update.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ContextStore(ABC):
    """Storage backend for contexts and their chunk index."""

    @abstractmethod
    def create(
        self,
        content: str,
        tags: Optional[Set[str]] = None,
        source: Optional[str] = None,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Context:
        """Store new content and index its chunks."""

    @abstractmethod
    def get(self, context_id: str) -> Context:
        """Fetch a context; raises NotFoundError if absent."""

    @abstractmethod
    def update(
        self,
        context_id: str,
        content: Optional[str] = None,
        tags: Optional[Set[str]] = None,
        source: Optional[str] = None,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Context:
        """Replace the supplied fields; omitted fields stay unchanged."""

    @abstractmethod
    def delete(self, context_id: str) -> None:
        """Remove a context and its chunks; raises NotFoundError if absent."""

    @abstractmethod
    def list(
        self,
        tags: Optional[Set[str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Context]:
        """Contexts in a stable order, optionally filtered by tags."""

    @abstractmethod
    def chunks_for(self, context_id: str) -> List[ContextChunk]:
        """Chunks of one context in sequence order."""

    @abstractmethod
    def get_indexed(self, context_id: str) -> IndexedContext:
        """A context together with its chunks, read atomically."""

    @abstractmethod
    def snapshot(self, tags: Optional[Set[str]] = None) -> List[IndexedContext]:
        """
        Consistent view of contexts with their chunks for scoring.

        A context is included when it carries at least one of ``tags``, or
        always when ``tags`` is empty or None.
        """

    @abstractmethod
    def count(self) -> int:
        """Number of stored contexts."""


class InMemoryContextStore(ContextStore):
    """Thread-safe in-memory context store."""

    def __init__(self, chunker: Chunker, embedding_service: EmbeddingService):
        self.chunker = chunker
        self.embedding_service = embedding_service
        self._contexts: Dict[str, Context] = {}
        self._chunks: Dict[str, Tuple[ContextChunk, ...]] = {}
        self._issued_ids: Set[str] = set()
        self._lock = ReadWriteLock()

    # ---- chunk index construction (runs outside the lock) ----

    def _embed_content(self, content: str) -> List[EmbeddedSpan]:
        spans = self.chunker.spans(content)
        vectors = self.embedding_service.embed_many([text for _, text in spans])
        embedded = []
        for (offset, text), vector in zip(spans, vectors):
            vector = np.asarray(vector, dtype=np.float64)
            vector.setflags(write=False)
            embedded.append((offset, text, vector))
        return embedded

    @staticmethod
    def _bind(context_id: str, embedded: List[EmbeddedSpan]) -> Tuple[ContextChunk, ...]:
        return tuple(
            ContextChunk(
                context_id=context_id,
                index=index,
                offset=offset,
                text=text,
                embedding=vector,
            )
            for index, (offset, text, vector) in enumerate(embedded)
        )

    def _next_id(self) -> str:
        # Caller holds the write lock
        context_id = new_id()
        while context_id in self._issued_ids:
            context_id = new_id()
        self._issued_ids.add(context_id)
        return context_id

    def _require(self, context_id: str) -> Context:
        context = self._contexts.get(context_id)
        if context is None:
            raise NotFoundError(f"Context not found: {context_id}", context_id=context_id)
        return context

    # ---- ContextStore ----

    def create(
        self,
        content: str,
        tags: Optional[Set[str]] = None,
        source: Optional[str] = None,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Context:
        with op_logger.track("context create", content_length=len(content)) as op:
            embedded = self._embed_content(content)

            with self._lock.write_locked():
                now = utcnow()
                context = Context(
                    id=self._next_id(),
                    content=content,
                    tags=set(tags or ()),
                    source=source,
                    content_type=content_type,
                    metadata=dict(metadata or {}),
                    created_at=now,
                    updated_at=now,
                )
                self._contexts[context.id] = context
                self._chunks[context.id] = self._bind(context.id, embedded)
                result = context.copy()

            op.add(context_id=result.id, chunk_count=len(embedded))

        logger.info("Context created", context_id=result.id, chunk_count=len(embedded))
        return result

    def get(self, context_id: str) -> Context:
        with self._lock.read_locked():
            return self._require(context_id).copy()

    def update(
        self,
        context_id: str,
        content: Optional[str] = None,
        tags: Optional[Set[str]] = None,
        source: Optional[str] = None,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Context:
        supplied = [f for f in (content, tags, source, content_type, metadata) if f is not None]

        with op_logger.track("context update", context_id=context_id) as op:
            if not supplied:
                op.add(noop=True)
                return self.get(context_id)

            embedded = self._embed_content(content) if content is not None else None

            with self._lock.write_locked():
                context = self._require(context_id)
                reindexed = content is not None and content != context.content

                if reindexed:
                    # New content and its chunks become visible together
                    context.content = content
                    self._chunks[context_id] = self._bind(context_id, embedded)
                if tags is not None:
                    context.tags = set(tags)
                if source is not None:
                    context.source = source
                if content_type is not None:
                    context.content_type = content_type
                if metadata is not None:
                    context.metadata = dict(metadata)
                context.updated_at = utcnow()
                result = context.copy()
                chunk_count = len(self._chunks[context_id])

            op.add(reindexed=reindexed, chunk_count=chunk_count)

        logger.info(
            "Context updated",
            context_id=context_id,
            reindexed=reindexed,
            chunk_count=chunk_count,
        )
        return result

    def delete(self, context_id: str) -> None:
        with self._lock.write_locked():
            self._require(context_id)
            del self._contexts[context_id]
            removed = self._chunks.pop(context_id, ())

        logger.info("Context deleted", context_id=context_id, chunk_count=len(removed))

    def list(
        self,
        tags: Optional[Set[str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Context]:
        with self._lock.read_locked():
            contexts = [
                c.copy() for c in self._contexts.values()
                if not tags or c.has_all_tags(tags)
            ]

        offset = max(offset, 0)
        if limit is None:
            return contexts[offset:]
        return contexts[offset:offset + max(limit, 0)]

    def chunks_for(self, context_id: str) -> List[ContextChunk]:
        with self._lock.read_locked():
            self._require(context_id)
            return list(self._chunks[context_id])

    def get_indexed(self, context_id: str) -> IndexedContext:
        with self._lock.read_locked():
            return self._require(context_id).copy(), self._chunks[context_id]

    def snapshot(self, tags: Optional[Set[str]] = None) -> List[IndexedContext]:
        with self._lock.read_locked():
            return [
                (context.copy(), self._chunks[context_id])
                for context_id, context in self._contexts.items()
                if not tags or context.has_any_tag(tags)
            ]

    def count(self) -> int:
        with self._lock.read_locked():
            return len(self._contexts)
