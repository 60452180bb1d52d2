"""
Shared test fixtures.

Provides: small-configured chunker/embedder/store/search instances, a
ContextManager and a FastAPI TestClient bound to a fresh in-memory store.
"""
import pytest
from fastapi.testclient import TestClient

from context_engine.core.config import Settings
from context_engine.main import create_app
from context_engine.services.context import (
    Chunker,
    ContextManager,
    HashingEmbeddingService,
    InMemoryContextStore,
    SearchCoordinator,
)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with small chunks so multi-chunk behaviour is easy to hit."""
    return Settings(
        MAX_CHUNK_SIZE=40,
        CHUNK_OVERLAP=10,
        EMBEDDING_DIMENSION=256,
        SEARCH_DEFAULT_LIMIT=10,
    )


@pytest.fixture
def embedder() -> HashingEmbeddingService:
    return HashingEmbeddingService(256)


@pytest.fixture
def chunker() -> Chunker:
    return Chunker(max_chunk_size=40, chunk_overlap=10)


@pytest.fixture
def store(chunker: Chunker, embedder: HashingEmbeddingService) -> InMemoryContextStore:
    return InMemoryContextStore(chunker, embedder)


@pytest.fixture
def large_chunk_store(embedder: HashingEmbeddingService) -> InMemoryContextStore:
    """Store using the default 1000/200 chunking."""
    return InMemoryContextStore(Chunker(1000, 200), embedder)


@pytest.fixture
def coordinator(store: InMemoryContextStore, embedder: HashingEmbeddingService) -> SearchCoordinator:
    return SearchCoordinator(store, embedder, default_limit=10)


@pytest.fixture
def manager(test_settings: Settings) -> ContextManager:
    return ContextManager(test_settings)


@pytest.fixture
def client(test_settings: Settings) -> TestClient:
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def wide_store() -> InMemoryContextStore:
    """Store with a wide embedder so unrelated words rarely share a bucket."""
    return InMemoryContextStore(Chunker(1000, 200), HashingEmbeddingService(4096))
