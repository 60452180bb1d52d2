"""
Embedding Service - Generate vector embeddings for text content.

EmbeddingService is the interface the store and search layers depend on;
HashingEmbeddingService is a deterministic term-frequency projection used in
place of a learned model.
"""
import hashlib
from abc import ABC, abstractmethod
from collections import Counter
from typing import List

import numpy as np

from context_engine.core.exceptions import InvalidConfigError
from context_engine.core.logging import get_logger

logger = get_logger(__name__)


def tokenize(text: str) -> List[str]:
    """Lowercase whitespace-separated words with punctuation stripped."""
    tokens = []
    for word in text.split():
        token = "".join(c for c in word.lower() if c.isalnum())
        if token:
            tokens.append(token)
    return tokens


class EmbeddingService(ABC):
    """Maps text to a fixed-dimension vector."""

    def __init__(self, dimensions: int):
        if dimensions <= 0:
            raise InvalidConfigError(
                "embedding dimension must be positive", dimension=dimensions
            )
        self.dimensions = dimensions

    @abstractmethod
    def embed(self, text: str) -> np.ndarray:
        """
        Generate embedding vector for a single text.

        Args:
            text: Text content to embed

        Returns:
            1-D float array of length ``dimensions``
        """

    def embed_many(self, texts: List[str]) -> List[np.ndarray]:
        """Generate embedding vectors for multiple texts."""
        return [self.embed(text) for text in texts]

    def get_dimensions(self) -> int:
        """Get the embedding vector dimensions."""
        return self.dimensions


class HashingEmbeddingService(EmbeddingService):
    """
    Term-frequency embedding with hashed dimensions.

    Each token is assigned a dimension by a stable digest, its count is added
    there and the result is L2-normalized. Identical text always yields an
    identical vector, across processes. Text without tokens maps to the zero
    vector.
    """

    def _bucket(self, token: str) -> int:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big") % self.dimensions

    def embed(self, text: str) -> np.ndarray:
        vector = np.zeros(self.dimensions, dtype=np.float64)
        counts = Counter(tokenize(text))
        if not counts:
            return vector

        for token, count in counts.items():
            vector[self._bucket(token)] += count

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm
        return vector
