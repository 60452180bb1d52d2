"""
Similarity scoring between embedding vectors.
"""
import numpy as np

from context_engine.core.exceptions import DimensionMismatchError
from context_engine.core.logging import get_logger

logger = get_logger(__name__)


def cosine_score(v1: np.ndarray, v2: np.ndarray) -> float:
    """
    Cosine similarity rescaled to [0, 1].

    Orthogonal or opposed vectors score 0, identical directions score 1 and
    a zero vector scores 0 against anything.

    Raises:
        DimensionMismatchError: if the vectors differ in length
    """
    a = np.asarray(v1, dtype=np.float64)
    b = np.asarray(v2, dtype=np.float64)
    if a.shape != b.shape:
        logger.error(
            "Embedding dimension mismatch",
            left=a.shape[0] if a.ndim else 0,
            right=b.shape[0] if b.ndim else 0,
        )
        raise DimensionMismatchError(left=int(a.size), right=int(b.size))

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    # dot / (norm * norm) can land one ulp short of 1 for a vector against itself
    if np.array_equal(a, b):
        return 1.0

    cosine = float(np.dot(a, b) / (norm_a * norm_b))
    return min(1.0, max(0.0, cosine))
