"""
Chunker - Split content into overlapping fixed-size character windows.
"""
from typing import List, Tuple

from context_engine.core.exceptions import InvalidConfigError


def validate_chunking(max_size: int, overlap: int) -> None:
    """Reject parameters that would not guarantee forward progress."""
    if max_size <= 0:
        raise InvalidConfigError(
            "max_chunk_size must be positive", max_chunk_size=max_size
        )
    if overlap < 0 or overlap >= max_size:
        raise InvalidConfigError(
            "chunk_overlap must be >= 0 and < max_chunk_size",
            max_chunk_size=max_size,
            chunk_overlap=overlap,
        )


def chunk_spans(content: str, max_size: int, overlap: int) -> List[Tuple[int, str]]:
    """
    Split content into (offset, text) windows.

    Each window spans up to max_size characters; the next one starts
    max_size - overlap characters later. The final window ends at the end of
    content and may be shorter.
    """
    validate_chunking(max_size, overlap)

    spans = []
    start = 0
    length = len(content)
    step = max_size - overlap
    while start < length:
        end = min(start + max_size, length)
        spans.append((start, content[start:end]))
        if end == length:
            break
        start += step
    return spans


def chunk_text(content: str, max_size: int, overlap: int) -> List[str]:
    """Split content into overlapping chunk texts."""
    return [text for _, text in chunk_spans(content, max_size, overlap)]


class Chunker:
    """Chunker bound to a validated size/overlap configuration."""

    def __init__(self, max_chunk_size: int, chunk_overlap: int):
        validate_chunking(max_chunk_size, chunk_overlap)
        self.max_chunk_size = max_chunk_size
        self.chunk_overlap = chunk_overlap

    def spans(self, content: str) -> List[Tuple[int, str]]:
        return chunk_spans(content, self.max_chunk_size, self.chunk_overlap)

    def chunk(self, content: str) -> List[str]:
        return chunk_text(content, self.max_chunk_size, self.chunk_overlap)
