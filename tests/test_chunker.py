"""
Tests for content chunking.
"""
import pytest

from context_engine.core.exceptions import InvalidConfigError
from context_engine.services.context.chunker import Chunker, chunk_spans, chunk_text


def reconstruct(spans):
    """Rebuild content by writing every chunk at its offset."""
    if not spans:
        return ""
    length = max(offset + len(text) for offset, text in spans)
    buffer = [""] * length
    for offset, text in spans:
        for i, ch in enumerate(text):
            buffer[offset + i] = ch
    return "".join(buffer)


class TestChunkText:
    """Tests for the sliding-window chunker."""

    def test_empty_content_produces_no_chunks(self):
        assert chunk_text("", 10, 2) == []

    def test_short_content_is_single_chunk(self):
        content = "This is a test context for the Model Context Protocol"
        assert chunk_text(content, 1000, 200) == [content]

    def test_content_exactly_max_size_is_single_chunk(self):
        assert chunk_text("abcdefghij", 10, 3) == ["abcdefghij"]

    def test_windows_advance_by_size_minus_overlap(self):
        assert chunk_text("abcdefghij", 4, 2) == ["abcd", "cdef", "efgh", "ghij"]

    def test_final_chunk_may_be_shorter(self):
        chunks = chunk_text("abcdefghijk", 5, 1)
        assert chunks == ["abcde", "efghi", "ijk"]

    def test_zero_overlap(self):
        assert chunk_text("abcdefg", 3, 0) == ["abc", "def", "g"]

    @pytest.mark.parametrize("content", [
        "a",
        "The quick brown fox jumps over the lazy dog",
        "x" * 97,
        "lorem ipsum dolor sit amet " * 20,
    ])
    @pytest.mark.parametrize("max_size,overlap", [(1, 0), (5, 4), (10, 3), (16, 0), (50, 49)])
    def test_chunks_cover_and_respect_bounds(self, content, max_size, overlap):
        """Every chunk is bounded, consecutive chunks overlap exactly, content is rebuilt."""
        spans = chunk_spans(content, max_size, overlap)

        assert reconstruct(spans) == content
        assert spans[0][0] == 0
        assert spans[-1][0] + len(spans[-1][1]) == len(content)
        for offset, text in spans:
            assert len(text) <= max_size
            assert content[offset:offset + len(text)] == text
        for (prev_offset, prev_text), (offset, _) in zip(spans, spans[1:]):
            assert prev_offset + len(prev_text) - offset == overlap

    @pytest.mark.parametrize("max_size,overlap", [(10, 10), (10, 11), (0, 0), (-1, 0), (10, -1)])
    def test_invalid_parameters_raise(self, max_size, overlap):
        with pytest.raises(InvalidConfigError):
            chunk_text("some content", max_size, overlap)


class TestChunker:
    """Tests for the configured Chunker."""

    def test_rejects_overlap_at_or_above_size(self):
        with pytest.raises(InvalidConfigError):
            Chunker(max_chunk_size=100, chunk_overlap=100)

    def test_spans_report_offsets(self):
        chunker = Chunker(max_chunk_size=4, chunk_overlap=1)
        assert chunker.spans("abcdefg") == [(0, "abcd"), (3, "defg")]
        assert chunker.chunk("abcdefg") == ["abcd", "defg"]
