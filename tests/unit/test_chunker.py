"""Tests for the overlapping-window chunker."""

import math
import random

import pytest

from docrag.core.domain import Document
from docrag.core.domain.exceptions import (
    EmptyContentError,
    InvalidChunkParametersError,
    ValidationError,
)
from docrag.core.services.chunker import MAX_CHUNK_SIZE, chunk_document, chunk_text

pytestmark = pytest.mark.unit


def random_document(rng: random.Random) -> str:
    words = ["alpha", "beta", "gamma", "delta", "epsilon", "\n\n", "  ", "🙂", "漢字"]
    text = " ".join(rng.choice(words) for _ in range(rng.randint(1, 300)))
    return text if text.strip() else "fallback text"


def random_params(rng: random.Random) -> tuple[int, int]:
    size = rng.randint(1, 200)
    overlap = rng.randint(0, size - 1)
    return size, overlap


class TestChunkExample:
    def test_nineteen_characters_size_ten_overlap_two(self):
        content = "AI and ML content.."
        assert len(content) == 19
        chunks = chunk_text(content, 10, 2, document_id="doc-1")
        assert [(c.start, c.end) for c in chunks] == [(0, 10), (8, 18), (16, 19)]
        assert [c.chunk_index for c in chunks] == [0, 1, 2]
        assert all(c.document_id == "doc-1" for c in chunks)

    def test_short_document_is_single_chunk(self):
        chunks = chunk_text("hello", 1000, 200)
        assert len(chunks) == 1
        assert (chunks[0].start, chunks[0].end, chunks[0].content) == (0, 5, "hello")

    def test_chunk_document_tags_document_id(self):
        document = Document(id="doc-9", owner_id="u", filename="a.txt", content="x" * 25)
        chunks = chunk_document(document, 10, 0)
        assert [c.document_id for c in chunks] == ["doc-9"] * 3


class TestChunkProperties:
    def test_coverage(self):
        rng = random.Random(1)
        for _ in range(150):
            content = random_document(rng)
            size, overlap = random_params(rng)
            chunks = chunk_text(content, size, overlap)
            covered = set()
            for chunk in chunks:
                covered.update(range(chunk.start, chunk.end))
            for i, char in enumerate(content):
                if not char.isspace():
                    assert i in covered

    def test_bounds_and_ordering(self):
        rng = random.Random(2)
        for _ in range(150):
            content = random_document(rng)
            size, overlap = random_params(rng)
            chunks = chunk_text(content, size, overlap)

            assert chunks
            assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
            assert len(chunks) <= math.ceil(len(content) / (size - overlap)) + 1
            for chunk in chunks:
                assert 0 <= chunk.start < chunk.end <= len(content)
                assert chunk.length <= size
                assert chunk.content == content[chunk.start : chunk.end]
                assert chunk.content.strip()
            for current, following in zip(chunks, chunks[1:]):
                assert following.start > current.start

    def test_consecutive_windows_overlap(self):
        rng = random.Random(4)
        for _ in range(100):
            content = "".join(rng.choice("abcdef") for _ in range(rng.randint(1, 500)))
            size, overlap = random_params(rng)
            chunks = chunk_text(content, size, overlap)
            for current, following in zip(chunks, chunks[1:]):
                assert following.start == current.end - overlap

    def test_first_and_last_edges_without_whitespace(self):
        rng = random.Random(3)
        for _ in range(100):
            content = "x" + random_document(rng) + "y"
            size, overlap = random_params(rng)
            chunks = chunk_text(content, size, overlap)
            assert chunks[0].start == 0
            assert chunks[-1].end == len(content)

    def test_whitespace_only_windows_are_skipped(self):
        content = "abc" + " " * 17 + "def"
        chunks = chunk_text(content, 5, 0)
        assert [c.content for c in chunks] == ["abc  ", "def"]
        assert [c.chunk_index for c in chunks] == [0, 1]


class TestChunkRejection:
    @pytest.mark.parametrize("content", ["", "   ", "\n\t "])
    def test_empty_content(self, content):
        with pytest.raises(EmptyContentError):
            chunk_text(content, 10, 2)

    @pytest.mark.parametrize(
        "size,overlap",
        [
            (0, 0),
            (-1, 0),
            (MAX_CHUNK_SIZE + 1, 0),
            (10, 10),
            (10, 11),
            (10, -1),
            (10.5, 2),
            (10, 2.0),
            (True, 0),
            ("10", 2),
        ],
    )
    def test_invalid_parameters(self, size, overlap):
        with pytest.raises(InvalidChunkParametersError):
            chunk_text("some content", size, overlap)

    def test_rejections_are_validation_errors(self):
        with pytest.raises(ValidationError):
            chunk_text("text", 0, 0)

    def test_max_chunk_size_is_allowed(self):
        chunks = chunk_text("z" * (MAX_CHUNK_SIZE + 10), MAX_CHUNK_SIZE, 0)
        assert [c.length for c in chunks] == [MAX_CHUNK_SIZE, 10]

    def test_skipped_whitespace_windows_leave_whitespace_gaps(self):
        rng = random.Random(5)
        gaps = 0
        for _ in range(200):
            content = "".join(rng.choice("ab \n") for _ in range(rng.randint(1, 400)))
            if not content.strip():
                continue
            size, overlap = random_params(rng)
            size = min(size, 8)
            overlap = min(overlap, size - 1)
            chunks = chunk_text(content, size, overlap)
            step = size - overlap
            for current, following in zip(chunks, chunks[1:]):
                adjacent_start = current.end - overlap
                if following.start == adjacent_start:
                    continue
                gaps += 1
                # Skipped windows sit on the same grid and hold only whitespace
                assert (following.start - adjacent_start) % step == 0
                assert content[adjacent_start : following.start + overlap].strip() == ""
        assert gaps
