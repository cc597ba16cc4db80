import math

import pytest

from book_buddy.ingestion import ChunkRecord, chunk_sections


def test_chunk_counts_follow_section_lengths():
    sections = ["a" * 2500, "b" * 1000, "c" * 10]
    chunks = chunk_sections(sections)

    assert len(chunks) == sum(math.ceil(len(s) / 1000) for s in sections)
    assert [c.index for c in chunks] == list(range(len(chunks)))
    assert [len(c.content) for c in chunks] == [1000, 1000, 500, 1000, 10]


def test_chunks_never_span_sections():
    chunks = chunk_sections(["x" * 1500, "y" * 700])

    assert [set(c.content) for c in chunks] == [{"x"}, {"x"}, {"y"}]
    assert chunks[1].content == "x" * 500


def test_reading_order_is_preserved():
    chunks = chunk_sections(["first", "second", "third"])
    assert chunks == [
        ChunkRecord(index=0, content="first"),
        ChunkRecord(index=1, content="second"),
        ChunkRecord(index=2, content="third"),
    ]


def test_empty_and_blank_sections_produce_no_chunks():
    assert chunk_sections([]) == []
    assert chunk_sections(["", "   \n\t "]) == []

    chunks = chunk_sections(["", "hello", "  ", "world"])
    assert [(c.index, c.content) for c in chunks] == [(0, "hello"), (1, "world")]


def test_custom_chunk_size_and_validation():
    chunks = chunk_sections(["abcdefg"], chunk_size=3)
    assert [c.content for c in chunks] == ["abc", "def", "g"]

    with pytest.raises(ValueError):
        chunk_sections(["abc"], chunk_size=0)
