from __future__ import annotations

from typing import Iterable, List

from .models import ChunkRecord

DEFAULT_CHUNK_SIZE = 1000


def chunk_sections(sections: Iterable[str], chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[ChunkRecord]:
    """
    Split each section into fixed, non-overlapping windows of ``chunk_size``
    characters and number them globally in reading order.

    Windows are computed per section, so a chunk never spans two sections.
    The last window of a section keeps whatever is left. Blank sections are
    skipped; no sections at all yields an empty list.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    chunks: List[ChunkRecord] = []
    for text in sections:
        if not text or not text.strip():
            continue
        for start in range(0, len(text), chunk_size):
            chunks.append(ChunkRecord(index=len(chunks), content=text[start : start + chunk_size]))
    return chunks
