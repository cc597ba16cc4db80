from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence

from ..ingestion.models import ChunkRecord

DEFAULT_TOP_K = 5
MIN_KEYWORD_LENGTH = 4

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


@dataclass(frozen=True)
class ScoredChunk:
    chunk: ChunkRecord
    score: int

    @property
    def index(self) -> int:
        return self.chunk.index

    @property
    def content(self) -> str:
        return self.chunk.content


def extract_keywords(question: str) -> List[str]:
    """
    Lowercase, drop punctuation, split on whitespace and keep words of four
    or more characters. Short words act as a stand-in stop-word filter.
    """
    words = _PUNCTUATION_RE.sub("", question.lower()).split()
    return [w for w in words if len(w) >= MIN_KEYWORD_LENGTH]


def score_chunk(content: str, keywords: Sequence[str]) -> int:
    # Substring counts: "cats" also matches inside "wildcats".
    text = content.lower()
    return sum(text.count(keyword) for keyword in keywords)


def select_relevant_chunks(
    question: str,
    chunks: Sequence[ChunkRecord],
    limit: int = DEFAULT_TOP_K,
) -> List[ScoredChunk]:
    """
    Rank chunks by keyword occurrences, highest first, ties in reading order.

    Every chunk is rescanned per call; nothing is cached between questions.
    A question without usable keywords scores everything 0 and so returns
    the first ``limit`` chunks.
    """
    keywords = extract_keywords(question)
    scored = [ScoredChunk(chunk=c, score=score_chunk(c.content, keywords)) for c in chunks]
    scored.sort(key=lambda s: (-s.score, s.index))
    return scored[:limit]
