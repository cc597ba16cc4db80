"""
Question answering exports.
"""

from .answering import FALLBACK_ANSWER, SYSTEM_INSTRUCTION, AnswerService
from .generation import GenerationOutcome, GenerationRequest, OpenAIChatGenerator, TextGenerator
from .scoring import ScoredChunk, extract_keywords, score_chunk, select_relevant_chunks

__all__ = [
    "AnswerService",
    "FALLBACK_ANSWER",
    "GenerationOutcome",
    "GenerationRequest",
    "OpenAIChatGenerator",
    "SYSTEM_INSTRUCTION",
    "ScoredChunk",
    "TextGenerator",
    "extract_keywords",
    "score_chunk",
    "select_relevant_chunks",
]
