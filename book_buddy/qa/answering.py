from __future__ import annotations

import logging

from ..exceptions import DocumentNotReadyError
from ..ingestion.models import DocumentRecord
from .generation import GenerationOutcome, GenerationRequest, TextGenerator
from .scoring import DEFAULT_TOP_K, select_relevant_chunks

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant that answers questions about books. "
    "Use the provided book content to answer questions thoroughly and accurately. "
    "If you cannot answer the question based on the provided content, say so."
)

FALLBACK_ANSWER = "Sorry, I could not answer that question based on the book content."


class AnswerService:
    """
    Answers a question about one processed book from its best-scoring chunks.

    Anything that goes wrong inside the generator (network, auth, rate limit,
    timeout, malformed output) becomes FALLBACK_ANSWER. Asking before the book
    is processed raises DocumentNotReadyError instead, so callers can tell
    "try again later" apart from a failed answer.
    """

    def __init__(self, generator: TextGenerator, top_k: int = DEFAULT_TOP_K):
        self.generator = generator
        self.top_k = top_k

    def ask(self, document: DocumentRecord, question: str) -> str:
        if not document.processed:
            raise DocumentNotReadyError(document.id)

        request = self.build_request(document, question)
        outcome = self._generate(request)
        if not outcome.ok:
            logger.warning("Answer generation failed for %s: %s", document.id, outcome.failure)
            return FALLBACK_ANSWER
        return outcome.answer

    def build_request(self, document: DocumentRecord, question: str) -> GenerationRequest:
        selected = select_relevant_chunks(question, document.chunks, limit=self.top_k)
        context = " ".join(s.content for s in selected)
        logger.debug(
            "Selected chunks %s for %s", [(s.index, s.score) for s in selected], document.id
        )
        return GenerationRequest(
            system_instruction=SYSTEM_INSTRUCTION,
            title=document.title,
            author=document.author,
            context=context,
            question=question,
        )

    def _generate(self, request: GenerationRequest) -> GenerationOutcome:
        try:
            return GenerationOutcome.success(self.generator.generate(request))
        except Exception as exc:  # noqa: BLE001
            return GenerationOutcome.failed(f"{type(exc).__name__}: {exc}")
