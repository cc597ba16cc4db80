from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import DocumentNotFoundError
from .chunking import DEFAULT_CHUNK_SIZE, chunk_sections
from .models import DocumentFormat, DocumentStatus
from .parsers import DocumentParser, get_parser
from .repository import DocumentRepository

logger = logging.getLogger(__name__)


class ProcessingWorker:
    """
    Drives one processing attempt: claim -> parse -> chunk -> persist.

    The worker is stateless and relies on the repository for document state.
    Success writes metadata, chunks and the processed status in a single
    repository call; any failure writes only the error message and leaves
    chunks untouched. Attempts are never retried automatically.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        parser_factory: Callable[[DocumentFormat], DocumentParser] = get_parser,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.repo = repository
        self.parser_factory = parser_factory
        self.chunk_size = chunk_size

    def run_job(
        self,
        document_id: str,
        file_locator: Optional[str] = None,
        file_format: Optional[DocumentFormat] = None,
    ) -> DocumentStatus:
        document = self.repo.get_document(document_id, include_chunks=False)
        if not document:
            raise DocumentNotFoundError(document_id)

        if not self.repo.claim_for_processing(document_id):
            logger.warning(
                "Skipping processing of %s: document is %s", document_id, document.status.value
            )
            return document.status

        try:
            path = Path(file_locator or document.file_path)
            fmt = DocumentFormat(file_format or document.file_format)
            logger.info("Processing %s (%s) from %s", document_id, fmt.value, path)
            parsed = self.parser_factory(fmt).parse(path)
            chunks = chunk_sections(parsed.sections, self.chunk_size)
            self.repo.complete_processing(document_id, parsed.metadata, chunks)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Processing failed for %s", document_id)
            self.repo.fail_processing(document_id, str(exc))
            raise

        logger.info("Processed %s into %d chunks", document_id, len(chunks))
        return DocumentStatus.PROCESSED
