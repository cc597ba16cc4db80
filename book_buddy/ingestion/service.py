from __future__ import annotations

import logging

from ..exceptions import DocumentNotFoundError, DocumentNotReadyError, PageOutOfRangeError, ProcessingConflictError
from .job_queue import JobQueue
from .models import DocumentFormat, DocumentRecord, DocumentStatus, ProcessingStatus
from .repository import DocumentRepository

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Operations the surrounding application calls: kick off processing, poll
    status and read pages. Callers are assumed to have authorized the request.
    """

    def __init__(self, repository: DocumentRepository, queue: JobQueue):
        self.repo = repository
        self.queue = queue

    def start_processing(self, document_id: str, file_locator: str, file_format: DocumentFormat) -> None:
        """
        Submit a processing attempt and return without waiting for it. Errors
        from the attempt are recorded on the document, not returned here.

        Documents that are processing or already processed are rejected; a
        failed document may be re-triggered.
        """
        document = self.repo.get_document(document_id, include_chunks=False)
        if not document:
            raise DocumentNotFoundError(document_id)
        if document.status in (DocumentStatus.PROCESSING, DocumentStatus.PROCESSED):
            raise ProcessingConflictError(document_id, document.status.value)

        self.queue.enqueue_processing(document_id, str(file_locator), DocumentFormat(file_format))
        logger.info("Queued processing for %s", document_id)

    def get_status(self, document_id: str) -> ProcessingStatus:
        document = self.repo.get_document(document_id, include_chunks=False)
        if not document:
            raise DocumentNotFoundError(document_id)
        return ProcessingStatus(
            document_id=document.id,
            status=document.status,
            processed=document.processed,
            error=document.processing_error,
            total_pages=document.total_pages,
        )

    def get_page(self, document: DocumentRecord, page_index: int) -> str:
        if not document.processed:
            raise DocumentNotReadyError(document.id)
        total_pages = len(document.chunks)
        if page_index < 0 or page_index >= total_pages:
            raise PageOutOfRangeError(page_index, total_pages)
        return document.chunks[page_index].content
