from __future__ import annotations

from typing import Optional


class BookBuddyError(Exception):
    """Base class for errors raised by the core."""


class ParseError(BookBuddyError):
    """The book container could not be opened or one of its sections could not be read."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause


class DocumentNotFoundError(BookBuddyError):
    def __init__(self, document_id: str):
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class DocumentNotReadyError(BookBuddyError):
    """Raised when content is requested before processing has completed."""

    def __init__(self, document_id: str):
        super().__init__(f"Document is still being processed: {document_id}")
        self.document_id = document_id


class ProcessingConflictError(BookBuddyError):
    """Processing was requested for a document that is running or already done."""

    def __init__(self, document_id: str, status: str):
        super().__init__(f"Cannot start processing document {document_id} in status '{status}'")
        self.document_id = document_id
        self.status = status


class PageOutOfRangeError(BookBuddyError, IndexError):
    def __init__(self, page_index: int, total_pages: int):
        super().__init__(f"Page {page_index} out of range (document has {total_pages} pages)")
        self.page_index = page_index
        self.total_pages = total_pages


class GenerationError(BookBuddyError):
    """The external text generator failed or returned something unusable."""
