"""
Ingestion subsystem exports.
"""

from .chunking import DEFAULT_CHUNK_SIZE, chunk_sections
from .job_queue import ExecutorJobQueue, JobQueue, RQJobQueue, WorkerConfig, run_processing_job
from .models import (
    METADATA_KEYS,
    ChunkRecord,
    DocumentFormat,
    DocumentRecord,
    DocumentStatus,
    ParsedBook,
    ProcessingStatus,
)
from .parsers import DocumentParser, EpubParser, PdfParser, PlainTextParser, get_parser, strip_markup
from .repository import DocumentRepository, InMemoryDocumentRepository, SqlAlchemyDocumentRepository
from .service import DocumentService
from .storage import LocalBookStorage, StoragePaths, compute_md5_bytes, compute_md5_file
from .worker import ProcessingWorker

__all__ = [
    "ChunkRecord",
    "DEFAULT_CHUNK_SIZE",
    "DocumentFormat",
    "DocumentParser",
    "DocumentRecord",
    "DocumentRepository",
    "DocumentService",
    "DocumentStatus",
    "EpubParser",
    "ExecutorJobQueue",
    "InMemoryDocumentRepository",
    "JobQueue",
    "LocalBookStorage",
    "METADATA_KEYS",
    "ParsedBook",
    "PdfParser",
    "PlainTextParser",
    "ProcessingStatus",
    "ProcessingWorker",
    "RQJobQueue",
    "SqlAlchemyDocumentRepository",
    "StoragePaths",
    "WorkerConfig",
    "chunk_sections",
    "compute_md5_bytes",
    "compute_md5_file",
    "get_parser",
    "run_processing_job",
    "strip_markup",
]
