from __future__ import annotations

import os
import uuid
from functools import lru_cache
from pathlib import Path

from book_buddy.ingestion import (
    DocumentRepository,
    DocumentService,
    ExecutorJobQueue,
    JobQueue,
    LocalBookStorage,
    ProcessingWorker,
    RQJobQueue,
    SqlAlchemyDocumentRepository,
    StoragePaths,
    WorkerConfig,
)
from book_buddy.qa import AnswerService, OpenAIChatGenerator

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./data/book_buddy.db"
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def get_worker_config() -> WorkerConfig:
    return WorkerConfig(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        chunk_size=int(os.getenv("CHUNK_SIZE", "1000")),
    )


def get_max_upload_bytes() -> int:
    return int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES)))


@lru_cache(maxsize=1)
def get_repo() -> DocumentRepository:
    return SqlAlchemyDocumentRepository(get_worker_config().database_url)


@lru_cache(maxsize=1)
def get_storage() -> LocalBookStorage:
    root = Path(os.getenv("BOOK_STORAGE_ROOT", "./data"))
    return LocalBookStorage(StoragePaths(root))


def build_worker() -> ProcessingWorker:
    return ProcessingWorker(repository=get_repo(), chunk_size=get_worker_config().chunk_size)


@lru_cache(maxsize=1)
def get_queue() -> JobQueue:
    backend = os.getenv("JOB_QUEUE", "thread").lower()
    if backend == "rq":
        return RQJobQueue(get_worker_config(), redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    return ExecutorJobQueue(build_worker, max_workers=int(os.getenv("WORKER_THREADS", "2")))


def get_document_service() -> DocumentService:
    return DocumentService(repository=get_repo(), queue=get_queue())


@lru_cache(maxsize=1)
def get_answer_service() -> AnswerService:
    generator = OpenAIChatGenerator(
        api_key=os.getenv("OPENAI_API_KEY"),
        model=os.getenv("OPENAI_MODEL", "gpt-4"),
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        timeout=float(os.getenv("LLM_TIMEOUT_SECONDS", "30")),
    )
    return AnswerService(generator)


def build_document_id(title: str) -> str:
    normalized = title.strip().lower()
    slug = "".join(ch if ch.isalnum() else "-" for ch in normalized).strip("-") or "book"
    return f"{slug[:48]}-{uuid.uuid4().hex[:8]}"
