from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from redis import Redis
from rq import Queue, Worker

from .chunking import DEFAULT_CHUNK_SIZE
from .models import DocumentFormat
from .repository import SqlAlchemyDocumentRepository
from .worker import ProcessingWorker

logger = logging.getLogger(__name__)


@dataclass
class WorkerConfig:
    database_url: str
    chunk_size: int = DEFAULT_CHUNK_SIZE


def run_processing_job(
    document_id: str,
    file_locator: str,
    file_format: str,
    config: WorkerConfig,
) -> str:
    """
    RQ task entrypoint. Creates the components it needs and runs one attempt.
    """
    repo = SqlAlchemyDocumentRepository(config.database_url)
    worker = ProcessingWorker(repository=repo, chunk_size=config.chunk_size)
    return worker.run_job(document_id, file_locator, DocumentFormat(file_format)).value


class JobQueue(Protocol):
    def enqueue_processing(self, document_id: str, file_locator: str, file_format: DocumentFormat) -> None:
        ...


class ExecutorJobQueue:
    """
    In-process queue backed by a thread pool. Failures are already recorded on
    the document by the worker; the callback only keeps them out of the void.
    """

    def __init__(self, worker_factory: Callable[[], ProcessingWorker], max_workers: int = 2):
        self.worker_factory = worker_factory
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="book-processing")

    def enqueue_processing(self, document_id: str, file_locator: str, file_format: DocumentFormat) -> Future:
        future = self.executor.submit(self._run, document_id, file_locator, file_format)
        future.add_done_callback(lambda f: self._log_outcome(document_id, f))
        return future

    def _run(self, document_id: str, file_locator: str, file_format: DocumentFormat):
        return self.worker_factory().run_job(document_id, file_locator, file_format)

    def _log_outcome(self, document_id: str, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Processing job for %s ended with error: %s", document_id, exc)

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)


class RQJobQueue:
    """
    Redis-backed job queue using RQ. The queue pushes jobs to Redis and workers
    can be started by calling `work()` in a dedicated process.
    """

    def __init__(
        self,
        config: WorkerConfig,
        redis_url: str = "redis://localhost:6379/0",
        queue_name: str = "processing-jobs",
        connection: Optional[Redis] = None,
    ):
        self.config = config
        self.redis = connection if connection is not None else Redis.from_url(redis_url)
        self.queue = Queue(queue_name, connection=self.redis)

    def enqueue_processing(self, document_id: str, file_locator: str, file_format: DocumentFormat):
        """
        Enqueue a processing job. The RQ job id is derived from the document id
        and no retry is configured.
        """
        return self.queue.enqueue(
            run_processing_job,
            document_id,
            str(file_locator),
            DocumentFormat(file_format).value,
            self.config,
            job_id=f"process-{document_id}",
            retry=None,
        )

    def work(self):
        worker = Worker([self.queue], connection=self.redis)
        worker.work(with_scheduler=True)
