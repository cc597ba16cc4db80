from __future__ import annotations

import json
import threading
from copy import deepcopy
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from sqlalchemy import Column, DateTime, Enum, Integer, String, Text, create_engine, delete, select, update
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..exceptions import DocumentNotFoundError
from .models import ChunkRecord, DocumentFormat, DocumentRecord, DocumentStatus

Base = declarative_base()

# A document may only be claimed for processing from these states.
CLAIMABLE_STATUSES = (DocumentStatus.UPLOADED, DocumentStatus.FAILED)


class DocumentModel(Base):
    __tablename__ = "documents"
    id = Column(String, primary_key=True)
    title = Column(String)
    author = Column(String)
    file_format = Column(Enum(DocumentFormat))
    file_path = Column(String)
    file_md5 = Column(String)
    status = Column(Enum(DocumentStatus))
    processing_error = Column(Text)
    chunk_count = Column(Integer, default=0)
    metadata_json = Column(Text)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class ChunkModel(Base):
    __tablename__ = "chunks"
    id = Column(String, primary_key=True)
    document_id = Column(String, index=True)
    chunk_index = Column(Integer)
    content = Column(Text)


class DocumentRepository:
    """
    Abstract persistence boundary for documents and their chunks.

    The three lifecycle writes (claim, complete, fail) are each atomic: a
    reader sees a document either before or after one of them, never halfway.
    """

    def get_document(self, document_id: str, include_chunks: bool = True) -> Optional[DocumentRecord]:
        raise NotImplementedError

    def save_document(self, document: DocumentRecord) -> None:
        raise NotImplementedError

    def list_documents(self) -> List[DocumentRecord]:
        raise NotImplementedError

    def claim_for_processing(self, document_id: str) -> bool:
        """
        Move an uploaded or failed document to PROCESSING and clear its error.
        Returns False when another attempt already owns it or it is done.
        """
        raise NotImplementedError

    def complete_processing(
        self,
        document_id: str,
        metadata: Mapping[str, str],
        chunks: Sequence[ChunkRecord],
    ) -> None:
        raise NotImplementedError

    def fail_processing(self, document_id: str, error_message: str) -> None:
        raise NotImplementedError


class InMemoryDocumentRepository(DocumentRepository):
    """
    Simple in-memory store for local runs and tests. Writes are serialized by a
    lock and records are copied in and out to avoid cross-mutation.
    """

    def __init__(self):
        self.documents: Dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()

    def _clone(self, obj):
        return deepcopy(obj)

    def get_document(self, document_id: str, include_chunks: bool = True) -> Optional[DocumentRecord]:
        with self._lock:
            document = self.documents.get(document_id)
            if not document:
                return None
            clone = self._clone(document)
        if not include_chunks:
            clone.chunks = []
        return clone

    def save_document(self, document: DocumentRecord) -> None:
        with self._lock:
            self.documents[document.id] = self._clone(document)

    def list_documents(self) -> List[DocumentRecord]:
        with self._lock:
            documents = [self._clone(d) for d in self.documents.values()]
        for document in documents:
            document.chunks = []
        return sorted(documents, key=lambda d: d.created_at, reverse=True)

    def claim_for_processing(self, document_id: str) -> bool:
        with self._lock:
            document = self.documents.get(document_id)
            if not document:
                raise DocumentNotFoundError(document_id)
            if document.status not in CLAIMABLE_STATUSES:
                return False
            document.status = DocumentStatus.PROCESSING
            document.processing_error = None
            document.updated_at = datetime.utcnow()
            return True

    def complete_processing(
        self,
        document_id: str,
        metadata: Mapping[str, str],
        chunks: Sequence[ChunkRecord],
    ) -> None:
        with self._lock:
            document = self.documents.get(document_id)
            if not document:
                raise DocumentNotFoundError(document_id)
            updated = self._clone(document)
            updated.metadata = dict(metadata)
            updated.chunks = list(chunks)
            updated.chunk_count = len(chunks)
            updated.status = DocumentStatus.PROCESSED
            updated.processing_error = None
            updated.updated_at = datetime.utcnow()
            # Swap the whole record so readers never see a partial update.
            self.documents[document_id] = updated

    def fail_processing(self, document_id: str, error_message: str) -> None:
        with self._lock:
            document = self.documents.get(document_id)
            if not document:
                raise DocumentNotFoundError(document_id)
            document.status = DocumentStatus.FAILED
            document.processing_error = error_message
            document.updated_at = datetime.utcnow()


class SqlAlchemyDocumentRepository(DocumentRepository):
    """
    SQL-backed repository using SQLAlchemy. Works with SQLite/Postgres URLs.
    """

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    def _to_record(self, model: DocumentModel, chunks: Optional[List[ChunkRecord]] = None) -> DocumentRecord:
        return DocumentRecord(
            id=model.id,
            title=model.title,
            author=model.author,
            file_format=model.file_format,
            file_path=model.file_path,
            file_md5=model.file_md5,
            status=model.status,
            processing_error=model.processing_error,
            chunks=chunks or [],
            chunk_count=int(model.chunk_count or 0),
            metadata=json.loads(model.metadata_json or "{}"),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    # region Document operations
    def get_document(self, document_id: str, include_chunks: bool = True) -> Optional[DocumentRecord]:
        with self._session() as session:
            model = session.get(DocumentModel, document_id)
            if not model:
                return None
            chunks: List[ChunkRecord] = []
            # Chunks are only visible once the completing transaction has committed.
            if include_chunks and model.status == DocumentStatus.PROCESSED:
                stmt = (
                    select(ChunkModel)
                    .where(ChunkModel.document_id == document_id)
                    .order_by(ChunkModel.chunk_index)
                )
                chunks = [
                    ChunkRecord(index=int(c.chunk_index), content=c.content)
                    for c in session.execute(stmt).scalars().all()
                ]
            return self._to_record(model, chunks)

    def save_document(self, document: DocumentRecord) -> None:
        with self._session() as session:
            model = DocumentModel(
                id=document.id,
                title=document.title,
                author=document.author,
                file_format=document.file_format,
                file_path=document.file_path,
                file_md5=document.file_md5,
                status=document.status,
                processing_error=document.processing_error,
                chunk_count=document.chunk_count,
                metadata_json=json.dumps(document.metadata or {}),
                created_at=document.created_at,
                updated_at=document.updated_at,
            )
            session.merge(model)
            session.commit()

    def list_documents(self) -> List[DocumentRecord]:
        with self._session() as session:
            stmt = select(DocumentModel).order_by(DocumentModel.created_at.desc())
            return [self._to_record(m) for m in session.execute(stmt).scalars().all()]

    # endregion

    # region Processing lifecycle
    def claim_for_processing(self, document_id: str) -> bool:
        with self._session() as session:
            if session.get(DocumentModel, document_id) is None:
                raise DocumentNotFoundError(document_id)
            stmt = (
                update(DocumentModel)
                .where(DocumentModel.id == document_id, DocumentModel.status.in_(CLAIMABLE_STATUSES))
                .values(status=DocumentStatus.PROCESSING, processing_error=None, updated_at=datetime.utcnow())
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount == 1

    def complete_processing(
        self,
        document_id: str,
        metadata: Mapping[str, str],
        chunks: Sequence[ChunkRecord],
    ) -> None:
        with self._session() as session:
            stmt = (
                update(DocumentModel)
                .where(DocumentModel.id == document_id)
                .values(
                    status=DocumentStatus.PROCESSED,
                    processing_error=None,
                    chunk_count=len(chunks),
                    metadata_json=json.dumps(dict(metadata)),
                    updated_at=datetime.utcnow(),
                )
            )
            if session.execute(stmt).rowcount != 1:
                raise DocumentNotFoundError(document_id)
            session.execute(delete(ChunkModel).where(ChunkModel.document_id == document_id))
            session.add_all(
                ChunkModel(
                    id=f"{document_id}-c{chunk.index}",
                    document_id=document_id,
                    chunk_index=chunk.index,
                    content=chunk.content,
                )
                for chunk in chunks
            )
            session.commit()

    def fail_processing(self, document_id: str, error_message: str) -> None:
        with self._session() as session:
            stmt = (
                update(DocumentModel)
                .where(DocumentModel.id == document_id)
                .values(status=DocumentStatus.FAILED, processing_error=error_message, updated_at=datetime.utcnow())
            )
            if session.execute(stmt).rowcount != 1:
                raise DocumentNotFoundError(document_id)
            session.commit()

    # endregion
