from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from book_buddy.exceptions import (
    DocumentNotFoundError,
    DocumentNotReadyError,
    PageOutOfRangeError,
    ProcessingConflictError,
)
from book_buddy.ingestion import (
    DocumentFormat,
    DocumentRecord,
    DocumentRepository,
    DocumentService,
    DocumentStatus,
    LocalBookStorage,
    compute_md5_bytes,
)
from book_buddy.qa import AnswerService

from api.dependencies import (
    build_document_id,
    get_answer_service,
    get_document_service,
    get_max_upload_bytes,
    get_repo,
    get_storage,
)

router = APIRouter(prefix="/documents", tags=["documents"])

UPLOAD_READ_SIZE = 1024 * 1024


class AskRequest(BaseModel):
    question: str = ""


def _summary(document: DocumentRecord) -> dict:
    return {
        "id": document.id,
        "title": document.title,
        "author": document.author,
        "file_format": document.file_format,
        "status": document.status,
        "processed": document.processed,
        "processing_error": document.processing_error,
        "total_pages": document.total_pages,
        "metadata": document.metadata,
        "created_at": document.created_at,
    }


def _load(repo: DocumentRepository, document_id: str, include_chunks: bool = False) -> DocumentRecord:
    document = repo.get_document(document_id, include_chunks=include_chunks)
    if not document:
        raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
    return document


@router.get("")
def list_documents(repo: DocumentRepository = Depends(get_repo)):
    return [_summary(d) for d in repo.list_documents()]


@router.get("/{document_id}")
def get_document(document_id: str, repo: DocumentRepository = Depends(get_repo)):
    return _summary(_load(repo, document_id))


@router.get("/{document_id}/status")
def get_status(document_id: str, service: DocumentService = Depends(get_document_service)):
    try:
        status = service.get_status(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {
        "id": status.document_id,
        "status": status.status,
        "processed": status.processed,
        "error": status.error,
        "total_pages": status.total_pages,
    }


@router.get("/{document_id}/pages/{page_index}")
def get_page(
    document_id: str,
    page_index: int,
    repo: DocumentRepository = Depends(get_repo),
    service: DocumentService = Depends(get_document_service),
):
    document = _load(repo, document_id, include_chunks=True)
    try:
        content = service.get_page(document, page_index)
    except DocumentNotReadyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except PageOutOfRangeError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"page": page_index, "total_pages": len(document.chunks), "content": content}


@router.post("/{document_id}/ask")
def ask_question(
    document_id: str,
    body: AskRequest,
    repo: DocumentRepository = Depends(get_repo),
    answers: AnswerService = Depends(get_answer_service),
):
    if not body.question.strip():
        raise HTTPException(status_code=400, detail="Question is required")
    document = _load(repo, document_id, include_chunks=True)
    try:
        answer = answers.ask(document, body.question)
    except DocumentNotReadyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"answer": answer}


@router.post("/{document_id}/reprocess", status_code=202)
def reprocess_document(
    document_id: str,
    repo: DocumentRepository = Depends(get_repo),
    service: DocumentService = Depends(get_document_service),
):
    document = _load(repo, document_id)
    try:
        service.start_processing(document.id, document.file_path, document.file_format)
    except ProcessingConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"id": document.id, "status": DocumentStatus.PROCESSING}


@router.post("/upload", status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    title: str = Form(...),
    author: str = Form(...),
    repo: DocumentRepository = Depends(get_repo),
    storage: LocalBookStorage = Depends(get_storage),
    service: DocumentService = Depends(get_document_service),
):
    if not title.strip() or not author.strip():
        raise HTTPException(status_code=400, detail="Title and author are required")
    try:
        file_format = DocumentFormat.from_filename(file.filename or "")
    except ValueError:
        raise HTTPException(status_code=400, detail="Only EPUB, PDF, and TXT files are allowed")

    payload = await _read_upload(file, get_max_upload_bytes())
    if not payload:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    document_id = build_document_id(title)
    original_path = storage.save_original_bytes(document_id, payload, file_format)
    document = DocumentRecord(
        id=document_id,
        title=title.strip(),
        author=author.strip(),
        file_format=file_format,
        file_path=str(original_path),
        file_md5=compute_md5_bytes(payload),
    )
    repo.save_document(document)

    service.start_processing(document_id, str(original_path), file_format)
    return _summary(document)


async def _read_upload(file: UploadFile, limit: int) -> bytes:
    """Read the upload in bounded pieces, rejecting it once it exceeds ``limit``."""
    if file.size is not None and file.size > limit:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")
    parts = []
    total = 0
    while True:
        part = await file.read(UPLOAD_READ_SIZE)
        if not part:
            break
        total += len(part)
        if total > limit:
            raise HTTPException(status_code=413, detail="Uploaded file is too large")
        parts.append(part)
    return b"".join(parts)
