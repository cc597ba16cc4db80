import pytest
from fastapi.testclient import TestClient

from api.app import app
from api.dependencies import get_answer_service, get_document_service, get_repo, get_storage
from book_buddy.exceptions import ParseError
from book_buddy.ingestion import (
    DocumentService,
    InMemoryDocumentRepository,
    LocalBookStorage,
    ProcessingWorker,
    StoragePaths,
)
from book_buddy.qa import FALLBACK_ANSWER, AnswerService


class RecordingQueue:
    def __init__(self):
        self.jobs = []

    def enqueue_processing(self, document_id, file_locator, file_format):
        self.jobs.append((document_id, file_locator, file_format))


class StubGenerator:
    def __init__(self, answer="It is about whales."):
        self.answer = answer
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


@pytest.fixture
def env(tmp_path):
    repo = InMemoryDocumentRepository()
    queue = RecordingQueue()
    generator = StubGenerator()
    storage = LocalBookStorage(StoragePaths(tmp_path / "data"))
    app.dependency_overrides[get_repo] = lambda: repo
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_document_service] = lambda: DocumentService(repo, queue)
    app.dependency_overrides[get_answer_service] = lambda: AnswerService(generator)
    try:
        yield {"client": TestClient(app), "repo": repo, "queue": queue, "generator": generator}
    finally:
        app.dependency_overrides.clear()


def _upload(client, content=b"Call me Ishmael. " * 100, filename="moby.txt"):
    return client.post(
        "/documents/upload",
        files={"file": (filename, content, "text/plain")},
        data={"title": "Moby Dick", "author": "Herman Melville"},
    )


def test_upload_returns_before_processing(env):
    response = _upload(env["client"])

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "uploaded"
    assert body["processed"] is False
    assert body["file_format"] == "txt"
    [(document_id, locator, file_format)] = env["queue"].jobs
    assert document_id == body["id"]
    assert locator.endswith("original.txt")
    assert env["repo"].get_document(document_id).file_md5


def test_upload_validation(env):
    client = env["client"]
    assert _upload(client, filename="notes.docx").status_code == 400
    assert _upload(client, content=b"").status_code == 400
    response = client.post(
        "/documents/upload",
        files={"file": ("moby.txt", b"text", "text/plain")},
        data={"title": "  ", "author": "Someone"},
    )
    assert response.status_code == 400
    assert env["queue"].jobs == []


def test_upload_over_size_limit_is_rejected(env, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "10")
    client = env["client"]

    assert _upload(client, content=b"x" * 11).status_code == 413
    assert env["queue"].jobs == []
    assert env["repo"].list_documents() == []

    assert _upload(client, content=b"x" * 10).status_code == 201


def test_status_pages_and_ask_after_processing(env):
    client = env["client"]
    document_id = _upload(client).json()["id"]

    assert client.get(f"/documents/{document_id}/status").json()["processed"] is False
    assert client.get(f"/documents/{document_id}/pages/0").status_code == 409
    assert client.post(f"/documents/{document_id}/ask", json={"question": "What about whales?"}).status_code == 409

    ProcessingWorker(repository=env["repo"]).run_job(document_id)

    status = client.get(f"/documents/{document_id}/status").json()
    assert status["processed"] is True
    assert status["status"] == "processed"
    assert status["total_pages"] == 2
    assert status["error"] is None

    page = client.get(f"/documents/{document_id}/pages/1").json()
    assert page["total_pages"] == 2
    assert "Ishmael" in page["content"]
    assert client.get(f"/documents/{document_id}/pages/2").status_code == 404

    answer = client.post(f"/documents/{document_id}/ask", json={"question": "Who is Ishmael?"})
    assert answer.status_code == 200
    assert answer.json() == {"answer": "It is about whales."}
    assert env["generator"].requests[0].title == "Moby Dick"


def test_ask_falls_back_when_generator_fails(env):
    client = env["client"]
    env["generator"].answer = RuntimeError("rate limited")
    document_id = _upload(client).json()["id"]
    ProcessingWorker(repository=env["repo"]).run_job(document_id)

    response = client.post(f"/documents/{document_id}/ask", json={"question": "Who is Ishmael?"})
    assert response.status_code == 200
    assert response.json() == {"answer": FALLBACK_ANSWER}


def test_ask_requires_question(env):
    client = env["client"]
    document_id = _upload(client).json()["id"]
    assert client.post(f"/documents/{document_id}/ask", json={"question": "   "}).status_code == 400


def test_reprocess_only_failed_documents(env):
    client = env["client"]
    document_id = _upload(client).json()["id"]
    ProcessingWorker(repository=env["repo"]).run_job(document_id)

    assert client.post(f"/documents/{document_id}/reprocess").status_code == 409

    broken_id = _upload(client, content=b"not an epub", filename="broken.epub").json()["id"]
    with pytest.raises(ParseError):
        ProcessingWorker(repository=env["repo"]).run_job(broken_id)
    failed = client.get(f"/documents/{broken_id}").json()
    assert failed["status"] == "failed" and failed["processing_error"]

    response = client.post(f"/documents/{broken_id}/reprocess")
    assert response.status_code == 202
    assert env["queue"].jobs[-1][0] == broken_id


def test_list_and_unknown_documents(env):
    client = env["client"]
    _upload(client)
    listed = client.get("/documents").json()
    assert [d["title"] for d in listed] == ["Moby Dick"]

    assert client.get("/documents/missing").status_code == 404
    assert client.get("/documents/missing/status").status_code == 404
    assert client.get("/documents/missing/pages/0").status_code == 404
    assert client.post("/documents/missing/ask", json={"question": "Anything?"}).status_code == 404
    assert client.get("/healthz").json() == {"status": "ok"}
