"""
Example: process a local book file into SQLite and optionally ask a question.

Usage:
    python3 processing_demo.py --file /path/to/book.epub --title "My Book" --author "Someone" \
        --question "Who is the narrator?"
"""

import argparse
import os
from pathlib import Path

from book_buddy.ingestion import (
    DocumentFormat,
    DocumentRecord,
    LocalBookStorage,
    ProcessingWorker,
    SqlAlchemyDocumentRepository,
    StoragePaths,
    compute_md5_file,
)
from book_buddy.qa import AnswerService, OpenAIChatGenerator


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", required=True, type=Path, help="Path to an .epub, .pdf or .txt book")
    parser.add_argument("--title", required=True, help="Book title")
    parser.add_argument("--author", required=True, help="Book author")
    parser.add_argument("--document-id", default="book-demo", help="Document id (for DB/paths)")
    parser.add_argument("--db", default=Path("./data/book_buddy.db"), type=Path, help="SQLite DB path")
    parser.add_argument("--storage-root", default=Path("./data"), type=Path, help="Storage root for uploads")
    parser.add_argument("--question", default=None, help="Question to ask once processing is done")
    args = parser.parse_args()

    if not args.file.exists():
        raise FileNotFoundError(f"Book not found: {args.file}")
    file_format = DocumentFormat.from_filename(args.file.name)

    args.db.parent.mkdir(parents=True, exist_ok=True)
    storage = LocalBookStorage(StoragePaths(args.storage_root))
    original_path = storage.save_original(args.document_id, args.file, file_format)

    repo = SqlAlchemyDocumentRepository(f"sqlite+pysqlite:///{args.db}")
    repo.save_document(
        DocumentRecord(
            id=args.document_id,
            title=args.title,
            author=args.author,
            file_format=file_format,
            file_path=str(original_path),
            file_md5=compute_md5_file(args.file),
        )
    )

    print(f"Processing {args.document_id} from {original_path}")
    ProcessingWorker(repository=repo).run_job(args.document_id)
    document = repo.get_document(args.document_id)
    print(f"Finished with status={document.status.value}, pages={document.total_pages}")
    print(f"Metadata: {document.metadata}")

    if args.question:
        generator = OpenAIChatGenerator(
            api_key=os.getenv("OPENAI_API_KEY"),
            model=os.getenv("OPENAI_MODEL", "gpt-4"),
        )
        print(AnswerService(generator).ask(document, args.question))


if __name__ == "__main__":
    main()
