from pathlib import Path
from typing import List

import pytest
from ebooklib import epub


def write_epub(
    path: Path,
    chapters: List[str],
    title: str = "The Test Book",
    author: str = "Jane Doe",
    publisher: str = "Acme Press",
    language: str = "en",
) -> Path:
    book = epub.EpubBook()
    book.set_identifier("test-book-001")
    book.set_title(title)
    book.set_language(language)
    book.add_author(author)
    book.add_metadata("DC", "publisher", publisher)

    items = []
    for number, body in enumerate(chapters, start=1):
        item = epub.EpubHtml(title=f"Chapter {number}", file_name=f"chap_{number}.xhtml", lang=language)
        item.content = body
        book.add_item(item)
        items.append(item)

    book.toc = tuple(items)
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = items
    epub.write_epub(str(path), book)
    return path


@pytest.fixture
def make_epub(tmp_path):
    def _make(chapters, name="book.epub", **metadata):
        return write_epub(tmp_path / name, chapters, **metadata)

    return _make
