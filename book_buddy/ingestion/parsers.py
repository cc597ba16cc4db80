from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from bs4 import BeautifulSoup
from ebooklib import epub
from pypdf import PdfReader

from ..exceptions import ParseError
from .models import DocumentFormat, ParsedBook, normalize_metadata

logger = logging.getLogger(__name__)


def strip_markup(markup) -> str:
    """
    Extract the text of an HTML fragment with BeautifulSoup. Every tag
    boundary becomes a space, so words on either side of a tag never run
    together; the fragment's own edges count as boundaries too. Comments
    are dropped and character entities are decoded.
    """
    soup = BeautifulSoup(markup, "html.parser")
    return f" {soup.get_text(' ')} "


class DocumentParser:
    """
    Abstract parser. Implementations are stateless and reusable: parsing the
    same file twice yields identical output.
    """

    file_format: DocumentFormat

    def parse(self, path: Path) -> ParsedBook:
        raise NotImplementedError


class EpubParser(DocumentParser):
    """
    Reads an EPUB container with ebooklib. Sections follow the spine, which
    is the book's reading flow, and are returned markup-stripped.
    """

    file_format = DocumentFormat.EPUB

    def parse(self, path: Path) -> ParsedBook:
        try:
            book = epub.read_epub(str(path), options={"ignore_ncx": True})
        except Exception as exc:  # noqa: BLE001
            raise ParseError(f"Could not open EPUB container {path}", exc) from exc

        metadata = normalize_metadata(
            {
                "title": self._first_dc(book, "title"),
                "author": self._first_dc(book, "creator"),
                "publisher": self._first_dc(book, "publisher"),
                "language": self._first_dc(book, "language"),
            }
        )

        sections: List[str] = []
        for position, entry in enumerate(book.spine):
            idref = entry[0] if isinstance(entry, (tuple, list)) else entry
            item = book.get_item_with_id(idref)
            if item is None:
                raise ParseError(f"Spine item {idref!r} (position {position}) is missing from {path}")
            try:
                body = self._body_of(item)
            except Exception as exc:  # noqa: BLE001
                raise ParseError(f"Could not read spine item {idref!r} from {path}", exc) from exc
            sections.append(strip_markup(body))

        logger.debug("Parsed EPUB %s: %d sections", path, len(sections))
        return ParsedBook(metadata=metadata, sections=sections)

    def _first_dc(self, book: epub.EpubBook, name: str) -> Optional[str]:
        values = book.get_metadata("DC", name)
        if not values:
            return None
        value = values[0][0] if isinstance(values[0], tuple) else values[0]
        return str(value) if value is not None else None

    def _body_of(self, item):
        # Only <body> is chapter text; <head><title> must not leak in.
        get_body_content = getattr(item, "get_body_content", None)
        body = get_body_content() if get_body_content is not None else b""
        if body:
            return body
        # ebooklib yields nothing when <body> holds bare text without child elements.
        soup = BeautifulSoup(item.get_content(), "html.parser")
        return (soup.body or soup).decode_contents()


class PlainTextParser(DocumentParser):
    """The whole file is one section; no bibliographic metadata is available."""

    file_format = DocumentFormat.TXT

    def parse(self, path: Path) -> ParsedBook:
        try:
            text = Path(path).read_bytes().decode("utf-8", errors="replace")
        except OSError as exc:
            raise ParseError(f"Could not read text file {path}", exc) from exc
        return ParsedBook(metadata=normalize_metadata({}), sections=[text])


class PdfParser(DocumentParser):
    """
    Extracts text page by page with pypdf. Each page becomes one section, so
    chunks never straddle a page break.
    """

    file_format = DocumentFormat.PDF

    def parse(self, path: Path) -> ParsedBook:
        try:
            reader = PdfReader(str(path))
            sections = [page.extract_text() or "" for page in reader.pages]
            info = reader.metadata
        except Exception as exc:  # noqa: BLE001
            raise ParseError(f"Could not read PDF {path}", exc) from exc

        values: Dict[str, Optional[str]] = {}
        if info is not None:
            values = {"title": info.title, "author": info.author}
        return ParsedBook(metadata=normalize_metadata(values), sections=sections)


_PARSERS = {
    DocumentFormat.EPUB: EpubParser,
    DocumentFormat.TXT: PlainTextParser,
    DocumentFormat.PDF: PdfParser,
}


def get_parser(file_format: DocumentFormat) -> DocumentParser:
    try:
        return _PARSERS[DocumentFormat(file_format)]()
    except (KeyError, ValueError):
        raise ParseError(f"No parser for format {file_format!r}") from None
