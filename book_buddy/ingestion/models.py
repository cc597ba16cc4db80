from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, Optional


class DocumentFormat(str, Enum):
    EPUB = "epub"
    PDF = "pdf"
    TXT = "txt"

    @classmethod
    def from_filename(cls, filename: str) -> "DocumentFormat":
        suffix = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        try:
            return cls(suffix)
        except ValueError:
            raise ValueError(f"Unsupported file type: {filename!r}") from None


class DocumentStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


# Closed set of bibliographic keys every parser fills in.
METADATA_KEYS = ("title", "author", "publisher", "language")


def normalize_metadata(values: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """
    Project arbitrary parser metadata onto METADATA_KEYS, defaulting to "".
    """
    return {key: (values.get(key) or "").strip() for key in METADATA_KEYS}


@dataclass(frozen=True)
class ChunkRecord:
    index: int
    content: str


@dataclass
class ParsedBook:
    metadata: Dict[str, str]
    sections: List[str]


@dataclass
class DocumentRecord:
    id: str
    title: str
    author: str
    file_format: DocumentFormat
    file_path: str
    file_md5: Optional[str] = None
    status: DocumentStatus = DocumentStatus.UPLOADED
    processing_error: Optional[str] = None
    chunks: List[ChunkRecord] = field(default_factory=list)
    chunk_count: int = 0
    metadata: Dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def processed(self) -> bool:
        return self.status == DocumentStatus.PROCESSED

    @property
    def total_pages(self) -> int:
        return self.chunk_count


@dataclass
class ProcessingStatus:
    document_id: str
    status: DocumentStatus
    processed: bool
    error: Optional[str]
    total_pages: int
