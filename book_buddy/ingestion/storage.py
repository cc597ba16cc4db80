from __future__ import annotations

import hashlib
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .models import DocumentFormat

logger = logging.getLogger(__name__)


@dataclass
class StoragePaths:
    root: Path

    def book_dir(self, document_id: str) -> Path:
        return self.root / "books" / str(document_id)

    def original_path(self, document_id: str, file_format: DocumentFormat) -> Path:
        return self.book_dir(document_id) / f"original.{DocumentFormat(file_format).value}"


class LocalBookStorage:
    """
    Keeps uploaded source files on the local filesystem. Files are never
    removed by processing, so a failed attempt can be re-run from the same
    upload.
    """

    def __init__(self, storage_paths: StoragePaths):
        self.paths = storage_paths

    def ensure_base_dirs(self, document_id: str) -> None:
        self.paths.book_dir(document_id).mkdir(parents=True, exist_ok=True)

    def save_original(self, document_id: str, source: Path, file_format: DocumentFormat) -> Path:
        self.ensure_base_dirs(document_id)
        target = self.paths.original_path(document_id, file_format)
        shutil.copy2(source, target)
        return target

    def save_original_bytes(self, document_id: str, data: bytes, file_format: DocumentFormat) -> Path:
        self.ensure_base_dirs(document_id)
        target = self.paths.original_path(document_id, file_format)
        target.write_bytes(data)
        logger.info("Stored upload for %s at %s (%d bytes)", document_id, target, len(data))
        return target

    def find_original(self, document_id: str, file_format: DocumentFormat) -> Optional[Path]:
        path = self.paths.original_path(document_id, file_format)
        return path if path.exists() else None


def compute_md5_bytes(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def compute_md5_file(path: Path) -> str:
    digest = hashlib.md5()
    with path.open("rb") as f:
        for block in iter(lambda: f.read(8192), b""):
            digest.update(block)
    return digest.hexdigest()
