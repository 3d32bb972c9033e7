"""Vault file store.

A vault is a directory of markdown documents. The store reads and writes raw
bytes; decoding and encoding belong to the document core. All paths are
relative to the vault root and may not escape it.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from .document.blocks_models import BlockKind, Document, DocumentMeta, new_block
from .document.markdown_renderer import render_document
from .errors import DocumentNotFoundError, PathValidationError, StoreError
from .settings import settings

logger = logging.getLogger(__name__)


class VaultStore:
    """Read/write documents under a vault root directory."""

    def __init__(self, root: Path | str | None = None) -> None:
        self.root = Path(root if root is not None else settings.vault_dir).resolve()

    def _safe_path(self, rel_path: str) -> Path:
        """Resolve a vault-relative path, refusing anything outside the root.

        Raises:
            PathValidationError: If the path is empty, absolute, or escapes the root.
        """
        if not isinstance(rel_path, str) or not rel_path.strip():
            raise PathValidationError("Path is required", path=rel_path, reason="empty")

        p = Path(rel_path.strip())
        if p.is_absolute():
            raise PathValidationError(
                f"Path must be relative: {rel_path}", path=rel_path, reason="absolute"
            )
        if ".." in p.parts:
            raise PathValidationError(
                f"Path contains illegal '..': {rel_path}", path=rel_path, reason="traversal"
            )

        candidate = (self.root / p).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            raise PathValidationError(
                f"Path escapes vault root: {rel_path}", path=rel_path, reason="escape"
            )
        return candidate

    def exists(self, rel_path: str) -> bool:
        """Check whether a document exists."""
        return self._safe_path(rel_path).is_file()

    def read(self, rel_path: str) -> bytes:
        """Read a document's raw bytes.

        Raises:
            DocumentNotFoundError: If the file does not exist.
            StoreError: If the file cannot be read.
        """
        path = self._safe_path(rel_path)
        if not path.is_file():
            raise DocumentNotFoundError(f"Document not found: {rel_path}", path=rel_path)

        try:
            data = path.read_bytes()
        except OSError as e:
            raise StoreError(
                f"Failed to read {rel_path}: {e}",
                operation="read",
                path=rel_path,
                recoverable=True,
            ) from e

        logger.debug("Read %s (%d bytes)", rel_path, len(data))
        return data

    def write(self, rel_path: str, data: bytes) -> None:
        """Write a document's bytes, replacing the file in one step.

        The data goes to a temporary file in the same directory which is then
        renamed over the target.

        Raises:
            StoreError: If the file cannot be written.
        """
        path = self._safe_path(rel_path)
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StoreError(
                f"Failed to write {rel_path}: {e}",
                operation="write",
                path=rel_path,
                recoverable=True,
            ) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug("Wrote %s (%d bytes)", rel_path, len(data))

    def list_documents(self) -> list[str]:
        """List document paths (vault-relative, POSIX style), sorted."""
        if not self.root.is_dir():
            return []

        files: list[str] = []
        for path in self.root.rglob(f"*{settings.document_suffix}"):
            if not path.is_file():
                continue
            rel = path.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            files.append(rel.as_posix())
        return sorted(files)


def new_document(title: str) -> Document:
    """Build the document a new vault file starts with.

    The body is a level-1 heading with the title, surrounded by blank lines.
    """
    blocks = [
        new_block(BlockKind.TEXT),
        new_block(BlockKind.HEADING_1, title),
        new_block(BlockKind.TEXT),
    ]
    return Document(meta=DocumentMeta.default(title), blocks=blocks)


def new_document_text(title: str) -> str:
    """Text of a new vault file."""
    doc = new_document(title)
    return render_document(doc, now=doc.meta.updated_at)
