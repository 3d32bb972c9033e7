"""Editing session for one document.

The session owns the in-memory document between open and save. User
actions are applied one at a time through the mutation engine, and every
change is recorded so it can be undone.

Usage:
    session = EditingSession(store, "notes/today.md")
    session.open()
    session.apply(blocks_tree.indent, block_id)
    session.undo()
    session.save()
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable

from .document.blocks_models import Block, Document, now_iso
from .document.frontmatter import parse_tags
from .document.markdown_parser import parse_document
from .document.markdown_renderer import encode_document
from .document.numbering import Numbering, number_of
from .errors import CortexError, StoreError, ValidationError
from .settings import settings
from .vault_fs import VaultStore, new_document_text

logger = logging.getLogger(__name__)

Operation = Callable[..., Any]

# Metadata keys that only the store/decoder may set
_READ_ONLY_META = frozenset({"id", "created_at", "updated_at"})


class BlockHistory:
    """Bounded undo/redo stacks of block-list snapshots.

    Blocks are immutable, so a snapshot is just the list itself.
    """

    def __init__(self, limit: int) -> None:
        self.limit = max(1, limit)
        self._undo: deque[list[Block]] = deque(maxlen=self.limit)
        self._redo: list[list[Block]] = []

    def push(self, blocks: list[Block]) -> None:
        """Record the state before a change; clears the redo stack."""
        self._undo.append(list(blocks))
        self._redo.clear()

    def undo(self, current: list[Block]) -> list[Block] | None:
        """Step back, returning the previous state (or None)."""
        if not self._undo:
            return None
        self._redo.append(list(current))
        return self._undo.pop()

    def redo(self, current: list[Block]) -> list[Block] | None:
        """Step forward again, returning the next state (or None)."""
        if not self._redo:
            return None
        self._undo.append(list(current))
        return self._redo.pop()

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()


class EditingSession:
    """Single-writer editing session over a vault document."""

    def __init__(
        self,
        store: VaultStore,
        path: str,
        *,
        history_limit: int | None = None,
    ) -> None:
        self.store = store
        self.path = path
        self.document: Document | None = None
        self.dirty = False
        self.history = BlockHistory(history_limit or settings.history_limit)
        self._lock = threading.Lock()

    @classmethod
    def create(cls, store: VaultStore, path: str, title: str) -> EditingSession:
        """Create a new document file and open a session on it.

        Raises:
            StoreError: If a document already exists at path.
        """
        if store.exists(path):
            raise StoreError(f"Document already exists: {path}", operation="create", path=path)
        store.write(path, new_document_text(title).encode("utf-8"))
        logger.info("Created document %s", path)

        session = cls(store, path)
        session.open()
        return session

    # =========================================================================
    # Load / Save
    # =========================================================================

    def open(self) -> Document:
        """Read and decode the document, discarding any unsaved state."""
        data = self.store.read(self.path)
        with self._lock:
            self.document = parse_document(data)
            self.history.clear()
            self.dirty = False
        logger.debug("Opened %s (%d blocks)", self.path, len(self.document.blocks))
        return self.document

    def save(self) -> None:
        """Encode the document and write it back to the store."""
        with self._lock:
            doc = self._require_document()
            now = now_iso()
            self.store.write(self.path, encode_document(doc, now=now))
            doc.meta.updated_at = now
            self.dirty = False
        logger.info("Saved %s", self.path)

    @property
    def blocks(self) -> list[Block]:
        return list(self._require_document().blocks)

    def _require_document(self) -> Document:
        if self.document is None:
            raise CortexError(f"Document is not open: {self.path}", context={"path": self.path})
        return self.document

    # =========================================================================
    # Editing
    # =========================================================================

    def apply(self, op: Operation, *args: Any, **kwargs: Any) -> Any:
        """Apply one mutation to the current blocks.

        Args:
            op: A mutation taking the block list first (e.g. blocks_tree.move).
            *args: Remaining arguments for op.

        Returns:
            Whatever op returned. Operations that return (blocks, extra)
            such as split_block have their blocks taken from the tuple.
        """
        with self._lock:
            doc = self._require_document()
            before = doc.blocks
            result = op(list(before), *args, **kwargs)
            after = result[0] if isinstance(result, tuple) else result

            if after != before:
                self.history.push(before)
                doc.blocks = list(after)
                self.dirty = True
            else:
                logger.debug("%s made no change", getattr(op, "__name__", op))
        return result

    def undo(self) -> bool:
        """Revert the last change. Returns False when there is nothing to undo."""
        with self._lock:
            doc = self._require_document()
            previous = self.history.undo(doc.blocks)
            if previous is None:
                return False
            doc.blocks = previous
            self.dirty = True
            return True

    def redo(self) -> bool:
        """Re-apply the last undone change. Returns False when there is none."""
        with self._lock:
            doc = self._require_document()
            following = self.history.redo(doc.blocks)
            if following is None:
                return False
            doc.blocks = following
            self.dirty = True
            return True

    def update_meta(self, **fields: Any) -> None:
        """Change header fields (title, tags, always_on, or custom keys).

        Raises:
            ValidationError: For id, created_at or updated_at.
        """
        with self._lock:
            meta = self._require_document().meta
            for key, value in fields.items():
                if key in _READ_ONLY_META:
                    raise ValidationError(
                        f"Metadata field is read-only: {key}",
                        field=key,
                        value=value,
                    )
                if key == "title":
                    meta.title = str(value)
                elif key == "tags":
                    meta.tags = parse_tags(value) if isinstance(value, str) else parse_tags(
                        ", ".join(str(tag) for tag in value)
                    )
                elif key in ("always_on", "alwaysOn"):
                    meta.always_on = bool(value)
                else:
                    meta.extra[key] = value
            self.dirty = True

    def number_of(self, block_id: str) -> Numbering | None:
        """Label of an ordered item in the current document."""
        return number_of(self.blocks, block_id)
