"""Tests for session.py - Editing session with undo/redo."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from cortex.document import blocks_tree
from cortex.document.blocks_models import Block, BlockKind
from cortex.document.markdown_parser import parse_document
from cortex.errors import CortexError, StoreError, ValidationError
from cortex.session import BlockHistory, EditingSession
from cortex.vault_fs import VaultStore

DOC_TEXT = """---
id: doc-1
title: Demo
tags: [a]
created_at: 2024-01-01T00:00:00.000Z
updated_at: 2024-01-01T00:00:00.000Z
---
alpha
1. one
1. two
"""


@pytest.fixture
def session(vault: Path) -> EditingSession:
    store = VaultStore(vault)
    store.write("demo.md", DOC_TEXT.encode("utf-8"))
    s = EditingSession(store, "demo.md", history_limit=3)
    s.open()
    return s


def _ids(session: EditingSession) -> list[str]:
    return [b.id for b in session.blocks]


# =============================================================================
# BlockHistory Tests
# =============================================================================


class TestBlockHistory:
    """Test the bounded undo/redo stacks."""

    def test_undo_redo(self, make_blocks: Callable[..., list[Block]]) -> None:
        first = make_blocks(("A", "text"))
        second = make_blocks(("B", "text"))
        history = BlockHistory(limit=5)

        history.push(first)
        assert history.undo(second) == first
        assert history.can_redo()
        assert history.redo(first) == second
        assert not history.can_redo()

    def test_push_clears_redo(self, make_blocks: Callable[..., list[Block]]) -> None:
        history = BlockHistory(limit=5)
        history.push(make_blocks(("A", "text")))
        history.undo(make_blocks(("B", "text")))
        history.push(make_blocks(("C", "text")))
        assert not history.can_redo()

    def test_limit_drops_oldest(self, make_blocks: Callable[..., list[Block]]) -> None:
        history = BlockHistory(limit=2)
        for block_id in ("A", "B", "C"):
            history.push(make_blocks((block_id, "text")))

        assert history.undo([])[0].id == "C"
        assert history.undo([])[0].id == "B"
        assert history.undo([]) is None

    def test_empty(self) -> None:
        history = BlockHistory(limit=0)
        assert history.limit == 1
        assert history.undo([]) is None
        assert history.redo([]) is None


# =============================================================================
# EditingSession Tests
# =============================================================================


class TestEditingSession:
    """Test applying mutations through a session."""

    def test_open(self, session: EditingSession) -> None:
        assert session.document.meta.title == "Demo"
        assert [b.text for b in session.blocks] == ["alpha", "one", "two"]
        assert not session.dirty

    def test_apply_records_history(self, session: EditingSession) -> None:
        target = _ids(session)[0]
        session.apply(blocks_tree.indent, target)

        assert session.blocks[0].indent == 1
        assert session.dirty
        assert session.history.can_undo()

    def test_noop_is_not_recorded(self, session: EditingSession) -> None:
        session.apply(blocks_tree.indent, "missing")
        assert not session.history.can_undo()
        assert not session.dirty

    def test_undo_and_redo(self, session: EditingSession) -> None:
        target = _ids(session)[0]
        session.apply(blocks_tree.update, target, {"text": "changed"})

        assert session.undo() is True
        assert session.blocks[0].text == "alpha"
        assert session.redo() is True
        assert session.blocks[0].text == "changed"
        assert session.redo() is False

    def test_history_limit(self, session: EditingSession) -> None:
        target = _ids(session)[0]
        for n in range(5):
            session.apply(blocks_tree.update, target, {"text": f"v{n}"})

        undone = 0
        while session.undo():
            undone += 1
        assert undone == 3
        assert session.blocks[0].text == "v1"

    def test_split_returns_new_id(self, session: EditingSession) -> None:
        target = _ids(session)[0]
        new_id = session.apply(blocks_tree.split_block, target, 2)[1]

        assert [b.text for b in session.blocks[:2]] == ["al", "pha"]
        assert session.blocks[1].id == new_id

    def test_numbering(self, session: EditingSession) -> None:
        second = _ids(session)[2]
        assert session.number_of(second).label == "2"
        assert session.number_of(_ids(session)[0]) is None

    def test_save_writes_and_clears_dirty(self, session: EditingSession) -> None:
        target = _ids(session)[0]
        session.apply(blocks_tree.convert_block, target, BlockKind.HEADING_1)
        session.apply(blocks_tree.update, target, {"text": "Title"})
        session.save()

        assert not session.dirty
        saved = parse_document(session.store.read("demo.md"))
        assert saved.meta.id == "doc-1"
        assert saved.meta.updated_at != "2024-01-01T00:00:00.000Z"
        assert saved.blocks[0].kind == BlockKind.HEADING_1
        assert saved.blocks[0].text == "Title"

    def test_open_discards_unsaved(self, session: EditingSession) -> None:
        session.apply(blocks_tree.update, _ids(session)[0], {"text": "unsaved"})
        session.open()
        assert session.blocks[0].text == "alpha"
        assert not session.history.can_undo()

    def test_not_open(self, vault: Path) -> None:
        session = EditingSession(VaultStore(vault), "demo.md")
        with pytest.raises(CortexError):
            session.apply(blocks_tree.indent, "A")

    def test_apply_accepts_plain_lists(self, session: EditingSession) -> None:
        block = Block(id="new", kind=BlockKind.BULLET, text="x")
        session.apply(blocks_tree.insert_after, _ids(session)[0], block)
        assert _ids(session)[1] == "new"


class TestUpdateMeta:
    """Test metadata edits."""

    def test_title_tags_and_extra(self, session: EditingSession) -> None:
        session.update_meta(title="Renamed", tags=["x", "y", "x"], alwaysOn=True, status="draft")
        meta = session.document.meta

        assert meta.title == "Renamed"
        assert meta.tags == ["x", "y"]
        assert meta.always_on is True
        assert meta.extra["status"] == "draft"
        assert session.dirty

    def test_tags_from_string(self, session: EditingSession) -> None:
        session.update_meta(tags="[one, two]")
        assert session.document.meta.tags == ["one", "two"]

    @pytest.mark.parametrize("key", ["id", "created_at", "updated_at"])
    def test_read_only_fields(self, session: EditingSession, key: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            session.update_meta(**{key: "x"})
        assert exc_info.value.field == key


class TestCreate:
    """Test creating a document through a session."""

    def test_create_writes_template(self, vault: Path) -> None:
        store = VaultStore(vault)
        session = EditingSession.create(store, "ideas/new.md", "New Idea")

        assert store.exists("ideas/new.md")
        assert session.document.meta.title == "New Idea"
        assert session.blocks[1].kind == BlockKind.HEADING_1
        assert session.blocks[1].text == "New Idea"

    def test_create_refuses_existing(self, session: EditingSession) -> None:
        with pytest.raises(StoreError) as exc_info:
            EditingSession.create(session.store, "demo.md", "Again")
        assert exc_info.value.operation == "create"
