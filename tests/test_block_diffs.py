"""Tests for block_diffs.py - Assistant-proposed block changes."""

from __future__ import annotations

import pytest

from cortex.document.block_diffs import BlockDiff, DiffOperation, apply_diff, apply_diffs
from cortex.document.blocks_models import Block, BlockKind, find, is_valid
from cortex.errors import ValidationError


class TestBlockDiffPayload:
    """Test building diffs from payloads."""

    def test_from_dict(self) -> None:
        diff = BlockDiff.from_dict({"operation": "update", "block_id": "A", "content": "x"})
        assert diff.operation == DiffOperation.UPDATE
        assert diff.block_id == "A"

    def test_from_dict_aliases(self) -> None:
        diff = BlockDiff.from_dict({"type": "insert", "after_id": "B", "content": "- new"})
        assert diff.operation == DiffOperation.INSERT
        assert diff.block_id == "B"

    def test_invalid_operation(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            BlockDiff.from_dict({"operation": "swap", "block_id": "A"})
        assert exc_info.value.field == "operation"
        assert exc_info.value.to_dict()["value"] == "swap"

    def test_missing_block_id(self) -> None:
        with pytest.raises(ValidationError):
            BlockDiff.from_dict({"operation": "delete"})

    def test_to_dict(self) -> None:
        diff = BlockDiff(DiffOperation.DELETE, "A")
        assert diff.to_dict() == {"operation": "delete", "block_id": "A", "content": ""}


class TestApplyDiff:
    """Test applying diffs to blocks."""

    def test_update_single_block_in_place(self, abcd: list[Block]) -> None:
        """One decoded block changes kind and text but keeps the id."""
        result = apply_diff(abcd, BlockDiff(DiffOperation.UPDATE, "B", "## New title"))
        block = find(result, "B").block
        assert block.kind == BlockKind.HEADING_2
        assert block.text == "New title"
        assert [b.id for b in result] == ["A", "B", "C", "D"]

    def test_update_many_blocks_replaces(self, abcd: list[Block]) -> None:
        result = apply_diff(abcd, BlockDiff(DiffOperation.UPDATE, "B", "- one\n- two"))
        assert find(result, "B") is None
        assert [b.text for b in result] == ["a", "one", "two", "c", "d"]
        assert is_valid(result)

    def test_update_checklist_keeps_checked(self, abcd: list[Block]) -> None:
        result = apply_diff(abcd, BlockDiff(DiffOperation.UPDATE, "A", "- [x] done"))
        assert result[0].kind == BlockKind.TODO
        assert result[0].checked is True

    def test_insert_after_anchor(self, abcd: list[Block]) -> None:
        result = apply_diff(abcd, BlockDiff(DiffOperation.INSERT, "A", "# H\nbody"))
        assert [b.text for b in result] == ["a", "H", "body", "b", "c", "d"]

    def test_delete(self, abcd: list[Block]) -> None:
        result = apply_diff(abcd, BlockDiff(DiffOperation.DELETE, "C"))
        assert [b.id for b in result] == ["A", "B", "D"]

    def test_unknown_block_is_noop(self, abcd: list[Block]) -> None:
        assert apply_diff(abcd, BlockDiff(DiffOperation.UPDATE, "Z", "x")) == abcd

    def test_apply_diffs_in_order(self, abcd: list[Block]) -> None:
        diffs = [
            BlockDiff(DiffOperation.DELETE, "A"),
            BlockDiff(DiffOperation.UPDATE, "D", "last"),
            BlockDiff(DiffOperation.DELETE, "A"),
        ]
        result = apply_diffs(abcd, diffs)
        assert [b.text for b in result] == ["b", "c", "last"]
