"""Tests for shortcuts.py - Markdown shortcuts typed into text blocks."""

from __future__ import annotations

import pytest

from cortex.document.blocks_models import Block, BlockKind
from cortex.document.shortcuts import apply_typed_text, detect_shortcut


class TestDetectShortcut:
    """Test marker recognition."""

    @pytest.mark.parametrize(
        "value,kind",
        [
            ("# ", BlockKind.HEADING_1),
            ("## ", BlockKind.HEADING_2),
            ("### ", BlockKind.HEADING_3),
            ("- ", BlockKind.BULLET),
            ("* ", BlockKind.BULLET),
            ("1. ", BlockKind.NUMBERED),
            ("12. ", BlockKind.NUMBERED),
            ("[] ", BlockKind.TODO),
            ("[ ] ", BlockKind.TODO),
            ("> ", BlockKind.QUOTE),
            (">> ", BlockKind.TOGGLE),
            ("``` ", BlockKind.CODE),
            ("--- ", BlockKind.DIVIDER),
            ("*** ", BlockKind.DIVIDER),
            ("!! ", BlockKind.CALLOUT),
            ("::: ", BlockKind.CALLOUT),
        ],
    )
    def test_markers(self, value: str, kind: BlockKind) -> None:
        assert detect_shortcut(value) == kind

    @pytest.mark.parametrize("value", ["#", "# title", "hello ", "1.5 ", "#### "])
    def test_not_a_shortcut(self, value: str) -> None:
        assert detect_shortcut(value) is None


class TestApplyTypedText:
    """Test typing into blocks."""

    def test_shortcut_converts_text_block(self) -> None:
        blocks = [Block(id="A", kind=BlockKind.TEXT, text="#")]
        result = apply_typed_text(blocks, "A", "# ")
        assert result[0].kind == BlockKind.HEADING_1
        assert result[0].text == ""

    def test_plain_typing_stores_value(self) -> None:
        blocks = [Block(id="A", kind=BlockKind.TEXT)]
        assert apply_typed_text(blocks, "A", "hello")[0].text == "hello"

    def test_shortcuts_only_apply_to_text_blocks(self) -> None:
        """A bullet typed '- ' keeps its kind and stores the text."""
        blocks = [Block(id="A", kind=BlockKind.BULLET)]
        result = apply_typed_text(blocks, "A", "- ")
        assert result[0].kind == BlockKind.BULLET
        assert result[0].text == "- "

    def test_unknown_block(self) -> None:
        blocks = [Block(id="A", kind=BlockKind.TEXT)]
        assert apply_typed_text(blocks, "missing", "# ") == blocks
