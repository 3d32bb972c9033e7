"""Markdown shortcuts typed into a plain-text block.

Typing a marker followed by a space (``# ``, ``- ``, ``1. ``, ``[] ``, ...)
turns the block into the matching kind with its text cleared.
"""

from __future__ import annotations

import logging
import re

from .blocks_models import Block, BlockKind, find
from .blocks_tree import convert_block, update

logger = logging.getLogger(__name__)

SHORTCUTS: dict[str, BlockKind] = {
    "#": BlockKind.HEADING_1,
    "##": BlockKind.HEADING_2,
    "###": BlockKind.HEADING_3,
    "-": BlockKind.BULLET,
    "*": BlockKind.BULLET,
    "[]": BlockKind.TODO,
    "[ ]": BlockKind.TODO,
    ">": BlockKind.QUOTE,
    ">>": BlockKind.TOGGLE,
    "```": BlockKind.CODE,
    "---": BlockKind.DIVIDER,
    "***": BlockKind.DIVIDER,
    "!!": BlockKind.CALLOUT,
    ":::": BlockKind.CALLOUT,
}

_ORDERED_MARKER_RE = re.compile(r"^\d+\.$")


def detect_shortcut(value: str) -> BlockKind | None:
    """Return the kind a typed value converts to, if any.

    Only values ending in a space are considered; the marker is the value
    with trailing whitespace removed.
    """
    if not value.endswith(" "):
        return None
    marker = value.rstrip()
    if _ORDERED_MARKER_RE.match(marker):
        return BlockKind.NUMBERED
    return SHORTCUTS.get(marker)


def apply_typed_text(blocks: list[Block], block_id: str, value: str) -> list[Block]:
    """Store typed text, converting plain-text blocks on a shortcut.

    Args:
        blocks: Top-level blocks.
        block_id: The block being typed into.
        value: Full new text of the block.

    Returns:
        New block list.
    """
    position = find(blocks, block_id)
    if position is None:
        logger.debug("apply_typed_text: block %s not found", block_id)
        return list(blocks)

    if position.block.kind == BlockKind.TEXT:
        kind = detect_shortcut(value)
        if kind is not None:
            logger.debug("Shortcut %r converts %s to %s", value, block_id, kind.value)
            return convert_block(blocks, block_id, kind)

    return update(blocks, block_id, {"text": value})
