"""Block diffs proposed by an external assistant.

A diff names one block and carries new markup for it. Content is decoded
with the document parser, so a single diff may expand into several blocks.

    update  replace the block's content (kind and text) in place; content that
            decodes to several blocks replaces the block with all of them
    insert  add the decoded blocks after the anchor block
    delete  remove the block
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from ..errors import ValidationError
from .blocks_models import Block, find
from .blocks_tree import delete, insert_after, update
from .markdown_parser import parse_blocks

logger = logging.getLogger(__name__)

# Fields copied from a decoded block onto the block an update targets
_CONTENT_FIELDS = (
    "kind",
    "text",
    "checked",
    "language",
    "collapsed",
    "alt",
    "callout_type",
    "table",
    "children",
)


class DiffOperation(str, Enum):
    """Supported diff operations."""

    UPDATE = "update"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class BlockDiff:
    """A proposed change to one block.

    Attributes:
        operation: What to do.
        block_id: Target block (update/delete) or anchor block (insert).
        content: Markup for update/insert; ignored for delete.
    """

    operation: DiffOperation
    block_id: str
    content: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlockDiff:
        """Build a diff from a JSON payload.

        Accepts ``operation`` (or ``type``), ``block_id`` (or ``id`` /
        ``after_id`` for inserts) and ``content``.

        Raises:
            ValidationError: If the operation or block id is invalid.
        """
        raw_operation = data.get("operation", data.get("type"))
        try:
            operation = DiffOperation(raw_operation)
        except ValueError:
            raise ValidationError(
                f"Unknown diff operation: {raw_operation!r}",
                field="operation",
                value=raw_operation,
                constraint="one of update, insert, delete",
            ) from None

        block_id = data.get("block_id") or data.get("id") or data.get("after_id")
        if not block_id or not isinstance(block_id, str):
            raise ValidationError(
                "Diff is missing a block id",
                field="block_id",
                value=block_id,
            )

        content = data.get("content", "")
        if not isinstance(content, str):
            raise ValidationError(
                "Diff content must be a string",
                field="content",
                value=content,
            )

        return cls(operation=operation, block_id=block_id, content=content)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "operation": self.operation.value,
            "block_id": self.block_id,
            "content": self.content,
        }


def apply_diff(blocks: list[Block], diff: BlockDiff) -> list[Block]:
    """Apply one diff; an unknown block id leaves the blocks unchanged."""
    position = find(blocks, diff.block_id)
    if position is None:
        logger.debug("Diff %s skipped: block %s not found", diff.operation.value, diff.block_id)
        return list(blocks)

    if diff.operation == DiffOperation.DELETE:
        return delete(blocks, diff.block_id)

    decoded = parse_blocks(diff.content)

    if diff.operation == DiffOperation.UPDATE and len(decoded) == 1:
        source = decoded[0]
        patch = {name: getattr(source, name) for name in _CONTENT_FIELDS}
        return update(blocks, diff.block_id, patch)

    result = _insert_run(blocks, diff.block_id, decoded)
    if diff.operation == DiffOperation.UPDATE:
        result = delete(result, diff.block_id)
    return result


def apply_diffs(blocks: list[Block], diffs: Iterable[BlockDiff]) -> list[Block]:
    """Apply diffs in order, each against the result of the previous one."""
    result = list(blocks)
    for diff in diffs:
        result = apply_diff(result, diff)
    return result


def _insert_run(blocks: list[Block], anchor_id: str, new_blocks: list[Block]) -> list[Block]:
    """Insert blocks after the anchor, keeping their order.

    Decoded blocks take the anchor's indent as their base level.
    """
    anchor = find(blocks, anchor_id)
    base_indent = anchor.block.indent if anchor else 0

    result = list(blocks)
    current = anchor_id
    for block in new_blocks:
        placed = dataclasses.replace(block, indent=block.indent + base_indent)
        result = insert_after(result, current, placed)
        if find(result, placed.id) is not None:
            current = placed.id
    return result
