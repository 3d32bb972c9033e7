"""Tree operations for the block list.

This module provides the structural edits the editor performs:
- Updating, inserting and deleting blocks
- Indenting, merging and splitting
- Moving a selection before or after a target
- Toggle children and table rows/columns

Every operation takes the top-level block list and returns a new list; the
input is never modified. Operations are total: an unknown id or a rejected
edit returns an unchanged copy and logs at debug level.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable

from .blocks_models import (
    LIST_KINDS,
    NO_TEXT_KINDS,
    Block,
    BlockKind,
    ensure_not_empty,
    find,
    iter_blocks,
    new_block,
)

logger = logging.getLogger(__name__)

MovePosition = str  # "before" | "after"

UPDATABLE_FIELDS = frozenset(f.name for f in dataclasses.fields(Block)) - {"id"}

EMPTY_TABLE: tuple[tuple[str, ...], ...] = (("", ""), ("", ""))


# =============================================================================
# Internal helpers
# =============================================================================


def _normalize(block: Block) -> Block:
    """Re-apply the structural invariants after a field change."""
    changes: dict[str, Any] = {}
    if block.indent < 0:
        changes["indent"] = 0
    if block.kind != BlockKind.TOGGLE and block.children:
        changes["children"] = ()
    if block.kind != BlockKind.TABLE and block.table:
        changes["table"] = ()
    if block.kind == BlockKind.TABLE and block.table:
        width = max(len(row) for row in block.table)
        if any(len(row) != width for row in block.table):
            changes["table"] = tuple(
                tuple(row) + ("",) * (width - len(row)) for row in block.table
            )
    return dataclasses.replace(block, **changes) if changes else block


def _map_block(
    blocks: list[Block],
    block_id: str,
    fn: Callable[[Block, bool], Block],
) -> tuple[list[Block], bool]:
    """Replace one block (top level first, then children) with fn(block, is_child)."""
    for index, block in enumerate(blocks):
        if block.id == block_id:
            result = list(blocks)
            result[index] = fn(block, False)
            return result, True

    for index, block in enumerate(blocks):
        for child_index, child in enumerate(block.children):
            if child.id == block_id:
                children = list(block.children)
                children[child_index] = fn(child, True)
                result = list(blocks)
                result[index] = dataclasses.replace(block, children=tuple(children))
                return result, True

    return list(blocks), False


def _sibling_list(blocks: list[Block], block_id: str) -> tuple[str | None, list[Block]] | None:
    """Return (parent id, siblings) for the list that holds the block."""
    position = find(blocks, block_id)
    if position is None:
        return None
    if position.parent_id is None:
        return None, list(blocks)
    parent = find(blocks, position.parent_id)
    return position.parent_id, list(parent.block.children) if parent else []


def _replace_siblings(
    blocks: list[Block],
    parent_id: str | None,
    siblings: list[Block],
) -> list[Block]:
    """Write a sibling list back into the tree."""
    if parent_id is None:
        return siblings
    return [
        dataclasses.replace(block, children=tuple(siblings)) if block.id == parent_id else block
        for block in blocks
    ]


def _ids(blocks: list[Block]) -> set[str]:
    return {block.id for block in iter_blocks(blocks)}


def _coerce_patch(block: Block, patch: dict[str, Any], is_child: bool) -> dict[str, Any]:
    """Filter a patch down to fields that may change on this block."""
    changes: dict[str, Any] = {}
    for key, value in patch.items():
        if key not in UPDATABLE_FIELDS:
            logger.debug("Ignoring field %r in update of %s", key, block.id)
            continue
        changes[key] = value

    if "kind" in changes:
        try:
            changes["kind"] = BlockKind(changes["kind"])
        except ValueError:
            logger.debug("Ignoring unknown kind %r for %s", changes["kind"], block.id)
            del changes["kind"]

    if is_child and changes.get("kind") == BlockKind.TOGGLE:
        logger.debug("Toggle children cannot become toggles: %s", block.id)
        del changes["kind"]

    if "children" in changes:
        changes["children"] = tuple(
            child for child in changes["children"]
            if isinstance(child, Block) and not child.is_container() and not child.children
        )
        if is_child:
            changes["children"] = ()

    if "table" in changes:
        changes["table"] = tuple(tuple(str(cell) for cell in row) for row in changes["table"])

    return changes


# =============================================================================
# Basic Operations
# =============================================================================


def update(blocks: list[Block], block_id: str, patch: dict[str, Any]) -> list[Block]:
    """Change fields of one block.

    Args:
        blocks: Top-level blocks.
        block_id: Block to change (top level or toggle child).
        patch: Field values; ``id`` and unknown fields are ignored.

    Returns:
        New block list.
    """
    def apply(block: Block, is_child: bool) -> Block:
        changes = _coerce_patch(block, patch, is_child)
        return _normalize(dataclasses.replace(block, **changes)) if changes else block

    result, found = _map_block(blocks, block_id, apply)
    if not found:
        logger.debug("update: block %s not found", block_id)
    return result


def insert_after(blocks: list[Block], anchor_id: str, block: Block) -> list[Block]:
    """Insert a block as the next sibling of the anchor.

    The anchor may be a toggle child, in which case the new block joins the
    toggle's children (and must not itself be a container).
    """
    if _ids([block]) & _ids(blocks):
        logger.debug("insert_after: duplicate id %s rejected", block.id)
        return list(blocks)

    location = _sibling_list(blocks, anchor_id)
    if location is None:
        logger.debug("insert_after: anchor %s not found", anchor_id)
        return list(blocks)

    parent_id, siblings = location
    if parent_id is not None and (block.is_container() or block.children):
        logger.debug("insert_after: containers cannot nest inside %s", parent_id)
        return list(blocks)

    index = next(i for i, sibling in enumerate(siblings) if sibling.id == anchor_id)
    siblings.insert(index + 1, _normalize(block))
    return _replace_siblings(blocks, parent_id, siblings)


def delete(blocks: list[Block], block_id: str) -> list[Block]:
    """Remove a block (top level first, then children).

    A document never ends up empty: removing the last top-level block
    leaves one fresh empty text block.
    """
    location = _sibling_list(blocks, block_id)
    if location is None:
        logger.debug("delete: block %s not found", block_id)
        return list(blocks)

    parent_id, siblings = location
    siblings = [sibling for sibling in siblings if sibling.id != block_id]
    return ensure_not_empty(_replace_siblings(blocks, parent_id, siblings))


def delete_many(blocks: list[Block], block_ids: list[str] | set[str]) -> list[Block]:
    """Remove every listed block (multi-selection delete)."""
    result = list(blocks)
    for block_id in block_ids:
        if find(result, block_id) is not None:
            result = delete(result, block_id)
    return ensure_not_empty(result)


def indent(blocks: list[Block], block_id: str) -> list[Block]:
    """Increase a block's indent by one level."""
    result, found = _map_block(
        blocks, block_id, lambda block, _: dataclasses.replace(block, indent=block.indent + 1)
    )
    if not found:
        logger.debug("indent: block %s not found", block_id)
    return result


def outdent(blocks: list[Block], block_id: str) -> list[Block]:
    """Decrease a block's indent by one level, never below zero."""
    result, found = _map_block(
        blocks,
        block_id,
        lambda block, _: dataclasses.replace(block, indent=max(0, block.indent - 1)),
    )
    if not found:
        logger.debug("outdent: block %s not found", block_id)
    return result


# =============================================================================
# Merge / Split
# =============================================================================


def merge_with_previous(blocks: list[Block], block_id: str) -> list[Block]:
    """Append a block's text to its previous sibling and drop the block.

    No-op for the first sibling, and when the previous sibling has no
    prose text (divider, table, embeds). A toggle's children move to the
    previous sibling only when that sibling is a toggle; otherwise the
    merge is rejected.
    """
    location = _sibling_list(blocks, block_id)
    if location is None:
        logger.debug("merge_with_previous: block %s not found", block_id)
        return list(blocks)

    parent_id, siblings = location
    index = next(i for i, sibling in enumerate(siblings) if sibling.id == block_id)
    if index == 0:
        return list(blocks)

    previous = siblings[index - 1]
    current = siblings[index]
    if previous.kind in NO_TEXT_KINDS:
        logger.debug("merge_with_previous: cannot merge into %s", previous.kind.value)
        return list(blocks)
    if current.children and not previous.is_container():
        logger.debug("merge_with_previous: %s has children, merge rejected", block_id)
        return list(blocks)

    merged = dataclasses.replace(
        previous,
        text=previous.text + current.text,
        children=previous.children + current.children,
    )
    siblings[index - 1:index + 1] = [merged]
    return _replace_siblings(blocks, parent_id, siblings)


def split_block(blocks: list[Block], block_id: str, offset: int) -> tuple[list[Block], str | None]:
    """Split a block at a text offset (the Enter key).

    Text before the offset stays in the block; the rest moves into a new
    block inserted right after it. List items continue the list at the same
    indent (a new checklist item starts unchecked); every other kind
    continues as plain text.

    Returns:
        (new block list, id of the new block or None if nothing happened).
    """
    position = find(blocks, block_id)
    if position is None:
        logger.debug("split_block: block %s not found", block_id)
        return list(blocks), None

    block = position.block
    if block.kind in NO_TEXT_KINDS:
        before, after = block.text, ""
    else:
        cut = max(0, min(offset, len(block.text)))
        before, after = block.text[:cut], block.text[cut:]

    if block.kind in LIST_KINDS:
        continuation = new_block(block.kind, after, indent=block.indent)
    else:
        continuation = new_block(BlockKind.TEXT, after, indent=block.indent)

    result, _ = _map_block(blocks, block_id, lambda b, _: dataclasses.replace(b, text=before))
    result = insert_after(result, block_id, continuation)
    return result, continuation.id


def convert_block(blocks: list[Block], block_id: str, kind: BlockKind | str) -> list[Block]:
    """Change a block's kind and clear its text (the slash menu).

    A block converted to a table starts with an empty 2x2 grid.
    """
    patch: dict[str, Any] = {"kind": kind, "text": ""}
    try:
        if BlockKind(kind) == BlockKind.TABLE:
            patch["table"] = EMPTY_TABLE
    except ValueError:
        logger.debug("convert_block: unknown kind %r", kind)
        return list(blocks)
    return update(blocks, block_id, patch)


# =============================================================================
# Move Operations
# =============================================================================


def move(
    blocks: list[Block],
    moved_ids: list[str] | set[str],
    target_id: str,
    position: MovePosition = "after",
) -> list[Block]:
    """Move a selection of blocks before or after a target block.

    Moved blocks keep their relative document order and land as one
    contiguous run next to the target, in the target's sibling list.

    Rejected (unchanged copy) when the position is invalid, nothing in the
    selection exists, the target is part of the selection (or inside a
    selected toggle), the target is missing, or a container would land
    inside a toggle.
    """
    if position not in ("before", "after"):
        logger.debug("move: invalid position %r", position)
        return list(blocks)

    selected = set(moved_ids)
    target = find(blocks, target_id)
    if target is None:
        logger.debug("move: target %s not found", target_id)
        return list(blocks)
    if target_id in selected or (target.parent_id is not None and target.parent_id in selected):
        logger.debug("move: target %s is part of the selection", target_id)
        return list(blocks)

    # Selected blocks in document order; a selected toggle carries its children
    moving: list[Block] = []
    for block in blocks:
        if block.id in selected:
            moving.append(block)
            continue
        moving.extend(child for child in block.children if child.id in selected)

    if not moving:
        logger.debug("move: nothing to move")
        return list(blocks)

    if target.parent_id is not None and any(
        block.is_container() or block.children for block in moving
    ):
        logger.debug("move: containers cannot land inside toggle %s", target.parent_id)
        return list(blocks)

    moving_ids = {block.id for block in moving}
    remaining = [
        dataclasses.replace(
            block,
            children=tuple(child for child in block.children if child.id not in moving_ids),
        ) if block.children else block
        for block in blocks
        if block.id not in moving_ids
    ]

    location = _sibling_list(remaining, target_id)
    if location is None:
        return list(blocks)
    parent_id, siblings = location

    index = next(i for i, sibling in enumerate(siblings) if sibling.id == target_id)
    if position == "after":
        index += 1
    siblings[index:index] = moving

    return ensure_not_empty(_replace_siblings(remaining, parent_id, siblings))


# =============================================================================
# Toggle Children
# =============================================================================


def create_child(blocks: list[Block], toggle_id: str, block: Block) -> list[Block]:
    """Append a block to a toggle's children and expand the toggle."""
    position = find(blocks, toggle_id)
    if position is None or not position.block.is_container():
        logger.debug("create_child: %s is not a toggle", toggle_id)
        return list(blocks)
    if block.is_container() or block.children:
        logger.debug("create_child: containers cannot nest")
        return list(blocks)
    if block.id in _ids(blocks):
        logger.debug("create_child: duplicate id %s rejected", block.id)
        return list(blocks)

    result, _ = _map_block(
        blocks,
        toggle_id,
        lambda toggle, _: dataclasses.replace(
            toggle,
            children=toggle.children + (_normalize(block),),
            collapsed=False,
        ),
    )
    return result


# =============================================================================
# Table Operations
# =============================================================================


def _edit_table(
    blocks: list[Block],
    block_id: str,
    fn: Callable[[list[list[str]]], list[list[str]] | None],
    operation: str,
) -> list[Block]:
    """Run fn over a copy of a table grid; None from fn means no change."""
    position = find(blocks, block_id)
    if position is None or position.block.kind != BlockKind.TABLE:
        logger.debug("%s: %s is not a table", operation, block_id)
        return list(blocks)

    grid = [list(row) for row in position.block.table] or [[""]]
    edited = fn(grid)
    if edited is None:
        logger.debug("%s: rejected for %s", operation, block_id)
        return list(blocks)

    table = tuple(tuple(row) for row in edited)
    result, _ = _map_block(blocks, block_id, lambda b, _: _normalize(dataclasses.replace(b, table=table)))
    return result


def add_table_row(blocks: list[Block], block_id: str, after: int | None = None) -> list[Block]:
    """Insert an empty row after row ``after`` (default: at the end)."""
    def edit(grid: list[list[str]]) -> list[list[str]]:
        width = max(len(row) for row in grid)
        index = len(grid) if after is None else max(0, min(after + 1, len(grid)))
        grid.insert(index, [""] * width)
        return grid

    return _edit_table(blocks, block_id, edit, "add_table_row")


def add_table_column(blocks: list[Block], block_id: str, after: int | None = None) -> list[Block]:
    """Insert an empty column after column ``after`` (default: at the end)."""
    def edit(grid: list[list[str]]) -> list[list[str]]:
        width = max(len(row) for row in grid)
        index = width if after is None else max(0, min(after + 1, width))
        for row in grid:
            row.insert(index, "")
        return grid

    return _edit_table(blocks, block_id, edit, "add_table_column")


def delete_table_row(blocks: list[Block], block_id: str, index: int) -> list[Block]:
    """Remove a row; the last remaining row is kept."""
    def edit(grid: list[list[str]]) -> list[list[str]] | None:
        if len(grid) <= 1 or not 0 <= index < len(grid):
            return None
        del grid[index]
        return grid

    return _edit_table(blocks, block_id, edit, "delete_table_row")


def delete_table_column(blocks: list[Block], block_id: str, index: int) -> list[Block]:
    """Remove a column; the last remaining column is kept."""
    def edit(grid: list[list[str]]) -> list[list[str]] | None:
        width = max(len(row) for row in grid)
        if width <= 1 or not 0 <= index < width:
            return None
        for row in grid:
            del row[index]
        return grid

    return _edit_table(blocks, block_id, edit, "delete_table_column")


def set_table_cell(blocks: list[Block], block_id: str, row: int, column: int, value: str) -> list[Block]:
    """Replace the text of one table cell."""
    def edit(grid: list[list[str]]) -> list[list[str]] | None:
        if not 0 <= row < len(grid) or not 0 <= column < len(grid[row]):
            return None
        grid[row][column] = value
        return grid

    return _edit_table(blocks, block_id, edit, "set_table_cell")
