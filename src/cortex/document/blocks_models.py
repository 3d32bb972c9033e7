"""Data models for the block-based document editor.

This module defines the block tree: a flat, ordered list of top-level
blocks where only toggle sections carry (one level of) children.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator, NamedTuple
from uuid import uuid4


class BlockKind(str, Enum):
    """Supported block kinds."""

    # Text blocks
    TEXT = "text"
    HEADING_1 = "heading1"
    HEADING_2 = "heading2"
    HEADING_3 = "heading3"

    # List blocks (indentable)
    BULLET = "bullet"
    NUMBERED = "numbered"
    TODO = "todo"

    # Special blocks
    QUOTE = "quote"
    CODE = "code"
    DIVIDER = "divider"
    CALLOUT = "callout"
    TABLE = "table"

    # Embeds
    IMAGE = "image"
    FILE = "file"

    # Container (the only kind with children)
    TOGGLE = "toggle"


HEADING_KINDS = frozenset({
    BlockKind.HEADING_1,
    BlockKind.HEADING_2,
    BlockKind.HEADING_3,
})

LIST_KINDS = frozenset({
    BlockKind.BULLET,
    BlockKind.NUMBERED,
    BlockKind.TODO,
})

EMBED_KINDS = frozenset({BlockKind.IMAGE, BlockKind.FILE})

# Kinds whose text is not free-form prose
NO_TEXT_KINDS = frozenset({BlockKind.DIVIDER, BlockKind.TABLE, *EMBED_KINDS})

DEFAULT_CALLOUT_TYPE = "NOTE"

TableRows = tuple[tuple[str, ...], ...]


def new_id() -> str:
    """Generate a new unique block ID."""
    return f"block-{uuid4().hex[:12]}"


def now_iso() -> str:
    """Get current UTC timestamp in ISO format (millisecond precision, Z suffix)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Block:
    """A content block in the document.

    Blocks are immutable; the mutation engine builds new blocks with
    ``dataclasses.replace``. Kind-specific fields (checked, language,
    collapsed, table, alt, callout_type) are ignored by other kinds.
    """

    id: str
    kind: BlockKind
    text: str = ""
    indent: int = 0

    # Kind-specific properties
    checked: bool = False
    language: str = ""
    collapsed: bool = False
    alt: str = ""
    callout_type: str = DEFAULT_CALLOUT_TYPE

    # Table grid, row 0 is the header row
    table: TableRows = ()

    # Toggle children (flat, never containers themselves)
    children: tuple[Block, ...] = ()

    def to_dict(self, include_id: bool = True) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        With include_id=False the result describes content only, which is
        what round-trip comparisons use (ids are regenerated on decode).
        """
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "text": self.text,
            "indent": self.indent,
        }
        if include_id:
            result = {"id": self.id, **result}
        if self.kind == BlockKind.TODO:
            result["checked"] = self.checked
        if self.kind == BlockKind.CODE:
            result["language"] = self.language
        if self.kind in EMBED_KINDS:
            result["alt"] = self.alt
        if self.kind == BlockKind.CALLOUT:
            result["callout_type"] = self.callout_type
        if self.kind == BlockKind.TABLE:
            result["table"] = [list(row) for row in self.table]
        if self.kind == BlockKind.TOGGLE:
            result["collapsed"] = self.collapsed
            result["children"] = [child.to_dict(include_id) for child in self.children]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Block:
        """Create from dictionary, generating an id when none is given."""
        return cls(
            id=data.get("id") or new_id(),
            kind=BlockKind(data.get("kind", BlockKind.TEXT.value)),
            text=data.get("text", ""),
            indent=max(0, int(data.get("indent", 0))),
            checked=bool(data.get("checked", False)),
            language=data.get("language", ""),
            collapsed=bool(data.get("collapsed", False)),
            alt=data.get("alt", ""),
            callout_type=data.get("callout_type", DEFAULT_CALLOUT_TYPE),
            table=tuple(tuple(str(cell) for cell in row) for row in data.get("table", [])),
            children=tuple(Block.from_dict(child) for child in data.get("children", [])),
        )

    def is_container(self) -> bool:
        """Check if this block kind holds children."""
        return self.kind == BlockKind.TOGGLE

    def plain_text(self) -> str:
        """Text of the block, including table cells and toggle children."""
        if self.kind == BlockKind.TABLE:
            return "\n".join(" | ".join(row) for row in self.table)
        if self.children:
            return "\n".join([self.text, *(child.plain_text() for child in self.children)])
        return self.text


def new_block(kind: BlockKind | str = BlockKind.TEXT, text: str = "", **fields: Any) -> Block:
    """Create a block with a fresh id."""
    return Block(id=new_id(), kind=BlockKind(kind), text=text, **fields)


@dataclass
class DocumentMeta:
    """Metadata header of a document.

    Reserved keys are attributes; any other key found in the header is kept
    in ``extra`` (in file order) so that saving never drops it.
    """

    id: str
    title: str = "Untitled"
    tags: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    always_on: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def default(cls, title: str = "Untitled") -> DocumentMeta:
        """Fresh metadata: new id, current timestamps."""
        now = now_iso()
        return cls(id=str(uuid4()), title=title, created_at=now, updated_at=now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "tags": list(self.tags),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "always_on": self.always_on,
            **self.extra,
        }


@dataclass
class Document:
    """A parsed document: metadata header plus top-level blocks."""

    meta: DocumentMeta
    blocks: list[Block] = field(default_factory=list)

    def to_dict(self, include_ids: bool = True) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "meta": self.meta.to_dict(),
            "blocks": [block.to_dict(include_ids) for block in self.blocks],
        }


# =============================================================================
# Tree Accessors
# =============================================================================


class BlockPosition(NamedTuple):
    """Where a block lives: parent toggle id (None for top level) and index."""

    parent_id: str | None
    index: int
    block: Block


def find(blocks: list[Block], block_id: str) -> BlockPosition | None:
    """Locate a block by id, checking the top level before children.

    Args:
        blocks: Top-level blocks.
        block_id: The block ID.

    Returns:
        Position of the block, or None if it is not in the tree.
    """
    for index, block in enumerate(blocks):
        if block.id == block_id:
            return BlockPosition(None, index, block)
    for block in blocks:
        for index, child in enumerate(block.children):
            if child.id == block_id:
                return BlockPosition(block.id, index, child)
    return None


def iter_blocks(blocks: list[Block]) -> Iterator[Block]:
    """Yield every block depth-first (a toggle before its children)."""
    for block in blocks:
        yield block
        yield from iter_blocks(list(block.children))


def flatten_tree(blocks: list[Block]) -> list[Block]:
    """Flatten the tree to a depth-first list."""
    return list(iter_blocks(blocks))


def is_valid(blocks: list[Block]) -> bool:
    """Check the block tree invariants.

    - at least one top-level block
    - ids unique across the whole tree
    - indent never negative
    - table rows of equal width
    - children only on toggles, and children are not containers
    """
    if not blocks:
        return False

    seen: set[str] = set()
    for block in iter_blocks(blocks):
        if not block.id or block.id in seen:
            return False
        seen.add(block.id)
        if block.indent < 0:
            return False
        if block.table and len({len(row) for row in block.table}) > 1:
            return False
        if block.children and block.kind != BlockKind.TOGGLE:
            return False
        if any(child.children or child.kind == BlockKind.TOGGLE for child in block.children):
            return False
    return True


def ensure_not_empty(blocks: list[Block]) -> list[Block]:
    """Return blocks, or a single empty text block if there are none."""
    if blocks:
        return blocks
    return [new_block(BlockKind.TEXT)]
