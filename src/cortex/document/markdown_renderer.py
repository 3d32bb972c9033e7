"""Render blocks back to document text.

This module is the inverse of markdown_parser: every block kind has one
canonical textual form, with indent written as a run of tabs.
"""

from __future__ import annotations

from .blocks_models import Block, BlockKind, Document
from .frontmatter import render_frontmatter
from .markdown_parser import FENCE

INDENT = "\t"


def render_document(doc: Document, *, now: str | None = None) -> str:
    """Render a document (metadata header + body) to text.

    Args:
        doc: The document to render.
        now: Timestamp written as updated_at (defaults to the current time).

    Returns:
        Document text ending with a newline.
    """
    lines = render_frontmatter(doc.meta, now=now)
    lines.extend(_render_lines(doc.blocks))
    return "\n".join(lines) + "\n"


def encode_document(doc: Document, *, now: str | None = None) -> bytes:
    """Render a document to UTF-8 bytes for the file store."""
    return render_document(doc, now=now).encode("utf-8")


def render_blocks(blocks: list[Block]) -> str:
    """Render blocks (no metadata header) to text."""
    return "\n".join(_render_lines(blocks))


def render_block(block: Block) -> str:
    """Render a single block to text."""
    return "\n".join(_render_block(block))


def _render_lines(blocks: list[Block]) -> list[str]:
    lines: list[str] = []
    for block in blocks:
        lines.extend(_render_block(block))
    return lines


def _render_block(block: Block) -> list[str]:
    """Render a single block to its lines."""
    prefix = INDENT * max(0, block.indent)
    kind = block.kind

    if kind == BlockKind.HEADING_1:
        return [f"{prefix}# {block.text}"]
    elif kind == BlockKind.HEADING_2:
        return [f"{prefix}## {block.text}"]
    elif kind == BlockKind.HEADING_3:
        return [f"{prefix}### {block.text}"]
    elif kind == BlockKind.BULLET:
        return [f"{prefix}- {block.text}"]
    elif kind == BlockKind.NUMBERED:
        return [f"{prefix}1. {block.text}"]
    elif kind == BlockKind.TODO:
        checkbox = "[x]" if block.checked else "[ ]"
        return [f"{prefix}- {checkbox} {block.text}"]
    elif kind == BlockKind.QUOTE:
        return [f"{prefix}> {line}" for line in block.text.split("\n")]
    elif kind == BlockKind.CODE:
        return _render_code(block, prefix)
    elif kind == BlockKind.DIVIDER:
        return [f"{prefix}---"]
    elif kind == BlockKind.CALLOUT:
        return _render_callout(block, prefix)
    elif kind in (BlockKind.IMAGE, BlockKind.FILE):
        return [f"{prefix}{_render_embed(block)}"]
    elif kind == BlockKind.TABLE:
        return _render_table(block, prefix)
    elif kind == BlockKind.TOGGLE:
        return _render_toggle(block, prefix)
    else:
        return _render_text(block, prefix)


def _render_text(block: Block, prefix: str) -> list[str]:
    """Render a plain-text block; only the first line carries the indent."""
    first, *rest = block.text.split("\n")
    return [f"{prefix}{first}", *rest]


def _render_code(block: Block, prefix: str) -> list[str]:
    """Render a fenced code block; content lines are written verbatim."""
    return [
        f"{prefix}{FENCE}{block.language}",
        *block.text.split("\n"),
        f"{prefix}{FENCE}",
    ]


def _render_callout(block: Block, prefix: str) -> list[str]:
    lines = [f"{prefix}> [!{block.callout_type}]"]
    if block.text:
        lines.extend(f"{prefix}> {line}" for line in block.text.split("\n"))
    return lines


def _render_embed(block: Block) -> str:
    if block.alt:
        return f"![[{block.text}|{block.alt}]]"
    return f"![[{block.text}]]"


def _render_table(block: Block, prefix: str) -> list[str]:
    """Render a table with the alignment row after the header."""
    rows = [list(row) for row in block.table if row]
    if not rows:
        rows = [[""]]

    width = max(len(row) for row in rows)
    rows = [row + [""] * (width - len(row)) for row in rows]

    lines = [f"{prefix}{_render_row(rows[0])}"]
    lines.append(f"{prefix}|{'|'.join(' --- ' for _ in range(width))}|")
    lines.extend(f"{prefix}{_render_row(row)}" for row in rows[1:])
    return lines


def _render_row(cells: list[str]) -> str:
    escaped = (cell.replace("\n", " ").replace("|", "\\|") for cell in cells)
    return "| " + " | ".join(escaped) + " |"


def _render_toggle(block: Block, prefix: str) -> list[str]:
    """Render '>> title' with children one tab deeper than the toggle."""
    marker = "[collapsed] " if block.collapsed else ""
    lines = [f"{prefix}>> {marker}{block.text}"]

    child_prefix = prefix + INDENT
    for child in block.children:
        lines.extend(f"{child_prefix}{line}" for line in _render_block(child))
    return lines
