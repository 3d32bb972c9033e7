"""Plain text from inline markup.

Block text keeps its inline markup (bold, links, highlights, wiki links).
This module reduces it to readable text for previews and the outline,
using mistletoe for standard markdown.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from mistletoe import span_token
from mistletoe.span_token import LineBreak, RawText

from .blocks_models import HEADING_KINDS, NO_TEXT_KINDS, Block, BlockKind, iter_blocks
from .links import HIGHLIGHT_COMMENT_RE, WIKI_LINK_RE

_HEADING_LEVELS = {
    BlockKind.HEADING_1: 1,
    BlockKind.HEADING_2: 2,
    BlockKind.HEADING_3: 3,
}

_BARE_HIGHLIGHT_RE = re.compile(r"==(.+?)==")


@dataclass(frozen=True)
class OutlineEntry:
    """A heading in the document outline."""

    id: str
    level: int
    title: str


def plain_text(text: str) -> str:
    """Strip inline markup from block text.

    Highlight comments reduce to the highlighted text and wiki links to their
    label (or target); the rest goes through the inline tokenizer. Block
    markers at the start of the text, such as bullets or ordinals, stay.
    """
    if not text:
        return ""

    text = HIGHLIGHT_COMMENT_RE.sub(lambda m: m.group(1), text)
    text = _BARE_HIGHLIGHT_RE.sub(lambda m: m.group(1), text)
    text = WIKI_LINK_RE.sub(lambda m: m.group(2) or m.group(1), text)

    return "".join(_extract_text(token) for token in span_token.tokenize_inner(text)).strip()


def _extract_text(token: Any) -> str:
    """Extract plain text from a token."""
    if isinstance(token, RawText):
        return token.content
    if isinstance(token, LineBreak):
        return "\n"

    return "".join(_extract_text(child) for child in getattr(token, "children", None) or ())


def outline(blocks: list[Block]) -> list[OutlineEntry]:
    """List headings (toggle children included) in document order."""
    return [
        OutlineEntry(id=block.id, level=_HEADING_LEVELS[block.kind], title=plain_text(block.text))
        for block in iter_blocks(blocks)
        if block.kind in HEADING_KINDS
    ]


def preview(blocks: list[Block], limit: int = 3) -> list[str]:
    """First non-empty plain-text lines of a document."""
    if limit <= 0:
        return []

    lines: list[str] = []
    for block in iter_blocks(blocks):
        if block.kind in NO_TEXT_KINDS or block.kind == BlockKind.CODE:
            continue
        for line in plain_text(block.text).split("\n"):
            if line.strip():
                lines.append(line.strip())
            if len(lines) >= limit:
                return lines
    return lines
