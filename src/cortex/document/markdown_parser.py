"""Parse document text into blocks.

This module converts the persisted markup dialect into a Document. It is a
single forward scan over lines: each line either opens a block (which may
greedily consume continuation lines) or is accumulated into a pending
plain-text paragraph.

Parsing is total. Any input, including arbitrary bytes, produces a
Document; anything unrecognized becomes plain text.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath

from .blocks_models import (
    DEFAULT_CALLOUT_TYPE,
    Block,
    BlockKind,
    Document,
    ensure_not_empty,
    new_block,
)
from .frontmatter import parse_frontmatter, split_frontmatter

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({
    "png", "jpg", "jpeg", "gif", "webp", "svg", "bmp", "ico", "avif", "tiff",
})

FENCE = "```"

_HEADING_PREFIXES = (
    ("### ", BlockKind.HEADING_3),
    ("## ", BlockKind.HEADING_2),
    ("# ", BlockKind.HEADING_1),
)
_TODO_RE = re.compile(r"^- \[([ xX])\](?: (.*))?$")
_ORDERED_RE = re.compile(r"^(\d+)\. (.*)$")
_TOGGLE_RE = re.compile(r"^>>(?: (\[collapsed\](?: |$))?(.*))?$")
_DIVIDER_RE = re.compile(r"^-{3,}$")
_EMBED_RE = re.compile(r"^!\[\[(.+?)(?:\|(.*?))?\]\]$")
_CALLOUT_RE = re.compile(r"^> \[!(\w+)\](.*)$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_SEPARATOR_CELL_RE = re.compile(r"^[\s:]*-[\s:-]*$")


def parse_document(data: bytes | str) -> Document:
    """Parse a full document (metadata header + body).

    Args:
        data: File contents; bytes are decoded as UTF-8 with replacement.

    Returns:
        The parsed Document. Never raises.
    """
    text = data.decode("utf-8-sig", errors="replace") if isinstance(data, bytes) else data
    lines = _split_lines(text)

    header, body = split_frontmatter(lines)
    meta = parse_frontmatter(header)
    blocks = _parse_lines(body)

    logger.debug("Parsed document %s: %d blocks", meta.id, len(blocks))
    return Document(meta=meta, blocks=blocks)


def parse_blocks(text: str) -> list[Block]:
    """Parse body text (no metadata header) into blocks.

    Args:
        text: The markup to parse.

    Returns:
        At least one block.
    """
    return _parse_lines(_split_lines(text))


def _split_lines(text: str) -> list[str]:
    """Normalize newlines, drop a BOM and exactly one trailing newline."""
    text = text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    if text.endswith("\n"):
        text = text[:-1]
    return text.split("\n")


def _parse_lines(lines: list[str]) -> list[Block]:
    """Scan lines into blocks."""
    blocks: list[Block] = []
    pending: list[str] = []
    pending_indent = 0

    def flush() -> None:
        if pending:
            blocks.append(new_block(BlockKind.TEXT, "\n".join(pending), indent=pending_indent))
            pending.clear()

    i = 0
    while i < len(lines):
        line = lines[i]

        # Blank line: ends the paragraph and is kept as an empty block
        if not line.strip():
            flush()
            blocks.append(new_block(BlockKind.TEXT))
            i += 1
            continue

        indent, rest = measure_indent(line)
        block, next_i = _convert_line(lines, i, indent, rest)

        if block is None:
            if not pending:
                pending_indent = indent
                pending.append(rest)
            else:
                pending.append(line)
            i += 1
            continue

        flush()
        blocks.append(block)
        i = next_i

    flush()
    return ensure_not_empty(blocks)


def measure_indent(line: str) -> tuple[int, str]:
    """Return (indent level, line without leading whitespace).

    A run of tabs counts one level per tab; with no leading tab, a run of
    spaces counts one level per two spaces.
    """
    tabs = len(line) - len(line.lstrip("\t"))
    if tabs:
        level = tabs
    else:
        level = (len(line) - len(line.lstrip(" "))) // 2
    return level, line.lstrip(" \t")


def _convert_line(
    lines: list[str],
    i: int,
    indent: int,
    rest: str,
) -> tuple[Block | None, int]:
    """Match a line against block openers in precedence order.

    Returns:
        (block, index of the next unconsumed line), or (None, i) when the
        line opens nothing.
    """
    for prefix, kind in _HEADING_PREFIXES:
        if rest.startswith(prefix):
            return new_block(kind, rest[len(prefix):], indent=indent), i + 1

    todo_match = _TODO_RE.match(rest)
    if todo_match:
        checked = todo_match.group(1).lower() == "x"
        content = todo_match.group(2) or ""
        return new_block(BlockKind.TODO, content, indent=indent, checked=checked), i + 1

    if rest.startswith("- "):
        return new_block(BlockKind.BULLET, rest[2:], indent=indent), i + 1

    ordered_match = _ORDERED_RE.match(rest)
    if ordered_match:
        return new_block(BlockKind.NUMBERED, ordered_match.group(2), indent=indent), i + 1

    if _TOGGLE_RE.match(rest):
        return _convert_toggle(lines, i, indent, rest)

    if _is_quote_line(rest):
        return _convert_quote(lines, i, indent, rest)

    stripped = rest.rstrip()

    if _DIVIDER_RE.match(stripped):
        return new_block(BlockKind.DIVIDER, indent=indent), i + 1

    if rest.startswith(FENCE):
        return _convert_code(lines, i, indent, rest)

    embed_match = _EMBED_RE.match(stripped)
    if embed_match:
        return _convert_embed(embed_match, indent), i + 1

    callout_match = _CALLOUT_RE.match(rest)
    if callout_match:
        return _convert_callout(lines, i, indent, callout_match)

    if _is_table_row(stripped):
        return _convert_table(lines, i, indent)

    return None, i


# =============================================================================
# Multi-line constructs
# =============================================================================


def _is_quote_line(rest: str) -> bool:
    """A quote line is '> text' or a bare '>', but never a callout opener."""
    if rest.rstrip() == ">":
        return True
    return rest.startswith("> ") and not _CALLOUT_RE.match(rest)


def _quote_content(rest: str) -> str:
    return rest[2:] if rest.startswith("> ") else ""


def _collect_quoted(lines: list[str], start: int, indent: int) -> tuple[list[str], int]:
    """Collect '> ' continuation lines at the same indent."""
    collected: list[str] = []
    j = start
    while j < len(lines):
        if not lines[j].strip():
            break
        line_indent, line_rest = measure_indent(lines[j])
        if line_indent != indent or not _is_quote_line(line_rest):
            break
        collected.append(_quote_content(line_rest))
        j += 1
    return collected, j


def _convert_quote(lines: list[str], i: int, indent: int, rest: str) -> tuple[Block, int]:
    """Convert a run of quote lines into one quote block."""
    more, next_i = _collect_quoted(lines, i + 1, indent)
    text = "\n".join([_quote_content(rest), *more])
    return new_block(BlockKind.QUOTE, text, indent=indent), next_i


def _convert_callout(
    lines: list[str],
    i: int,
    indent: int,
    match: re.Match[str],
) -> tuple[Block, int]:
    """Convert '> [!TYPE]' plus its quoted continuation lines."""
    callout_type = match.group(1).upper() or DEFAULT_CALLOUT_TYPE
    first = match.group(2).strip()

    body, next_i = _collect_quoted(lines, i + 1, indent)
    text_lines = [first, *body] if first else body

    block = new_block(
        BlockKind.CALLOUT,
        "\n".join(text_lines),
        indent=indent,
        callout_type=callout_type,
    )
    return block, next_i


def _convert_toggle(lines: list[str], i: int, indent: int, rest: str) -> tuple[Block, int]:
    """Convert '>> title' and its deeper-indented lines (flat text children)."""
    match = _TOGGLE_RE.match(rest)
    collapsed = bool(match and match.group(1))
    title = (match.group(2) if match else None) or ""

    children: list[Block] = []
    j = i + 1
    while j < len(lines):
        line_indent, line_rest = measure_indent(lines[j])
        if line_indent < indent + 1:
            break
        children.append(
            new_block(BlockKind.TEXT, line_rest, indent=line_indent - indent - 1)
        )
        j += 1

    block = new_block(
        BlockKind.TOGGLE,
        title,
        indent=indent,
        collapsed=collapsed,
        children=tuple(children),
    )
    return block, j


def _convert_code(lines: list[str], i: int, indent: int, rest: str) -> tuple[Block, int]:
    """Convert a fenced code block; an unterminated fence runs to end of input."""
    language = rest[len(FENCE):].strip()
    body: list[str] = []

    j = i + 1
    while j < len(lines):
        if lines[j].strip() == FENCE:
            j += 1
            break
        body.append(lines[j])
        j += 1
    else:
        logger.debug("Unterminated code fence at line %d", i + 1)

    block = new_block(BlockKind.CODE, "\n".join(body), indent=indent, language=language)
    return block, j


def _convert_embed(match: re.Match[str], indent: int) -> Block:
    """Convert '![[target]]' / '![[target|alt]]' to an image or file embed."""
    target = match.group(1).strip()
    alt = match.group(2) or ""
    kind = BlockKind.IMAGE if is_image_path(target) else BlockKind.FILE
    return new_block(kind, target, indent=indent, alt=alt)


def is_image_path(path: str) -> bool:
    """Check a path's extension against the image allow-list."""
    suffix = PurePosixPath(path).suffix.lower().lstrip(".")
    return suffix in IMAGE_EXTENSIONS


def _is_table_row(stripped: str) -> bool:
    return len(stripped) >= 2 and stripped.startswith("|") and stripped.endswith("|")


def _split_cells(row: str) -> list[str]:
    """Split '| a | b |' into cells, honouring escaped pipes."""
    inner = row[1:-1]
    return [cell.strip().replace("\\|", "|") for cell in _CELL_SPLIT_RE.split(inner)]


def _is_separator(cells: list[str]) -> bool:
    return bool(cells) and all(_SEPARATOR_CELL_RE.match(cell) for cell in cells)


def _convert_table(lines: list[str], i: int, indent: int) -> tuple[Block | None, int]:
    """Convert a run of '|...|' lines into a table.

    The alignment row right after the header is dropped. Ragged rows are
    padded with empty cells to the widest row.
    """
    rows: list[list[str]] = []
    j = i
    while j < len(lines):
        _, line_rest = measure_indent(lines[j])
        stripped = line_rest.rstrip()
        if not _is_table_row(stripped):
            break
        cells = _split_cells(stripped)
        if not (len(rows) == 1 and j == i + 1 and _is_separator(cells)):
            rows.append(cells)
        j += 1

    if len(rows) == 1 and j == i + 1 and _is_separator(rows[0]):
        # A lone alignment row is not a table
        return None, i

    width = max(len(row) for row in rows)
    table = tuple(tuple(row + [""] * (width - len(row))) for row in rows)
    return new_block(BlockKind.TABLE, indent=indent, table=table), j
