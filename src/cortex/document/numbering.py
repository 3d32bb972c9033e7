"""Display labels for ordered-list items.

Labels depend on the item's position and indent depth, cycling through
three styles by ``depth % 3``:

- depth 0, 3, 6, ...: digits (1, 2, 3)
- depth 1, 4, 7, ...: lowercase letters, bijective base-26 (a ... z, aa)
- depth 2, 5, 8, ...: lowercase roman numerals (i, ii, iii)
"""

from __future__ import annotations

from dataclasses import dataclass

from .blocks_models import Block, BlockKind

_ROMAN_NUMERALS: tuple[tuple[int, str], ...] = (
    (1000, "m"),
    (900, "cm"),
    (500, "d"),
    (400, "cd"),
    (100, "c"),
    (90, "xc"),
    (50, "l"),
    (40, "xl"),
    (10, "x"),
    (9, "ix"),
    (5, "v"),
    (4, "iv"),
    (1, "i"),
)


@dataclass(frozen=True)
class Numbering:
    """Numbering of one ordered item."""

    label: str
    depth: int
    counter: int


def to_alpha(num: int) -> str:
    """Convert a positive number to letters: 1 -> a, 26 -> z, 27 -> aa."""
    result = ""
    n = num
    while n > 0:
        n, remainder = divmod(n - 1, 26)
        result = chr(ord("a") + remainder) + result
    return result


def to_roman(num: int) -> str:
    """Convert a positive number to lowercase roman numerals."""
    result = []
    remaining = num
    for value, numeral in _ROMAN_NUMERALS:
        while remaining >= value:
            result.append(numeral)
            remaining -= value
    return "".join(result)


def format_label(counter: int, depth: int) -> str:
    """Format a counter in the style for its depth."""
    style = depth % 3
    if style == 1:
        return to_alpha(counter)
    if style == 2:
        return to_roman(counter)
    return str(counter)


def number_of(blocks: list[Block], block_id: str) -> Numbering | None:
    """Compute the label of an ordered item.

    One running counter is kept per depth. Every ordered item from the start
    of the target's sibling sequence up to the target increments the counter
    at its depth and resets all deeper counters.

    Args:
        blocks: Top-level blocks.
        block_id: The ordered item to label.

    Returns:
        Numbering, or None if the block is missing or not an ordered item.
    """
    siblings = _sibling_sequence(blocks, block_id)
    if siblings is None:
        return None

    counters: dict[int, int] = {}
    for block in siblings:
        if block.kind == BlockKind.NUMBERED:
            depth = block.indent
            for deeper in [d for d in counters if d > depth]:
                counters[deeper] = 0
            counters[depth] = counters.get(depth, 0) + 1

        if block.id == block_id:
            if block.kind != BlockKind.NUMBERED:
                return None
            counter = counters[block.indent]
            return Numbering(
                label=format_label(counter, block.indent),
                depth=block.indent,
                counter=counter,
            )

    return None


def _sibling_sequence(blocks: list[Block], block_id: str) -> list[Block] | None:
    """The list (top level or a toggle's children) that holds the block."""
    if any(block.id == block_id for block in blocks):
        return blocks
    for block in blocks:
        if any(child.id == block_id for child in block.children):
            return list(block.children)
    return None
