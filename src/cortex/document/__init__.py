"""Block document core for Cortex.

Documents are stored as a restricted markdown dialect with a metadata
header and edited in memory as a block tree.

Key components:
- blocks_models: Block, BlockKind, Document dataclasses and tree accessors
- frontmatter: Metadata header parsing and rendering
- markdown_parser: Text -> Blocks decoding
- markdown_renderer: Blocks -> Text encoding
- blocks_tree: Structural edits (update, insert, delete, move, split, ...)
- numbering: Ordered-list labels (1, a, i)
- shortcuts: Markdown shortcuts typed into text blocks
- block_diffs: Assistant-proposed block changes
- inline: Plain text, outline and preview
- links: Wiki links and backlinks
"""

from .block_diffs import BlockDiff, DiffOperation, apply_diff, apply_diffs
from .blocks_models import (
    Block,
    BlockKind,
    BlockPosition,
    Document,
    DocumentMeta,
    find,
    flatten_tree,
    is_valid,
    new_block,
)
from .blocks_tree import (
    add_table_column,
    add_table_row,
    convert_block,
    create_child,
    delete,
    delete_many,
    delete_table_column,
    delete_table_row,
    indent,
    insert_after,
    merge_with_previous,
    move,
    outdent,
    set_table_cell,
    split_block,
    update,
)
from .inline import OutlineEntry, outline, plain_text, preview
from .links import Backlink, WikiLink, extract_links, find_backlinks
from .markdown_parser import parse_blocks, parse_document
from .markdown_renderer import encode_document, render_blocks, render_document
from .numbering import Numbering, number_of
from .shortcuts import apply_typed_text, detect_shortcut

__all__ = [
    "Block",
    "BlockKind",
    "BlockPosition",
    "Document",
    "DocumentMeta",
    "find",
    "flatten_tree",
    "is_valid",
    "new_block",
    "parse_document",
    "parse_blocks",
    "render_document",
    "render_blocks",
    "encode_document",
    "update",
    "insert_after",
    "delete",
    "delete_many",
    "indent",
    "outdent",
    "merge_with_previous",
    "split_block",
    "convert_block",
    "move",
    "create_child",
    "add_table_row",
    "add_table_column",
    "delete_table_row",
    "delete_table_column",
    "set_table_cell",
    "Numbering",
    "number_of",
    "detect_shortcut",
    "apply_typed_text",
    "BlockDiff",
    "DiffOperation",
    "apply_diff",
    "apply_diffs",
    "OutlineEntry",
    "outline",
    "plain_text",
    "preview",
    "WikiLink",
    "Backlink",
    "extract_links",
    "find_backlinks",
]
