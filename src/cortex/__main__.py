"""Cortex - block documents in a local markdown vault.

Usage:
    python -m cortex show PATH          Print the block tree of a document
    python -m cortex outline PATH       Print the heading outline
    python -m cortex links PATH         Print outgoing links (or --backlinks)
    python -m cortex check [PATH...]    Verify documents survive decode/encode
    python -m cortex fmt PATH...        Rewrite documents in canonical form
    python -m cortex new PATH TITLE     Create a new document

Environment Variables:
    CORTEX_VAULT_DIR    Vault root (default: current directory)
    CORTEX_LOG_LEVEL    Logging level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .document.blocks_models import Block, BlockKind, Document
from .document.inline import outline
from .document.links import extract_links, find_backlinks
from .document.markdown_parser import parse_document
from .document.markdown_renderer import encode_document
from .document.numbering import number_of
from .errors import CortexError
from .logging_setup import configure_logging
from .session import EditingSession
from .settings import settings
from .vault_fs import VaultStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cortex",
        description="Cortex - block documents in a local markdown vault",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--vault",
        default=str(settings.vault_dir),
        help=f"Vault root (default: {settings.vault_dir})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.log_level.upper(),
        help=f"Logging level (default: {settings.log_level})",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print the block tree of a document")
    show.add_argument("path")
    show.add_argument("--json", action="store_true", help="Print the document as JSON")

    out = sub.add_parser("outline", help="Print the heading outline")
    out.add_argument("path")

    links = sub.add_parser("links", help="Print outgoing links")
    links.add_argument("path")
    links.add_argument("--backlinks", action="store_true", help="Print documents linking here")

    check = sub.add_parser("check", help="Verify documents survive decode/encode")
    check.add_argument("paths", nargs="*", help="Documents to check (default: whole vault)")

    fmt = sub.add_parser("fmt", help="Rewrite documents in canonical form")
    fmt.add_argument("paths", nargs="+")

    new = sub.add_parser("new", help="Create a new document")
    new.add_argument("path")
    new.add_argument("title")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    store = VaultStore(args.vault)
    commands = {
        "show": cmd_show,
        "outline": cmd_outline,
        "links": cmd_links,
        "check": cmd_check,
        "fmt": cmd_fmt,
        "new": cmd_new,
    }

    try:
        return commands[args.command](store, args)
    except CortexError as e:
        logger.debug("Command %s failed: %s", args.command, e.to_dict())
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


def _load(store: VaultStore, path: str) -> Document:
    return parse_document(store.read(path))


def cmd_show(store: VaultStore, args: argparse.Namespace) -> int:
    """Print each block with its kind, indent and numbering."""
    doc = _load(store, args.path)
    if args.json:
        print(json.dumps(doc.to_dict(), ensure_ascii=False, indent=2))
        return 0

    print(f"{doc.meta.title}  [{', '.join(doc.meta.tags)}]")
    print("-" * 60)
    for block in doc.blocks:
        print(_describe(doc.blocks, block))
        for child in block.children:
            print("    " + _describe(list(block.children), child))
    return 0


def _describe(siblings: list[Block], block: Block) -> str:
    pad = "  " * block.indent
    marker = block.kind.value
    if block.kind == BlockKind.NUMBERED:
        numbering = number_of(siblings, block.id)
        if numbering:
            marker = f"{numbering.label}."
    elif block.kind == BlockKind.TODO:
        marker = "[x]" if block.checked else "[ ]"
    text = block.plain_text() if block.kind == BlockKind.TABLE else block.text
    text = text.replace("\n", " / ")
    return f"{pad}{marker:<10} {text}"


def cmd_outline(store: VaultStore, args: argparse.Namespace) -> int:
    """Print headings, indented by level."""
    doc = _load(store, args.path)
    for entry in outline(doc.blocks):
        print(f"{'  ' * (entry.level - 1)}{entry.title}")
    return 0


def cmd_links(store: VaultStore, args: argparse.Namespace) -> int:
    """Print outgoing links, or backlinks from the rest of the vault."""
    if args.backlinks:
        documents = [(path, _load(store, path)) for path in store.list_documents()]
        if not any(path == args.path for path, _ in documents):
            documents.append((args.path, _load(store, args.path)))
        for backlink in find_backlinks(documents, args.path):
            print(f"{backlink.path}: {backlink.context}")
        return 0

    doc = _load(store, args.path)
    for link in extract_links(doc.blocks):
        print(f"{link.target}: {link.context}")
    return 0


def roundtrip_matches(data: bytes) -> bool:
    """Check that decode(encode(decode(data))) matches decode(data)."""
    first = parse_document(data)
    second = parse_document(encode_document(first, now=first.meta.updated_at))
    return first.to_dict(include_ids=False) == second.to_dict(include_ids=False)


def cmd_check(store: VaultStore, args: argparse.Namespace) -> int:
    """Report documents whose content changes across a save."""
    paths = args.paths or store.list_documents()
    failures = 0
    for path in paths:
        if roundtrip_matches(store.read(path)):
            print(f"ok    {path}")
        else:
            failures += 1
            print(f"DIFF  {path}")

    logger.info("Checked %d documents, %d unstable", len(paths), failures)
    return 1 if failures else 0


def cmd_fmt(store: VaultStore, args: argparse.Namespace) -> int:
    """Re-encode documents in place, keeping updated_at."""
    for path in args.paths:
        doc = _load(store, path)
        store.write(path, encode_document(doc, now=doc.meta.updated_at))
        print(f"formatted {path}")
    return 0


def cmd_new(store: VaultStore, args: argparse.Namespace) -> int:
    """Create a document from the default template."""
    session = EditingSession.create(store, args.path, args.title)
    print(f"Created {session.path} ({session.document.meta.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
