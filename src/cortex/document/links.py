"""Wiki links and backlinks between documents.

Links are written ``[[Target]]`` or ``[[Target|label]]``. Highlight comments
(``==text==^[comment|2024-01-31]``) may carry links in their comment too.
Embeds (``![[file.png]]``) are not links.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable

from .blocks_models import NO_TEXT_KINDS, Block, Document, iter_blocks

WIKI_LINK_RE = re.compile(r"(?<!!)\[\[(.*?)(?:\|(.*?))?\]\]")
HIGHLIGHT_COMMENT_RE = re.compile(r"==(.*?)==\^\[((?:[^\[\]]|\[\[.*?\]\])*)\]")
DATE_SUFFIX_RE = re.compile(r"\|\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class WikiLink:
    """An outgoing link and the line it appears on."""

    target: str
    context: str


@dataclass(frozen=True)
class Backlink:
    """A document linking to another, with the linking line as context."""

    path: str
    title: str
    context: str


def extract_links(blocks: list[Block]) -> list[WikiLink]:
    """Collect outgoing links in first-seen order, one per target.

    Args:
        blocks: Top-level blocks (toggle children are searched too).

    Returns:
        Links with the first line each target appeared on.
    """
    links: dict[str, WikiLink] = {}

    def add(target: str, line: str) -> None:
        target = target.strip()
        if target and target not in links:
            links[target] = WikiLink(target=target, context=line.strip())

    for block in iter_blocks(blocks):
        if block.kind in NO_TEXT_KINDS:
            continue
        for line in block.text.split("\n"):
            for match in HIGHLIGHT_COMMENT_RE.finditer(line):
                comment = DATE_SUFFIX_RE.sub("", match.group(2))
                for link in WIKI_LINK_RE.finditer(comment):
                    add(link.group(1), line)

            for link in WIKI_LINK_RE.finditer(HIGHLIGHT_COMMENT_RE.sub("", line)):
                add(link.group(1), line)

    return list(links.values())


def document_stem(path: str) -> str:
    """File name of a vault path without its extension."""
    return PurePosixPath(path).stem


def find_backlinks(documents: Iterable[tuple[str, Document]], target_path: str) -> list[Backlink]:
    """Find documents that link to the document at target_path.

    A link matches when its target equals the target document's title or
    file stem, ignoring case. The target document itself is skipped.

    Args:
        documents: (vault path, document) pairs.
        target_path: Vault path of the linked-to document.

    Returns:
        One backlink per linking document, in input order.
    """
    documents = list(documents)
    names = {document_stem(target_path).lower()}
    for path, doc in documents:
        if path == target_path and doc.meta.title:
            names.add(doc.meta.title.lower())

    backlinks: list[Backlink] = []
    for path, doc in documents:
        if path == target_path:
            continue
        for link in extract_links(doc.blocks):
            if link.target.lower() in names:
                backlinks.append(Backlink(path=path, title=doc.meta.title, context=link.context))
                break
    return backlinks
