"""Parse and render the document metadata header.

The header is a narrow, line-based subset of YAML:

    ---
    id: 3f0c...
    title: Demo
    tags: [a, b]
    created_at: 2024-01-01T00:00:00.000Z
    updated_at: 2024-01-01T00:00:00.000Z
    ---

Parsing never fails; unknown keys are carried in ``DocumentMeta.extra``.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from .blocks_models import DocumentMeta, now_iso

logger = logging.getLogger(__name__)

DELIMITER = "---"

# Reserved keys whose values stay strings even when they look numeric/boolean
_STRING_KEYS = ("id", "title", "created_at", "updated_at")
_ALWAYS_ON_KEYS = ("always_on", "alwaysOn")
_RESERVED_KEYS = frozenset({*_STRING_KEYS, "tags", *_ALWAYS_ON_KEYS})

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def split_frontmatter(lines: list[str]) -> tuple[list[str] | None, list[str]]:
    """Split lines into (header lines, body lines).

    A header exists only when the first line is the delimiter and a later
    line closes it. Otherwise the header is None and every line is body.
    """
    if not lines or lines[0].rstrip() != DELIMITER:
        return None, lines

    for index in range(1, len(lines)):
        if lines[index].rstrip() == DELIMITER:
            return lines[1:index], lines[index + 1:]

    return None, lines


def parse_frontmatter(header: list[str] | None) -> DocumentMeta:
    """Parse header lines into DocumentMeta.

    Args:
        header: Lines between the two delimiters, or None when absent.

    Returns:
        Metadata; defaults (fresh id, current timestamps) fill missing keys.
    """
    meta = DocumentMeta.default()
    if header is None:
        return meta

    for line in header:
        if not line.strip():
            continue
        if ":" not in line:
            logger.debug("Skipping header line without a key: %r", line)
            continue

        key, raw = line.split(":", 1)
        key = key.strip()
        raw = raw.strip()
        if not key:
            continue

        if key in _STRING_KEYS:
            setattr(meta, key, _strip_quotes(raw))
        elif key == "tags":
            meta.tags = parse_tags(raw)
        elif key in _ALWAYS_ON_KEYS:
            meta.always_on = coerce_value(raw) is True
        else:
            meta.extra[key] = coerce_value(raw)

    return meta


def parse_tags(raw: str) -> list[str]:
    """Parse ``[a, b, "c"]`` (brackets optional) into unique tags, in order."""
    value = raw.strip()
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]

    tags: list[str] = []
    for part in value.split(","):
        tag = _strip_quotes(part.strip())
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def coerce_value(raw: str) -> Any:
    """Coerce a header value: booleans, numbers, else an unquoted string."""
    if raw == "true":
        return True
    if raw == "false":
        return False
    if _NUMBER_RE.match(raw):
        try:
            return int(raw)
        except ValueError:
            return float(raw)
    return _strip_quotes(raw)


def render_frontmatter(meta: DocumentMeta, *, now: str | None = None) -> list[str]:
    """Render the header lines, delimiters included.

    Reserved keys come first in a fixed order, then unknown keys in their
    original order. ``updated_at`` is always refreshed to ``now``.
    """
    lines = [
        DELIMITER,
        f"id: {meta.id}",
        f"title: {meta.title}",
        f"tags: [{', '.join(meta.tags)}]",
        f"created_at: {meta.created_at}",
        f"updated_at: {now or now_iso()}",
    ]

    # Only include always_on if true (keeps the header clean)
    if meta.always_on:
        lines.append("always_on: true")

    for key, value in meta.extra.items():
        if key in _RESERVED_KEYS:
            continue
        lines.append(f"{key}: {render_value(value)}")

    lines.append(DELIMITER)
    return lines


def render_value(value: Any) -> str:
    """Render an unknown header value back to text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return f"[{', '.join(str(item) for item in value)}]"
    if value is None:
        return ""
    return str(value)


def _strip_quotes(value: str) -> str:
    """Remove one layer of matching surrounding quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value
