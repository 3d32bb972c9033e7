"""Tests for frontmatter.py - Metadata header parsing and rendering."""

from __future__ import annotations

from cortex.document.blocks_models import DocumentMeta
from cortex.document.frontmatter import (
    coerce_value,
    parse_frontmatter,
    parse_tags,
    render_frontmatter,
    split_frontmatter,
)

FIXED_NOW = "2024-01-02T03:04:05.000Z"


class TestSplitFrontmatter:
    """Test header detection."""

    def test_header_present(self) -> None:
        header, body = split_frontmatter(["---", "title: X", "---", "body"])
        assert header == ["title: X"]
        assert body == ["body"]

    def test_no_opening_delimiter(self) -> None:
        """Without a leading delimiter everything is body."""
        header, body = split_frontmatter(["title: X", "---"])
        assert header is None
        assert body == ["title: X", "---"]

    def test_unclosed_header(self) -> None:
        """An unclosed header is treated as body."""
        header, body = split_frontmatter(["---", "title: X", "body"])
        assert header is None
        assert body == ["---", "title: X", "body"]


class TestParseFrontmatter:
    """Test header parsing and value coercion."""

    def test_reserved_keys(self) -> None:
        meta = parse_frontmatter([
            "id: abc",
            "title: Demo",
            "tags: [a, b]",
            "created_at: 2024-01-01T00:00:00.000Z",
            "updated_at: 2024-01-01T00:00:00.000Z",
        ])
        assert meta.id == "abc"
        assert meta.title == "Demo"
        assert meta.tags == ["a", "b"]
        assert meta.created_at == "2024-01-01T00:00:00.000Z"
        assert meta.always_on is False

    def test_missing_keys_take_defaults(self) -> None:
        """A header without id still gets a fresh one."""
        meta = parse_frontmatter(["title: Only title"])
        assert meta.id
        assert meta.title == "Only title"
        assert meta.created_at

    def test_absent_header(self) -> None:
        meta = parse_frontmatter(None)
        assert meta.title == "Untitled"
        assert meta.tags == []

    def test_reserved_string_keys_stay_strings(self) -> None:
        """A numeric-looking title is not coerced."""
        meta = parse_frontmatter(["id: 42", "title: 2024"])
        assert meta.id == "42"
        assert meta.title == "2024"

    def test_quotes_stripped(self) -> None:
        meta = parse_frontmatter(['title: "Quoted: title"'])
        assert meta.title == "Quoted: title"

    def test_always_on_and_legacy_alias(self) -> None:
        assert parse_frontmatter(["always_on: true"]).always_on is True
        assert parse_frontmatter(["alwaysOn: true"]).always_on is True
        assert parse_frontmatter(["always_on: yes"]).always_on is False

    def test_unknown_keys_kept_in_order(self) -> None:
        meta = parse_frontmatter(["zeta: 1", "alpha: hello", "flag: false"])
        assert list(meta.extra.items()) == [("zeta", 1), ("alpha", "hello"), ("flag", False)]

    def test_lines_without_colon_skipped(self) -> None:
        meta = parse_frontmatter(["not a pair", "title: Kept"])
        assert meta.title == "Kept"
        assert meta.extra == {}


class TestValueHelpers:
    """Test tag parsing and coercion."""

    def test_tags_deduplicated_in_order(self) -> None:
        assert parse_tags('[b, "a", b, c]') == ["b", "a", "c"]

    def test_tags_without_brackets(self) -> None:
        assert parse_tags("x, y") == ["x", "y"]

    def test_empty_tags(self) -> None:
        assert parse_tags("[]") == []

    def test_coerce_numbers(self) -> None:
        assert coerce_value("7") == 7
        assert coerce_value("-1.5") == -1.5
        assert coerce_value("1.2.3") == "1.2.3"

    def test_coerce_strings(self) -> None:
        assert coerce_value("'single'") == "single"
        assert coerce_value("True") == "True"


class TestRenderFrontmatter:
    """Test header rendering."""

    def test_order_and_updated_at(self) -> None:
        """Reserved keys come first and updated_at is refreshed."""
        meta = DocumentMeta(
            id="abc",
            title="Demo",
            tags=["a", "b"],
            created_at="2024-01-01T00:00:00.000Z",
            updated_at="2024-01-01T00:00:00.000Z",
            extra={"custom": "value"},
        )
        assert render_frontmatter(meta, now=FIXED_NOW) == [
            "---",
            "id: abc",
            "title: Demo",
            "tags: [a, b]",
            "created_at: 2024-01-01T00:00:00.000Z",
            f"updated_at: {FIXED_NOW}",
            "custom: value",
            "---",
        ]

    def test_always_on_only_when_true(self) -> None:
        meta = DocumentMeta(id="x", always_on=True)
        assert "always_on: true" in render_frontmatter(meta, now=FIXED_NOW)

        meta.always_on = False
        assert not any(line.startswith("always_on") for line in render_frontmatter(meta, now=FIXED_NOW))
