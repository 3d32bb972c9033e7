from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from cortex.document.blocks_models import Block, BlockKind, new_block


def _build_blocks(*specs: tuple[str, str] | tuple[str, str, int]) -> list[Block]:
    """Build blocks with readable ids: ("A", "text") or ("A", "bullet", 1)."""
    blocks = []
    for entry in specs:
        block_id, kind = entry[0], entry[1]
        indent = entry[2] if len(entry) > 2 else 0
        blocks.append(Block(id=block_id, kind=BlockKind(kind), text=block_id.lower(), indent=indent))
    return blocks


@pytest.fixture
def make_blocks() -> Callable[..., list[Block]]:
    """Factory for small block lists with readable ids."""
    return _build_blocks


@pytest.fixture
def abcd() -> list[Block]:
    """Four top-level text blocks A, B, C, D."""
    return _build_blocks(("A", "text"), ("B", "text"), ("C", "text"), ("D", "text"))


@pytest.fixture
def toggle_doc() -> list[Block]:
    """A paragraph, a toggle with two children, and a trailing paragraph."""
    toggle = Block(
        id="T",
        kind=BlockKind.TOGGLE,
        text="Details",
        collapsed=True,
        children=(
            Block(id="T1", kind=BlockKind.TEXT, text="first"),
            Block(id="T2", kind=BlockKind.TEXT, text="second"),
        ),
    )
    return [
        Block(id="P", kind=BlockKind.TEXT, text="intro"),
        toggle,
        Block(id="Q", kind=BlockKind.TEXT, text="outro"),
    ]


@pytest.fixture
def table_doc() -> list[Block]:
    """One 2x2 table block."""
    return [
        new_block(BlockKind.TEXT, "before"),
        Block(id="TBL", kind=BlockKind.TABLE, table=(("h1", "h2"), ("a", "b"))),
    ]


@pytest.fixture
def vault(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an isolated vault directory."""
    vault_dir = tmp_path / "vault"
    vault_dir.mkdir()
    monkeypatch.setenv("CORTEX_VAULT_DIR", str(vault_dir))
    return vault_dir
