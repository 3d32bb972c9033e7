"""Tests for settings.py - Environment parsing."""

from __future__ import annotations

import pytest

from cortex.settings import _env_bool, _env_int


class TestEnvParsing:
    """Test environment helpers."""

    @pytest.mark.parametrize("raw,expected", [("1", True), ("Yes", True), ("off", False), ("0", False)])
    def test_env_bool(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
        monkeypatch.setenv("CORTEX_TEST_FLAG", raw)
        assert _env_bool("CORTEX_TEST_FLAG", not expected) is expected

    def test_env_bool_unrecognized_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORTEX_TEST_FLAG", "maybe")
        assert _env_bool("CORTEX_TEST_FLAG", True) is True

    def test_env_int(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORTEX_TEST_INT", "20")
        assert _env_int("CORTEX_TEST_INT", 5) == 20

    def test_env_int_invalid_and_minimum(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORTEX_TEST_INT", "lots")
        assert _env_int("CORTEX_TEST_INT", 5) == 5
        monkeypatch.setenv("CORTEX_TEST_INT", "0")
        assert _env_int("CORTEX_TEST_INT", 5, min_val=1) == 1

    def test_env_int_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CORTEX_TEST_INT", raising=False)
        assert _env_int("CORTEX_TEST_INT", 7) == 7
