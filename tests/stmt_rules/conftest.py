"""Shared fixtures for stmt-rules tests.

Rules are built from plain mappings through the same parser the bundled
YAML definitions use, so tests exercise the real defaults (column data
types, positions, structure parsing).
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from stmt_cli.shared import paths
from stmt_cli.stmt_rules.definitions import parse_rule
from stmt_cli.stmt_rules.types import BankRule


def _base_columns() -> list[dict[str, Any]]:
    return [
        {"name": "date", "aliases": ["날짜", "거래일자"], "required": True},
        {"name": "description", "aliases": ["내용", "적요"], "required": True},
        {"name": "deposit", "aliases": ["입금", "맡기신금액"], "required": True},
        {"name": "withdrawal", "aliases": ["출금", "찾으신금액"], "required": True},
        {"name": "balance", "aliases": ["잔액", "거래후잔액"], "required": True},
    ]


@pytest.fixture()
def make_rule() -> Callable[..., BankRule]:
    """Factory returning a valid single-table rule with overridable fields."""

    def _make(**overrides: Any) -> BankRule:
        data: dict[str, Any] = {
            "bank_id": "testbank",
            "bank_name": "테스트은행",
            "version": 1,
            "last_updated": date(2026, 9, 1),
            "structure": {"type": "single-table"},
            "header": {"columns": _base_columns()},
        }
        data.update(overrides)
        return parse_rule(data)

    return _make


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config discovery at an empty temp dir and clear env overrides."""

    config_dir = tmp_path / "stmtrules-config"
    monkeypatch.setenv(paths.CONFIG_DIR_ENV, str(config_dir))
    monkeypatch.delenv(paths.CONFIG_FILE_ENV, raising=False)
    for name in (
        "STMTRULES_FRESHNESS_DAYS",
        "STMTRULES_STRICT",
        "STMTRULES_RESET_BALANCE_PER_SECTION",
        "STMTRULES_HIGHLIGHT_THRESHOLD",
    ):
        monkeypatch.delenv(name, raising=False)
    return config_dir
