from __future__ import annotations

from datetime import date
from pathlib import Path
from textwrap import dedent

import pytest

from stmt_cli.shared.exceptions import RuleDefinitionError
from stmt_cli.stmt_rules.definitions import load_rule, parse_rule, parse_rule_text
from stmt_cli.stmt_rules.types import DataType, StructureType


def test_load_rule_applies_column_defaults(tmp_path: Path) -> None:
    rule_path = tmp_path / "sample.yaml"
    rule_path.write_text(
        dedent(
            """
            bank_id: sample
            bank_name: 샘플은행
            aliases: [샘플]
            version: 2
            last_updated: 2026-08-01
            structure:
              type: multi-section
              section_pattern: '^■\\s*(.+)$'
            header:
              keywords: [거래일자, 잔액]
              columns:
                - name: date
                  aliases: [거래일자]
                  required: true
                - name: balance
                  aliases: [잔액]
                  required: true
                - name: memo
            """
        ),
        encoding="utf-8",
    )

    rule = load_rule(rule_path)

    assert rule.bank_id == "sample"
    assert rule.version == 2
    assert rule.last_updated == date(2026, 8, 1)
    assert rule.structure.type is StructureType.MULTI_SECTION
    assert rule.header_keywords == ("거래일자", "잔액")
    assert [column.data_type for column in rule.columns] == [DataType.DATE, DataType.CURRENCY, DataType.TEXT]
    assert [column.position for column in rule.columns] == [0, 1, 2]
    assert rule.required_fields == frozenset({"date", "balance"})


def test_load_rule_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_rule(tmp_path / "missing.yaml")


def test_parse_rule_text_reports_source_on_error() -> None:
    with pytest.raises(RuleDefinitionError, match="inline.yaml"):
        parse_rule_text("bank_name: 이름만", source="inline.yaml")


@pytest.mark.parametrize(
    "override, message",
    [
        ({"version": 0}, "version must be a positive integer"),
        ({"version": "3"}, "version must be a positive integer"),
        ({"last_updated": "last week"}, "last_updated must be YYYY-MM-DD"),
        ({"structure": {"type": "zigzag"}}, "unknown structure type"),
        ({"structure": {"type": "multi-section", "section_pattern": "(["}}, "not a valid regex"),
        ({"header": {"columns": [{"name": "fee"}]}}, "unknown canonical field 'fee'"),
        ({"header": {"columns": [{"name": "date"}, {"name": "date"}]}}, "duplicate column 'date'"),
        ({"header": {"columns": [{"name": "memo", "type": "blob"}]}}, "unknown type 'blob'"),
        ({"header": {"columns": [{"name": "memo", "position": "first"}]}}, "invalid position 'first'"),
        ({"header": {"columns": [{"name": "memo", "position": [1]}]}}, "invalid position"),
    ],
)
def test_parse_rule_rejects_malformed_definitions(override: dict, message: str) -> None:
    data = {
        "bank_id": "broken",
        "bank_name": "깨진은행",
        "version": 1,
        "last_updated": "2026-01-01",
        "header": {"columns": [{"name": "date", "required": True}]},
    }
    data.update(override)

    with pytest.raises(RuleDefinitionError, match=message):
        parse_rule(data)


def test_rule_to_dict_is_json_friendly(make_rule) -> None:
    rule = make_rule()

    payload = rule.to_dict()

    assert payload["bank_id"] == "testbank"
    assert payload["last_updated"] == "2026-09-01"
    assert payload["structure"]["type"] == "single-table"
    assert [column["name"] for column in payload["header"]["columns"]] == [
        "date",
        "description",
        "deposit",
        "withdrawal",
        "balance",
    ]
    assert payload["header"]["columns"][2]["data_type"] == "currency"
