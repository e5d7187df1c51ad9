from __future__ import annotations

import json
from pathlib import Path

import pytest

from stmt_cli.stmt_rules.inputs import InputFormatError, load_extraction, parse_csv_payload, parse_json_payload


def test_json_payload_with_object_rows() -> None:
    payload = {
        "bank_id": "woori",
        "headers": ["거래일시", "기재내용"],
        "rows": [{"거래일시": "2024.05.01", "기재내용": "급여"}],
    }

    extracted = parse_json_payload(json.dumps(payload, ensure_ascii=False))

    assert extracted.bank_id == "woori"
    assert extracted.headers == ["거래일시", "기재내용"]
    assert extracted.rows == [{"거래일시": "2024.05.01", "기재내용": "급여"}]


def test_json_payload_with_array_rows() -> None:
    text = json.dumps({"headers": ["날짜", "잔액"], "rows": [["2024-01-01", 1000]]})

    extracted = parse_json_payload(text)

    assert extracted.rows == [{"날짜": "2024-01-01", "잔액": 1000}]
    assert extracted.bank_id is None


def test_json_payload_infers_headers_from_records() -> None:
    text = json.dumps({"rows": [{"a": 1}, {"a": 2, "b": 3}]})

    assert parse_json_payload(text).headers == ["a", "b"]


@pytest.mark.parametrize(
    "text, message",
    [
        ("{not json", "Invalid JSON"),
        ("[1, 2]", "must be a JSON object"),
        ('{"rows": {"a": 1}}', "'rows' must be a list"),
        ('{"rows": [["x"]]}', "'headers' is required"),
        ('{"headers": ["a"], "rows": [5]}', "Row 0 must be an object or an array"),
    ],
)
def test_json_payload_errors(text: str, message: str) -> None:
    with pytest.raises(InputFormatError, match=message):
        parse_json_payload(text)


def test_csv_payload_uses_first_non_empty_record_as_header() -> None:
    text = "\n,,\n날짜,내용,잔액\n2024-01-01,이자,10\n,,\n"

    extracted = parse_csv_payload(text)

    assert extracted.headers == ["날짜", "내용", "잔액"]
    assert extracted.rows == [{"날짜": "2024-01-01", "내용": "이자", "잔액": "10"}]


def test_load_extraction_dispatches_on_suffix(tmp_path: Path) -> None:
    csv_path = tmp_path / "statement.csv"
    csv_path.write_text("날짜,잔액\n2024-01-01,5\n", encoding="utf-8-sig")
    json_path = tmp_path / "statement.JSON"
    json_path.write_text('{"headers": ["날짜"], "rows": []}', encoding="utf-8")

    assert load_extraction(csv_path).headers == ["날짜", "잔액"]
    assert load_extraction(json_path).rows == []
