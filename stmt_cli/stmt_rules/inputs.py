"""Readers for extraction payloads handed over by the OCR/AI step."""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any

from stmt_cli.shared.exceptions import StmtRulesError


class InputFormatError(StmtRulesError):
    """Raised when an extraction payload cannot be read."""


@dataclass(slots=True)
class ExtractedStatement:
    """Raw headers and rows exactly as the extraction step produced them."""

    headers: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)
    bank_id: str | None = None


def load_extraction(path: str | Path) -> ExtractedStatement:
    """Load a ``.json`` or ``.csv`` extraction payload."""

    source = Path(path)
    text = source.read_text(encoding="utf-8-sig")
    if source.suffix.lower() == ".json":
        return parse_json_payload(text)
    return parse_csv_payload(text)


def parse_json_payload(text: str) -> ExtractedStatement:
    """Parse ``{"headers": [...], "rows": [...], "bank_id": ...}``.

    Rows may be objects keyed by header or positional arrays.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputFormatError(f"Invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise InputFormatError("Extraction payload must be a JSON object.")

    raw_rows = payload.get("rows") or []
    if not isinstance(raw_rows, list):
        raise InputFormatError("'rows' must be a list.")
    headers = payload.get("headers")
    if headers is None:
        headers = _headers_from_records(raw_rows)
    if not isinstance(headers, list):
        raise InputFormatError("'headers' must be a list of strings.")
    headers = [str(header) for header in headers]

    rows: list[dict[str, Any]] = []
    for index, item in enumerate(raw_rows):
        if isinstance(item, dict):
            rows.append({str(key): value for key, value in item.items()})
        elif isinstance(item, list):
            rows.append(dict(zip(headers, item)))
        else:
            raise InputFormatError(f"Row {index} must be an object or an array.")

    bank_id = payload.get("bank_id")
    return ExtractedStatement(headers=headers, rows=rows, bank_id=str(bank_id) if bank_id else None)


def parse_csv_payload(text: str) -> ExtractedStatement:
    """Parse CSV text whose first row holds the raw headers."""
    reader = csv.reader(StringIO(text))
    records = [record for record in reader if any(cell.strip() for cell in record)]
    if not records:
        return ExtractedStatement(headers=[])
    headers = [cell.strip() for cell in records[0]]
    rows = [dict(zip(headers, record)) for record in records[1:]]
    return ExtractedStatement(headers=headers, rows=rows)


def _headers_from_records(records: list[Any]) -> list[str]:
    headers: list[str] = []
    for record in records:
        if not isinstance(record, dict):
            raise InputFormatError("'headers' is required when rows are arrays.")
        for key in record:
            if str(key) not in headers:
                headers.append(str(key))
    return headers
