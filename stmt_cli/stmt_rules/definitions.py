"""YAML loading for declarative bank rule definitions.

A rule file describes one institution::

    bank_id: woori
    bank_name: 우리은행
    aliases: [우리, WOORI]
    version: 2
    last_updated: 2026-08-14
    structure:
      type: single-table
      layout: line-separated
    header:
      keywords: [거래일시, 찾으신금액, 맡기신금액]
      columns:
        - name: date
          aliases: [거래일시]
          required: true

Column ``type`` defaults from the canonical field (amount fields are
currency, ``date``/``time`` are date/time, everything else text) and
``position`` defaults to the declared index.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping

import yaml

from stmt_cli.shared.exceptions import RuleDefinitionError

from .types import BankRule, CanonicalField, ColumnDefinition, DataType, Structure, StructureType

_CANONICAL_NAMES = {member.value for member in CanonicalField}

_DEFAULT_DATA_TYPES: dict[str, DataType] = {
    CanonicalField.DATE.value: DataType.DATE,
    CanonicalField.TIME.value: DataType.TIME,
    CanonicalField.DEPOSIT.value: DataType.CURRENCY,
    CanonicalField.WITHDRAWAL.value: DataType.CURRENCY,
    CanonicalField.AMOUNT.value: DataType.CURRENCY,
    CanonicalField.BALANCE.value: DataType.CURRENCY,
}


def load_rule(yaml_path: str | Path) -> BankRule:
    """Load and parse a single rule definition file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        RuleDefinitionError: If the definition is malformed
    """
    path = Path(yaml_path)
    if not path.exists():
        raise FileNotFoundError(f"Rule file not found: {yaml_path}")
    return parse_rule_text(path.read_text(encoding="utf-8"), source=str(path))


def parse_rule_text(text: str, *, source: str = "<string>") -> BankRule:
    """Parse YAML text into a :class:`BankRule`."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuleDefinitionError(f"{source}: invalid YAML: {exc}") from exc
    if not isinstance(data, Mapping):
        raise RuleDefinitionError(f"{source}: rule definition must be a mapping")
    try:
        return parse_rule(data)
    except RuleDefinitionError as exc:
        raise RuleDefinitionError(f"{source}: {exc}") from exc


def parse_rule(data: Mapping[str, Any]) -> BankRule:
    """Build a :class:`BankRule` from already-decoded YAML data."""
    bank_id = str(data.get("bank_id") or "").strip()
    bank_name = str(data.get("bank_name") or "").strip()
    if not bank_id or not bank_name:
        raise RuleDefinitionError("Missing required fields: bank_id, bank_name")

    version = data.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise RuleDefinitionError(f"[{bank_id}] version must be a positive integer, got {version!r}")

    header = data.get("header") or {}
    if not isinstance(header, Mapping):
        raise RuleDefinitionError(f"[{bank_id}] header must be a mapping")

    return BankRule(
        bank_id=bank_id,
        bank_name=bank_name,
        version=version,
        last_updated=_parse_date(data.get("last_updated"), bank_id),
        columns=_parse_columns(header.get("columns") or [], bank_id),
        structure=_parse_structure(data.get("structure") or {}, bank_id),
        aliases=_string_tuple(data.get("aliases")),
        header_keywords=_string_tuple(header.get("keywords")),
        notes=_string_tuple(data.get("notes")),
    )


def _parse_columns(items: Any, bank_id: str) -> tuple[ColumnDefinition, ...]:
    if not isinstance(items, list):
        raise RuleDefinitionError(f"[{bank_id}] header.columns must be a list")

    columns: list[ColumnDefinition] = []
    seen: set[str] = set()
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise RuleDefinitionError(f"[{bank_id}] column #{index} must be a mapping")
        name = str(item.get("name") or "").strip()
        if name not in _CANONICAL_NAMES:
            raise RuleDefinitionError(f"[{bank_id}] unknown canonical field '{name}'")
        if name in seen:
            # Canonical names are unique per rule, which also keeps required fields unique.
            raise RuleDefinitionError(f"[{bank_id}] duplicate column '{name}'")
        seen.add(name)

        raw_type = item.get("type")
        try:
            data_type = DataType(raw_type) if raw_type else _DEFAULT_DATA_TYPES.get(name, DataType.TEXT)
        except ValueError as exc:
            raise RuleDefinitionError(f"[{bank_id}] column '{name}' has unknown type '{raw_type}'") from exc

        position = item.get("position", index)
        if position is not None:
            try:
                position = int(position)
            except (TypeError, ValueError) as exc:
                raise RuleDefinitionError(
                    f"[{bank_id}] column '{name}' has invalid position {position!r}"
                ) from exc
        columns.append(
            ColumnDefinition(
                name=name,
                aliases=_string_tuple(item.get("aliases")),
                required=bool(item.get("required", False)),
                data_type=data_type,
                position=position,
            )
        )
    return tuple(columns)


def _parse_structure(data: Any, bank_id: str) -> Structure:
    if not isinstance(data, Mapping):
        raise RuleDefinitionError(f"[{bank_id}] structure must be a mapping")
    raw_type = data.get("type", StructureType.SINGLE_TABLE.value)
    try:
        structure_type = StructureType(raw_type)
    except ValueError as exc:
        raise RuleDefinitionError(f"[{bank_id}] unknown structure type '{raw_type}'") from exc

    section_pattern = data.get("section_pattern")
    account_pattern = data.get("account_pattern")
    for label, pattern in (("section_pattern", section_pattern), ("account_pattern", account_pattern)):
        if pattern is None:
            continue
        try:
            re.compile(pattern)
        except re.error as exc:
            raise RuleDefinitionError(f"[{bank_id}] structure.{label} is not a valid regex: {exc}") from exc

    return Structure(
        type=structure_type,
        section_pattern=section_pattern or None,
        account_pattern=account_pattern or None,
        layout=data.get("layout"),
        description=str(data.get("description") or ""),
    )


def _parse_date(value: Any, bank_id: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise RuleDefinitionError(f"[{bank_id}] last_updated must be YYYY-MM-DD, got '{value}'") from exc
    raise RuleDefinitionError(f"[{bank_id}] last_updated is required")


def _string_tuple(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value)
