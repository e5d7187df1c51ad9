"""Map raw extracted columns onto the canonical transaction schema.

Header matching runs two passes over the rule's columns in declared order:
an exact pass (normalised header equals the canonical name or an alias),
then a containment pass (an alias occurs inside the normalised header) for
the columns still unmatched. Aliases are tried in declared order. Each raw
header is claimed by at most one column and the first column to claim it
keeps it.

Normalisation never raises for bad data. Unmatched required columns,
unmapped headers and unparseable cells are reported on the returned
:class:`NormalizationResult` and the affected fields fall back to ``0`` or
an empty value.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .types import (
    BankRule,
    CanonicalField,
    CellParseWarning,
    DataType,
    NormalizationResult,
    StructureType,
    TransactionRow,
)
from .utils import is_blank, normalize_time, normalize_token, parse_currency, split_datetime

_LOGGER = logging.getLogger(__name__)

RawRow = Mapping[str, Any]

_DATE = CanonicalField.DATE.value
_TIME = CanonicalField.TIME.value
_DEPOSIT = CanonicalField.DEPOSIT.value
_WITHDRAWAL = CanonicalField.WITHDRAWAL.value
_AMOUNT = CanonicalField.AMOUNT.value
_BALANCE = CanonicalField.BALANCE.value
_CATEGORY = CanonicalField.CATEGORY.value
_ACCOUNT_NO = CanonicalField.ACCOUNT_NO.value

_OPTIONAL_TEXT_FIELDS = (
    CanonicalField.TRANSACTION_TYPE.value,
    CanonicalField.COUNTERPARTY.value,
    CanonicalField.MEMO.value,
    CanonicalField.BRANCH.value,
    _ACCOUNT_NO,
    _CATEGORY,
)


@dataclass(frozen=True, slots=True)
class ColumnMatch:
    """Outcome of matching raw headers against one rule."""

    assignments: Mapping[str, str]  # canonical field -> raw header
    unmatched_required: frozenset[str]
    unmapped_raw_columns: frozenset[str]

    def header_for(self, field: str) -> str | None:
        return self.assignments.get(field)


def match_columns(raw_headers: Sequence[str], rule: BankRule) -> ColumnMatch:
    """Assign raw headers to the rule's canonical columns."""

    headers: list[tuple[str, str]] = []
    seen: set[str] = set()
    for header in raw_headers:
        if header in seen:
            continue
        seen.add(header)
        headers.append((header, normalize_token(header)))

    assignments: dict[str, str] = {}
    claimed: set[str] = set()

    def claim(field: str, tokens: list[str], *, exact: bool) -> None:
        for token in tokens:
            for raw, normalized in headers:
                if raw in claimed or not normalized:
                    continue
                hit = normalized == token if exact else token in normalized
                if hit:
                    assignments[field] = raw
                    claimed.add(raw)
                    return

    column_tokens = {column.name: _column_tokens(column.name, column.aliases) for column in rule.columns}
    for column in rule.columns:
        claim(column.name, column_tokens[column.name], exact=True)
    for column in rule.columns:
        if column.name not in assignments:
            claim(column.name, column_tokens[column.name], exact=False)

    missing = {column.name for column in rule.columns if column.required and column.name not in assignments}
    if _AMOUNT in assignments:
        # A matched signed amount column supplies whichever side has no column of its own.
        missing -= {_DEPOSIT, _WITHDRAWAL}

    unmapped = {raw for raw, normalized in headers if normalized and raw not in claimed}
    return ColumnMatch(
        assignments=dict(assignments),
        unmatched_required=frozenset(missing),
        unmapped_raw_columns=frozenset(unmapped),
    )


def normalize(
    raw_headers: Sequence[str],
    raw_rows: Sequence[RawRow],
    rule: BankRule,
) -> NormalizationResult:
    """Normalise raw rows into :class:`TransactionRow` records using ``rule``.

    Fully blank rows are dropped. For ``multi-section`` and
    ``sectioned-by-account`` rules, boundary rows (matching the structure
    pattern and carrying no amounts) are consumed and their label is copied
    into ``category`` or ``account_no`` of the rows that follow. Each
    boundary, and each change of account number in an account column,
    opens a new segment in :attr:`NormalizationResult.segments`.
    """

    match = match_columns(raw_headers, rule)
    if match.unmatched_required:
        _LOGGER.debug(
            "Rule %s: required columns unmatched: %s",
            rule.bank_id,
            ", ".join(sorted(match.unmatched_required)),
        )

    boundary_re, boundary_field = _boundary_config(rule)
    amount_headers = [
        header
        for field, header in match.assignments.items()
        if field in {_DEPOSIT, _WITHDRAWAL, _AMOUNT, _BALANCE}
    ]

    rows: list[TransactionRow] = []
    warnings: list[CellParseWarning] = []
    segments: list[int] = []
    segment = 0
    current_label: str | None = None

    for raw in raw_rows:
        if all(is_blank(value) for value in raw.values()):
            continue
        if boundary_re is not None:
            label = _boundary_label(raw, boundary_re, amount_headers)
            if label is not None:
                current_label = label
                segment += 1
                continue

        builder = _RowBuilder(raw, match, rule, row_index=len(rows))
        row = builder.build()
        if boundary_field is not None and current_label is not None:
            if getattr(row, boundary_field) is None:
                setattr(row, boundary_field, current_label)
        if rule.structure.type is StructureType.SECTIONED_BY_ACCOUNT and rows:
            # An account column switches accounts without a boundary row.
            if row.account_no != rows[-1].account_no and segments[-1] == segment:
                segment += 1
        rows.append(row)
        segments.append(segment)
        warnings.extend(builder.warnings)

    return NormalizationResult(
        rows=rows,
        unmatched_required=match.unmatched_required,
        unmapped_raw_columns=match.unmapped_raw_columns,
        parse_warnings=warnings,
        column_map=dict(match.assignments),
        segments=segments,
    )


class _RowBuilder:
    """Converts one raw record; collects the cell warnings it produced."""

    def __init__(self, raw: RawRow, match: ColumnMatch, rule: BankRule, *, row_index: int) -> None:
        self.raw = raw
        self.match = match
        self.rule = rule
        self.row_index = row_index
        self.warnings: list[CellParseWarning] = []

    def build(self) -> TransactionRow:
        iso_date, embedded_time = self._date()
        time_value = self._time() or embedded_time

        deposit = self._side(_DEPOSIT)
        withdrawal = self._side(_WITHDRAWAL)
        if _AMOUNT in self.match.assignments:
            signed = self._currency(_AMOUNT)
            if signed > 0 and _DEPOSIT not in self.match.assignments:
                deposit = signed
            elif signed < 0 and _WITHDRAWAL not in self.match.assignments:
                withdrawal = -signed

        row = TransactionRow(
            date=iso_date,
            time=time_value,
            description=self._text(CanonicalField.DESCRIPTION.value) or "",
            deposit=deposit,
            withdrawal=withdrawal,
            balance=self._currency(_BALANCE),
        )
        for field in _OPTIONAL_TEXT_FIELDS:
            setattr(row, field, self._text(field))
        return row

    def _cell(self, field: str) -> Any:
        header = self.match.header_for(field)
        if header is None:
            return None
        value = self.raw.get(header)
        return None if is_blank(value) else value

    def _warn(self, field: str, value: Any, message: str) -> None:
        self.warnings.append(
            CellParseWarning(row_index=self.row_index, field=field, raw_value=str(value), message=message)
        )

    def _text(self, field: str) -> str | None:
        value = self._cell(field)
        if value is None:
            return None
        text = " ".join(str(value).split())
        return text or None

    def _date(self) -> tuple[str, str | None]:
        value = self._cell(_DATE)
        if value is None:
            return "", None
        column = self.rule.column(_DATE)
        if column is not None and column.data_type is not DataType.DATE:
            return " ".join(str(value).split()), None
        try:
            return split_datetime(str(value))
        except ValueError as exc:
            self._warn(_DATE, value, str(exc))
            return " ".join(str(value).split()), None

    def _time(self) -> str | None:
        value = self._cell(_TIME)
        if value is None:
            return None
        try:
            return normalize_time(str(value))
        except ValueError as exc:
            self._warn(_TIME, value, str(exc))
            return str(value).strip()

    def _currency(self, field: str) -> int:
        value = self._cell(field)
        if value is None:
            return 0
        try:
            return parse_currency(value)
        except ValueError as exc:
            self._warn(field, value, str(exc))
            return 0

    def _side(self, field: str) -> int:
        amount = self._currency(field)
        if amount < 0:
            self._warn(field, self._cell(field), f"Negative amount in {field} column; using its magnitude")
            return -amount
        return amount


def _column_tokens(name: str, aliases: Sequence[str]) -> list[str]:
    tokens: list[str] = []
    for candidate in (name, *aliases):
        token = normalize_token(candidate)
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def _boundary_config(rule: BankRule) -> tuple[re.Pattern[str] | None, str | None]:
    structure = rule.structure
    if structure.type is StructureType.MULTI_SECTION and structure.section_pattern:
        return re.compile(structure.section_pattern), _CATEGORY
    if structure.type is StructureType.SECTIONED_BY_ACCOUNT and structure.account_pattern:
        return re.compile(structure.account_pattern), _ACCOUNT_NO
    return None, None


def _boundary_label(raw: RawRow, pattern: re.Pattern[str], amount_headers: Sequence[str]) -> str | None:
    if any(not is_blank(raw.get(header)) for header in amount_headers):
        return None
    text = " ".join(str(value).strip() for value in raw.values() if not is_blank(value))
    found = pattern.search(text)
    if not found:
        return None
    label = found.group(1) if found.re.groups else found.group(0)
    return " ".join((label or found.group(0)).split())
