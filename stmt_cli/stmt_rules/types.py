"""Dataclasses describing bank rules and normalised statement data."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class CanonicalField(str, Enum):
    """Transaction attributes every bank rule normalises into."""

    DATE = "date"
    TIME = "time"
    TRANSACTION_TYPE = "transaction_type"
    DESCRIPTION = "description"
    COUNTERPARTY = "counterparty"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    AMOUNT = "amount"  # signed single amount column, split into deposit/withdrawal
    BALANCE = "balance"
    MEMO = "memo"
    BRANCH = "branch"
    ACCOUNT_NO = "account_no"
    CATEGORY = "category"


MANDATORY_FIELDS: tuple[str, ...] = (
    CanonicalField.DATE.value,
    CanonicalField.DESCRIPTION.value,
    CanonicalField.DEPOSIT.value,
    CanonicalField.WITHDRAWAL.value,
    CanonicalField.BALANCE.value,
)


class DataType(str, Enum):
    DATE = "date"
    TIME = "time"
    CURRENCY = "currency"
    TEXT = "text"


class StructureType(str, Enum):
    """Physical layout category of a statement."""

    SINGLE_TABLE = "single-table"
    MULTI_SECTION = "multi-section"
    SECTIONED_BY_ACCOUNT = "sectioned-by-account"


class ValidationStatus(str, Enum):
    """Fitness of a rule definition; always derived, never stored."""

    VALID = "valid"
    INCOMPLETE = "incomplete"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    """One canonical column of a bank rule and the raw headers accepted for it."""

    name: str
    aliases: tuple[str, ...] = ()
    required: bool = False
    data_type: DataType = DataType.TEXT
    position: int | None = None  # advisory only


@dataclass(frozen=True, slots=True)
class Structure:
    """Structure type plus the parameters that type needs."""

    type: StructureType = StructureType.SINGLE_TABLE
    section_pattern: str | None = None
    account_pattern: str | None = None
    layout: str | None = None  # "line-separated" | "space-separated" | "table"
    description: str = ""


@dataclass(frozen=True, slots=True)
class BankRule:
    """Declarative description of one institution's statement layout."""

    bank_id: str
    bank_name: str
    version: int
    last_updated: date
    columns: tuple[ColumnDefinition, ...]
    structure: Structure = field(default_factory=Structure)
    aliases: tuple[str, ...] = ()
    header_keywords: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def required_fields(self) -> frozenset[str]:
        return frozenset(column.name for column in self.columns if column.required)

    def column(self, name: str) -> ColumnDefinition | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation used by the detail query."""

        return {
            "bank_id": self.bank_id,
            "bank_name": self.bank_name,
            "aliases": list(self.aliases),
            "version": self.version,
            "last_updated": self.last_updated.isoformat(),
            "structure": {
                "type": self.structure.type.value,
                "section_pattern": self.structure.section_pattern,
                "account_pattern": self.structure.account_pattern,
                "layout": self.structure.layout,
                "description": self.structure.description,
            },
            "header": {
                "keywords": list(self.header_keywords),
                "columns": [
                    {
                        "name": column.name,
                        "aliases": list(column.aliases),
                        "required": column.required,
                        "data_type": column.data_type.value,
                        "position": column.position,
                    }
                    for column in self.columns
                ],
            },
            "notes": list(self.notes),
        }


@dataclass(frozen=True, slots=True)
class RuleSummary:
    """Row of the rule listing."""

    bank_id: str
    bank_name: str
    column_count: int
    structure_type: str
    validation_status: ValidationStatus
    version: int
    last_updated: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "bank_id": self.bank_id,
            "bank_name": self.bank_name,
            "column_count": self.column_count,
            "structure_type": self.structure_type,
            "validation_status": self.validation_status.value,
            "version": self.version,
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass(slots=True)
class TransactionRow:
    """Canonical transaction record produced by normalisation.

    Amounts are integers in the statement currency. ``deposit`` and
    ``withdrawal`` are non-negative; ``balance`` is signed.
    """

    date: str
    description: str
    deposit: int = 0
    withdrawal: int = 0
    balance: int = 0
    time: str | None = None
    transaction_type: str | None = None
    counterparty: str | None = None
    memo: str | None = None
    branch: str | None = None
    account_no: str | None = None
    category: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


TRANSACTION_COLUMNS: tuple[str, ...] = (
    "date",
    "time",
    "transaction_type",
    "description",
    "counterparty",
    "deposit",
    "withdrawal",
    "balance",
    "memo",
    "branch",
    "account_no",
    "category",
)


@dataclass(frozen=True, slots=True)
class CellParseWarning:
    """A cell that could not be parsed as its declared type."""

    row_index: int
    field: str
    raw_value: str
    message: str = ""


@dataclass(frozen=True, slots=True)
class ConsistencyFinding:
    """Balance discontinuity between a row and its predecessor."""

    row_index: int
    expected_balance: int
    actual_balance: int

    @property
    def difference(self) -> int:
        return self.actual_balance - self.expected_balance


@dataclass(frozen=True, slots=True)
class AmountSideFinding:
    """Row where deposit/withdrawal break the one-sided convention."""

    row_index: int
    deposit: int
    withdrawal: int
    code: str  # "both_zero" | "both_nonzero"


@dataclass(slots=True)
class NormalizationResult:
    """Normalised rows plus the diagnostics gathered while producing them."""

    rows: list[TransactionRow]
    unmatched_required: frozenset[str] = frozenset()
    unmapped_raw_columns: frozenset[str] = frozenset()
    parse_warnings: list[CellParseWarning] = field(default_factory=list)
    column_map: dict[str, str] = field(default_factory=dict)  # canonical -> raw header
    # One id per row; a new id starts at each section or account boundary.
    segments: list[int] = field(default_factory=list)

    def __iter__(self) -> Iterator[TransactionRow]:
        return iter(self.rows)

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self.rows)
