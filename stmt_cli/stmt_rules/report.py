"""Diagnostics report handed to the export layer, plus its renderings."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from stmt_cli.shared.exceptions import ColumnMatchError

from .types import (
    AmountSideFinding,
    BankRule,
    ConsistencyFinding,
    NormalizationResult,
    TransactionRow,
    ValidationStatus,
)
from .validator import RuleValidationReport

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
DEFAULT_TEMPLATE_NAME = "report.md.j2"


def should_highlight(row: TransactionRow, threshold: int) -> bool:
    """True when the larger of deposit/withdrawal reaches ``threshold``.

    A threshold of zero or less disables highlighting.
    """

    if threshold <= 0:
        return False
    return max(row.deposit, row.withdrawal) >= threshold


def highlighted_rows(rows: Sequence[TransactionRow], threshold: int) -> list[int]:
    return [index for index, row in enumerate(rows) if should_highlight(row, threshold)]


@dataclass(slots=True)
class StatementReport:
    """Normalised rows plus every diagnostic gathered for one statement."""

    rule: BankRule
    resolution: str  # "declared" | "detected" | "fallback"
    rule_validation: RuleValidationReport
    normalization: NormalizationResult
    continuity_findings: list[ConsistencyFinding] = field(default_factory=list)
    amount_findings: list[AmountSideFinding] = field(default_factory=list)
    requested_bank_id: str | None = None
    notes: list[str] = field(default_factory=list)

    @property
    def rows(self) -> list[TransactionRow]:
        return self.normalization.rows

    @property
    def validation_status(self) -> ValidationStatus:
        return self.rule_validation.status

    @property
    def complete(self) -> bool:
        """True when every required canonical column was matched."""
        return not self.normalization.unmatched_required

    @property
    def clean(self) -> bool:
        """True when there is nothing at all to surface."""
        return (
            self.complete
            and not self.normalization.parse_warnings
            and not self.continuity_findings
            and not self.amount_findings
        )

    def ensure_complete(self) -> None:
        """Raise :class:`ColumnMatchError` for callers that treat missing columns as fatal."""
        if not self.complete:
            raise ColumnMatchError(self.rule.bank_id, self.normalization.unmatched_required)

    def to_dict(self, *, highlight_threshold: int = 0) -> dict[str, Any]:
        highlighted = highlighted_rows(self.rows, highlight_threshold)
        return {
            "bank_id": self.rule.bank_id,
            "bank_name": self.rule.bank_name,
            "rule_version": self.rule.version,
            "requested_bank_id": self.requested_bank_id,
            "resolution": self.resolution,
            "validation_status": self.validation_status.value,
            "rule_issues": [
                {"code": issue.code, "message": issue.message, "status": issue.status.value}
                for issue in self.rule_validation.issues
            ],
            "rows": [row.as_dict() for row in self.rows],
            "column_map": dict(self.normalization.column_map),
            "unmatched_required": sorted(self.normalization.unmatched_required),
            "unmapped_raw_columns": sorted(self.normalization.unmapped_raw_columns),
            "parse_warnings": [
                {
                    "row_index": warning.row_index,
                    "field": warning.field,
                    "raw_value": warning.raw_value,
                    "message": warning.message,
                }
                for warning in self.normalization.parse_warnings
            ],
            "consistency_findings": [
                {
                    "row_index": finding.row_index,
                    "expected_balance": finding.expected_balance,
                    "actual_balance": finding.actual_balance,
                }
                for finding in self.continuity_findings
            ],
            "amount_findings": [
                {
                    "row_index": finding.row_index,
                    "deposit": finding.deposit,
                    "withdrawal": finding.withdrawal,
                    "code": finding.code,
                }
                for finding in self.amount_findings
            ],
            "highlighted_rows": highlighted,
            "summary": {
                "row_count": len(self.rows),
                "highlighted_count": len(highlighted),
                "highlight_threshold": highlight_threshold,
                "total_deposit": sum(row.deposit for row in self.rows),
                "total_withdrawal": sum(row.withdrawal for row in self.rows),
            },
            "notes": list(self.notes),
        }


def render_markdown(
    report: StatementReport,
    *,
    highlight_threshold: int = 0,
    template_path: Path | None = None,
) -> str:
    """Render the operator-facing diagnostics digest."""

    env = Environment(
        loader=FileSystemLoader([str(TEMPLATE_DIR)]),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    if template_path:
        template = env.from_string(template_path.read_text(encoding="utf-8"))
    else:
        template = env.get_template(DEFAULT_TEMPLATE_NAME)

    output = template.render(report=report.to_dict(highlight_threshold=highlight_threshold))
    if not output.endswith("\n"):
        output += "\n"
    return output
