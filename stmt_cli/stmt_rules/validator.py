"""Fitness checks for bank rule definitions.

A rule's status is recomputed from the definition every time it is asked
for, so it can never drift from the rule it describes. Checks run in
priority order:

* every mandatory canonical field (date, description, deposit, withdrawal,
  balance) is declared as a required column -> otherwise ``incomplete``
* the structure type has the parameters it needs -> otherwise ``incomplete``
* the rule was reviewed within the freshness window -> otherwise ``stale``

``inspect_rule`` keeps every finding for operators; ``validate`` reduces the
findings to the single highest-priority status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from stmt_cli.shared.config import DEFAULT_FRESHNESS_DAYS

from .types import MANDATORY_FIELDS, BankRule, CanonicalField, StructureType, ValidationStatus

FRESHNESS_DAYS = DEFAULT_FRESHNESS_DAYS


@dataclass(slots=True)
class RuleIssue:
    """Single finding about a rule definition."""

    code: str  # "missing_required_field" | "missing_structure_parameter" | "stale_rule"
    message: str
    status: ValidationStatus = ValidationStatus.INCOMPLETE


@dataclass(slots=True)
class RuleValidationReport:
    """All findings for one rule, in check order."""

    bank_id: str
    issues: list[RuleIssue] = field(default_factory=list)

    @property
    def status(self) -> ValidationStatus:
        statuses = {issue.status for issue in self.issues}
        if ValidationStatus.INCOMPLETE in statuses:
            return ValidationStatus.INCOMPLETE
        if ValidationStatus.STALE in statuses:
            return ValidationStatus.STALE
        return ValidationStatus.VALID

    @property
    def ok(self) -> bool:
        return not self.issues

    def add(self, code: str, message: str, *, status: ValidationStatus = ValidationStatus.INCOMPLETE) -> None:
        self.issues.append(RuleIssue(code=code, message=message, status=status))


def validate(
    rule: BankRule,
    *,
    now: date | datetime | None = None,
    freshness_days: int = FRESHNESS_DAYS,
) -> ValidationStatus:
    """Return the validation status of ``rule`` relative to ``now``."""

    return inspect_rule(rule, now=now, freshness_days=freshness_days).status


def inspect_rule(
    rule: BankRule,
    *,
    now: date | datetime | None = None,
    freshness_days: int = FRESHNESS_DAYS,
) -> RuleValidationReport:
    """Run every rule check and collect the findings."""

    report = RuleValidationReport(bank_id=rule.bank_id)
    _check_required_columns(rule, report)
    _check_structure(rule, report)
    _check_freshness(rule, report, _as_date(now), freshness_days)
    return report


def missing_mandatory_fields(rule: BankRule) -> list[str]:
    """Mandatory canonical fields not declared as required columns, in canonical order."""

    required = set(rule.required_fields)
    return [name for name in MANDATORY_FIELDS if name not in required]


def _check_required_columns(rule: BankRule, report: RuleValidationReport) -> None:
    missing = missing_mandatory_fields(rule)
    if missing:
        report.add(
            "missing_required_field",
            f"Rule '{rule.bank_id}' does not declare required column(s): {', '.join(missing)}.",
        )


def _check_structure(rule: BankRule, report: RuleValidationReport) -> None:
    structure = rule.structure
    if structure.type is StructureType.MULTI_SECTION and not structure.section_pattern:
        report.add(
            "missing_structure_parameter",
            f"Rule '{rule.bank_id}' is multi-section but has no section_pattern.",
        )
    elif structure.type is StructureType.SECTIONED_BY_ACCOUNT:
        has_account_column = CanonicalField.ACCOUNT_NO.value in rule.required_fields
        if not structure.account_pattern and not has_account_column:
            report.add(
                "missing_structure_parameter",
                f"Rule '{rule.bank_id}' is sectioned-by-account but has neither an "
                "account_pattern nor a required account_no column.",
            )


def _check_freshness(
    rule: BankRule,
    report: RuleValidationReport,
    today: date,
    freshness_days: int,
) -> None:
    age = (today - rule.last_updated).days
    if age > freshness_days:
        report.add(
            "stale_rule",
            f"Rule '{rule.bank_id}' was last reviewed {rule.last_updated.isoformat()} "
            f"({age} days ago, limit {freshness_days}).",
            status=ValidationStatus.STALE,
        )


def _as_date(now: date | datetime | None) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now
