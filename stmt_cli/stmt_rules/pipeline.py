"""End-to-end processing of one extracted statement.

Resolves the rule (declared bank id or bank name, header detection, then
the generic rule), normalises the rows and runs both consistency checks.
Every stage runs to completion; problems are reported on the returned
:class:`StatementReport` rather than raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

from stmt_cli.shared.exceptions import RuleNotFoundError

from .consistency import check_amount_sides, check_continuity
from .detection import detect_rule, find_rule_by_name
from .matcher import normalize
from .registry import GENERIC_BANK_ID, REGISTRY, RuleRegistry
from .report import StatementReport
from .types import BankRule
from .validator import FRESHNESS_DAYS, inspect_rule

_LOGGER = logging.getLogger(__name__)


def process_statement(
    raw_headers: Sequence[str],
    raw_rows: Sequence[Mapping[str, Any]],
    *,
    bank_id: str | None = None,
    registry: RuleRegistry = REGISTRY,
    now: date | datetime | None = None,
    freshness_days: int = FRESHNESS_DAYS,
    reset_balance_per_section: bool = True,
) -> StatementReport:
    """Normalise and check one statement, returning the full diagnostics."""

    rule, resolution, notes = resolve_rule(raw_headers, bank_id=bank_id, registry=registry)
    rule_validation = inspect_rule(rule, now=now, freshness_days=freshness_days)
    if rule_validation.issues:
        _LOGGER.info(
            "Rule %s is %s: %s",
            rule.bank_id,
            rule_validation.status.value,
            "; ".join(issue.message for issue in rule_validation.issues),
        )

    normalization = normalize(raw_headers, raw_rows, rule)
    segments = normalization.segments if reset_balance_per_section else None
    continuity = check_continuity(normalization.rows, segments=segments)
    sides = check_amount_sides(normalization.rows)

    _LOGGER.debug(
        "Processed %d rows with rule %s (%d parse warnings, %d balance findings)",
        len(normalization.rows),
        rule.bank_id,
        len(normalization.parse_warnings),
        len(continuity),
    )
    return StatementReport(
        rule=rule,
        resolution=resolution,
        rule_validation=rule_validation,
        normalization=normalization,
        continuity_findings=continuity,
        amount_findings=sides,
        requested_bank_id=bank_id,
        notes=notes,
    )


def resolve_rule(
    raw_headers: Sequence[str],
    *,
    bank_id: str | None = None,
    registry: RuleRegistry = REGISTRY,
) -> tuple[BankRule, str, list[str]]:
    """Return ``(rule, resolution, notes)`` for the statement."""

    notes: list[str] = []
    if bank_id:
        rule = registry.get(bank_id) or find_rule_by_name(bank_id, registry)
        if rule is not None:
            return rule, "declared", notes
        _LOGGER.warning("Unknown bank id %r; falling back to header detection", bank_id)
        notes.append(f"Bank rule not found for '{bank_id}'.")

    detected = detect_rule(raw_headers, registry)
    if detected is not None:
        return detected, "detected", notes

    generic = registry.get(GENERIC_BANK_ID)
    if generic is None:
        raise RuleNotFoundError(GENERIC_BANK_ID)
    notes.append("No bank rule matched the headers; using the generic column table.")
    return generic, "fallback", notes
