"""Bank rule registry, rule validation, column normalisation and balance checks."""

from __future__ import annotations

from .consistency import check_amount_sides, check_continuity
from .matcher import match_columns, normalize
from .pipeline import process_statement
from .registry import REGISTRY, RuleRegistry, get_rule_by_id, list_rules
from .report import StatementReport
from .validator import inspect_rule, validate

__all__ = [
    "REGISTRY",
    "RuleRegistry",
    "StatementReport",
    "check_amount_sides",
    "check_continuity",
    "get_rule_by_id",
    "inspect_rule",
    "list_rules",
    "match_columns",
    "normalize",
    "process_statement",
    "validate",
]
