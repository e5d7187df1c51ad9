"""Project-wide custom exceptions."""

from __future__ import annotations


class StmtRulesError(Exception):
    """Base exception for the statement rules toolkit."""


class ConfigurationError(StmtRulesError):
    """Raised when configuration loading or validation fails."""


class RuleDefinitionError(StmtRulesError):
    """Raised when a bank rule definition cannot be parsed or breaks an invariant."""


class RuleNotFoundError(StmtRulesError, LookupError):
    """Raised when no rule is registered for the requested bank identifier."""

    def __init__(self, bank_id: str) -> None:
        super().__init__(f"Bank rule not found: {bank_id}")
        self.bank_id = bank_id


class ColumnMatchError(StmtRulesError):
    """Raised by strict callers when required canonical columns were not matched."""

    def __init__(self, bank_id: str, missing: frozenset[str] | set[str]) -> None:
        fields = ", ".join(sorted(missing))
        super().__init__(f"Required columns not matched for rule '{bank_id}': {fields}")
        self.bank_id = bank_id
        self.missing = frozenset(missing)
