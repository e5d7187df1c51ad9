"""Process-wide catalog of bank rules.

Bundled YAML definitions are read once when this module is imported and
exposed through the read-only :data:`REGISTRY`. Rules change by redeploying
the definitions, never at runtime, so there is no reload API.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date, datetime
from importlib import resources
from types import MappingProxyType

from stmt_cli.shared.exceptions import RuleDefinitionError, RuleNotFoundError

from .definitions import parse_rule_text
from .types import BankRule, RuleSummary
from .validator import FRESHNESS_DAYS, validate

_LOGGER = logging.getLogger(__name__)

BUNDLED_RULES_PACKAGE = "stmt_cli.stmt_rules.bundled_rules"
GENERIC_BANK_ID = "generic"


class RuleRegistry:
    """Immutable bank-id keyed collection of rules, in declaration order."""

    __slots__ = ("_rules",)

    def __init__(self, rules: Iterable[BankRule]) -> None:
        by_id: dict[str, BankRule] = {}
        for rule in rules:
            if rule.bank_id in by_id:
                raise RuleDefinitionError(f"Duplicate bank_id '{rule.bank_id}' in rule set")
            by_id[rule.bank_id] = rule
        self._rules = MappingProxyType(by_id)

    def __contains__(self, bank_id: object) -> bool:
        return bank_id in self._rules

    def __iter__(self) -> Iterator[BankRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def ids(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def get(self, bank_id: str) -> BankRule | None:
        """Exact-match lookup; ``None`` when the bank is unknown."""
        return self._rules.get(bank_id)

    def get_rule_by_id(self, bank_id: str) -> BankRule:
        """Exact-match lookup raising :class:`RuleNotFoundError` for unknown banks."""
        rule = self._rules.get(bank_id)
        if rule is None:
            raise RuleNotFoundError(bank_id)
        return rule

    def list_rules(
        self,
        *,
        now: date | datetime | None = None,
        freshness_days: int = FRESHNESS_DAYS,
    ) -> tuple[RuleSummary, ...]:
        """Summaries of every rule with a freshly computed validation status."""
        return tuple(
            RuleSummary(
                bank_id=rule.bank_id,
                bank_name=rule.bank_name,
                column_count=rule.column_count,
                structure_type=rule.structure.type.value,
                validation_status=validate(rule, now=now, freshness_days=freshness_days),
                version=rule.version,
                last_updated=rule.last_updated,
            )
            for rule in self
        )


def load_bundled_rules(package: str = BUNDLED_RULES_PACKAGE) -> list[BankRule]:
    """Parse every YAML definition shipped in ``package``, sorted by file name."""

    traversable = resources.files(package)
    rules: list[BankRule] = []
    for resource in sorted(traversable.iterdir(), key=lambda item: item.name):
        if not resource.name.lower().endswith((".yaml", ".yml")):
            continue
        rule = parse_rule_text(resource.read_text(encoding="utf-8"), source=f"bundled::{resource.name}")
        _LOGGER.debug("Loaded bundled rule %s v%s from %s", rule.bank_id, rule.version, resource.name)
        rules.append(rule)
    return rules


REGISTRY = RuleRegistry(load_bundled_rules())


def list_rules(
    *,
    now: date | datetime | None = None,
    freshness_days: int = FRESHNESS_DAYS,
) -> tuple[RuleSummary, ...]:
    return REGISTRY.list_rules(now=now, freshness_days=freshness_days)


def get_rule_by_id(bank_id: str) -> BankRule:
    return REGISTRY.get_rule_by_id(bank_id)
