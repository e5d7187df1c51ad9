"""Bank identification helpers used when the caller does not declare a bank."""

from __future__ import annotations

from collections.abc import Iterable

from .registry import GENERIC_BANK_ID, RuleRegistry
from .types import BankRule
from .utils import normalize_token

MIN_KEYWORD_SCORE = 4


def find_rule_by_name(name: str, registry: RuleRegistry) -> BankRule | None:
    """Match a bank name or one of its aliases, ignoring case and whitespace."""

    wanted = normalize_token(name)
    if not wanted:
        return None
    for rule in registry:
        names = (rule.bank_name, *rule.aliases)
        if any(normalize_token(candidate) == wanted for candidate in names):
            return rule
    return None


def detect_rule(
    raw_headers: Iterable[str],
    registry: RuleRegistry,
    *,
    min_score: int = MIN_KEYWORD_SCORE,
) -> BankRule | None:
    """Pick the rule whose header keywords best cover ``raw_headers``.

    A keyword counts when its normalised form equals one of the normalised
    headers. The highest score at or above ``min_score`` wins; ties keep the
    rule registered first. The generic rule is never returned here.
    """

    headers = {normalize_token(header) for header in raw_headers}
    headers.discard("")
    best: BankRule | None = None
    best_score = 0
    for rule in registry:
        if rule.bank_id == GENERIC_BANK_ID or not rule.header_keywords:
            continue
        score = sum(1 for keyword in rule.header_keywords if normalize_token(keyword) in headers)
        if score >= min_score and score > best_score:
            best, best_score = rule, score
    return best
