"""Arithmetic checks over normalised transaction sequences.

Both checks are advisory: they never touch the rows they inspect and never
reorder them. Rows must already be in statement order.
"""

from __future__ import annotations

from collections.abc import Sequence

from .types import AmountSideFinding, ConsistencyFinding, TransactionRow


def check_continuity(
    rows: Sequence[TransactionRow],
    *,
    segments: Sequence[int] | None = None,
) -> list[ConsistencyFinding]:
    """Flag rows whose balance is not ``previous balance + deposit - withdrawal``.

    Row 0 has no prior balance and is never flagged. ``segments`` holds one
    segment id per row (see :attr:`NormalizationResult.segments`); when the id
    changes between consecutive rows the later row starts a new running
    balance and is not flagged.
    """

    findings: list[ConsistencyFinding] = []
    for index in range(1, len(rows)):
        previous, current = rows[index - 1], rows[index]
        if segments is not None and segments[index] != segments[index - 1]:
            continue
        expected = previous.balance + current.deposit - current.withdrawal
        if current.balance != expected:
            findings.append(
                ConsistencyFinding(
                    row_index=index,
                    expected_balance=expected,
                    actual_balance=current.balance,
                )
            )
    return findings


def check_amount_sides(rows: Sequence[TransactionRow]) -> list[AmountSideFinding]:
    """Flag rows that do not have exactly one of deposit/withdrawal set."""

    findings: list[AmountSideFinding] = []
    for index, row in enumerate(rows):
        if row.deposit and row.withdrawal:
            code = "both_nonzero"
        elif not row.deposit and not row.withdrawal:
            code = "both_zero"
        else:
            continue
        findings.append(
            AmountSideFinding(row_index=index, deposit=row.deposit, withdrawal=row.withdrawal, code=code)
        )
    return findings
