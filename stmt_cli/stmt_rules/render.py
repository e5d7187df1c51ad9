"""Output rendering helpers for stmt-rules."""

from __future__ import annotations

import csv
import json
import sys
from typing import IO, Any, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from .types import TRANSACTION_COLUMNS, RuleSummary, TransactionRow

_STATUS_STYLES = {"valid": "green", "incomplete": "red", "stale": "yellow"}


def render_rule_summaries(
    summaries: Sequence[RuleSummary],
    *,
    output_format: str,
    stream: IO[str] | None = None,
) -> None:
    """Render the rule listing as a table or JSON."""
    output_stream = stream or sys.stdout
    fmt = (output_format or "table").lower()

    if fmt == "json":
        payload = {"rules": [summary.to_dict() for summary in summaries]}
        write_json(payload, stream=output_stream)
        return
    if fmt != "table":  # pragma: no cover - Click validation should prevent this
        raise ValueError(f"Unsupported output format '{output_format}'.")

    if not summaries:
        print("No bank rules registered.", file=output_stream)
        return

    console = Console(file=output_stream, highlight=False, force_terminal=False)
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Bank ID", style="bold")
    table.add_column("Bank")
    table.add_column("Columns", justify="right")
    table.add_column("Structure")
    table.add_column("Status")
    table.add_column("Version", justify="right")
    table.add_column("Last reviewed")
    for summary in summaries:
        status = summary.validation_status.value
        table.add_row(
            summary.bank_id,
            summary.bank_name,
            str(summary.column_count),
            summary.structure_type,
            f"[{_STATUS_STYLES.get(status, 'white')}]{status}[/]",
            str(summary.version),
            summary.last_updated.isoformat(),
        )
    console.print(table)


def write_transactions_csv(rows: Sequence[TransactionRow], stream: IO[str]) -> None:
    writer = csv.DictWriter(stream, fieldnames=list(TRANSACTION_COLUMNS))
    writer.writeheader()
    for row in rows:
        record = row.as_dict()
        writer.writerow({key: "" if record[key] is None else record[key] for key in TRANSACTION_COLUMNS})


def write_json(payload: Any, *, stream: IO[str]) -> None:
    json.dump(payload, stream, ensure_ascii=False, indent=2)
    stream.write("\n")
