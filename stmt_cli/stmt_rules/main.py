"""stmt-rules CLI entrypoint."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import click

from stmt_cli.shared.cli import CLIContext, common_cli_options, handle_cli_errors, pass_cli_context

from .inputs import load_extraction
from .pipeline import process_statement
from .registry import REGISTRY
from .render import render_rule_summaries, write_json, write_transactions_csv
from .report import StatementReport, render_markdown
from .validator import inspect_rule


def _parse_as_of(ctx: click.Context, param: click.Parameter, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter("expected YYYY-MM-DD") from exc


as_of_option = click.option(
    "--as-of",
    "as_of",
    callback=_parse_as_of,
    help="Evaluate rule freshness as of this date (YYYY-MM-DD) instead of today.",
)


@click.group(help="Inspect bank statement rules and normalise extracted statements.")
@common_cli_options
@handle_cli_errors
def cli(cli_ctx: CLIContext) -> None:
    """Primary Click group for stmt-rules commands."""
    cli_ctx.logger.debug(f"{len(REGISTRY)} bank rules loaded.")


@cli.command("list")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
)
@as_of_option
@handle_cli_errors
@pass_cli_context
def list_command(cli_ctx: CLIContext, output_format: str, as_of: date | None) -> None:
    """List every registered bank rule with its current validation status."""

    summaries = REGISTRY.list_rules(
        now=as_of,
        freshness_days=cli_ctx.config.validation.freshness_days,
    )
    render_rule_summaries(summaries, output_format=output_format)
    cli_ctx.logger.debug(f"{len(summaries)} rules listed")


@cli.command("show")
@click.argument("bank_id")
@as_of_option
@handle_cli_errors
@pass_cli_context
def show_command(cli_ctx: CLIContext, bank_id: str, as_of: date | None) -> None:
    """Print one rule definition plus its validation status as JSON."""

    rule = REGISTRY.get_rule_by_id(bank_id)
    validation = inspect_rule(
        rule,
        now=as_of,
        freshness_days=cli_ctx.config.validation.freshness_days,
    )
    payload = rule.to_dict()
    payload["validation_status"] = validation.status.value
    payload["validation_issues"] = [
        {"code": issue.code, "message": issue.message} for issue in validation.issues
    ]
    write_json(payload, stream=sys.stdout)


@cli.command("normalize")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--bank", "bank_id", type=str, help="Declared bank id or bank name (skips header detection).")
@click.option(
    "--strict/--lenient",
    default=None,
    help="Fail when required columns are unmatched (default from config: lenient).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["csv", "json", "markdown"], case_sensitive=False),
    default="csv",
    show_default=True,
)
@click.option("--output", "output_path", type=click.Path(dir_okay=False, path_type=Path), help="Write output to a file.")
@click.option(
    "--diagnostics",
    "diagnostics_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the full diagnostics report as JSON to this path.",
)
@click.option(
    "--highlight-threshold",
    type=click.IntRange(min=0),
    help="Mark rows whose deposit or withdrawal reaches this amount.",
)
@as_of_option
@handle_cli_errors
@pass_cli_context
def normalize_command(
    cli_ctx: CLIContext,
    input_path: Path,
    bank_id: str | None,
    strict: bool | None,
    output_format: str,
    output_path: Path | None,
    diagnostics_path: Path | None,
    highlight_threshold: int | None,
    as_of: date | None,
) -> None:
    """Normalise an extraction payload (JSON or CSV) into canonical transactions."""

    config = cli_ctx.config.with_overrides(strict=strict, highlight_threshold=highlight_threshold)
    extracted = load_extraction(input_path)
    declared = bank_id or extracted.bank_id

    report = process_statement(
        extracted.headers,
        extracted.rows,
        bank_id=declared,
        now=as_of,
        freshness_days=config.validation.freshness_days,
        reset_balance_per_section=config.normalization.reset_balance_per_section,
    )
    _log_report(cli_ctx, report)

    if config.normalization.strict:
        report.ensure_complete()

    threshold = config.report.highlight_threshold
    fmt = output_format.lower()
    if diagnostics_path is not None:
        diagnostics_path.parent.mkdir(parents=True, exist_ok=True)
        with diagnostics_path.open("w", encoding="utf-8") as handle:
            write_json(report.to_dict(highlight_threshold=threshold), stream=handle)
        cli_ctx.logger.info(f"Diagnostics written to {diagnostics_path}.")

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8", newline="") as handle:
            _write_report(report, fmt, threshold, handle)
        cli_ctx.logger.success(f"Normalised {len(report.rows)} rows; output written to {output_path}.")
    else:
        _write_report(report, fmt, threshold, sys.stdout)


def _write_report(report: StatementReport, fmt: str, threshold: int, stream) -> None:
    if fmt == "json":
        write_json(report.to_dict(highlight_threshold=threshold), stream=stream)
    elif fmt == "markdown":
        stream.write(render_markdown(report, highlight_threshold=threshold))
    else:
        write_transactions_csv(report.rows, stream)


def _log_report(cli_ctx: CLIContext, report: StatementReport) -> None:
    logger = cli_ctx.logger
    rule = report.rule
    logger.info(
        f"Rule: {rule.bank_name} ({rule.bank_id} v{rule.version}, {report.resolution}) | "
        f"Status: {report.validation_status.value} | Rows: {len(report.rows)}"
    )
    for note in report.notes:
        logger.warning(note)
    logger.findings("Rule issues", (issue.message for issue in report.rule_validation.issues))

    normalization = report.normalization
    if normalization.unmatched_required:
        logger.warning("Unmatched required columns: " + ", ".join(sorted(normalization.unmatched_required)))
    if normalization.unmapped_raw_columns:
        logger.debug("Unmapped raw columns: " + ", ".join(sorted(normalization.unmapped_raw_columns)))
    logger.findings(
        "Cell parse warnings",
        (
            f"row {warning.row_index} {warning.field}: {warning.raw_value!r} ({warning.message})"
            for warning in normalization.parse_warnings
        ),
    )
    logger.findings(
        "Balance discontinuities",
        (
            f"row {finding.row_index}: expected {finding.expected_balance:,}, got {finding.actual_balance:,}"
            for finding in report.continuity_findings
        ),
    )
    logger.findings(
        "Deposit/withdrawal anomalies",
        (f"row {finding.row_index}: {finding.code}" for finding in report.amount_findings),
    )


def main() -> None:
    """Entry point for console_scripts."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
