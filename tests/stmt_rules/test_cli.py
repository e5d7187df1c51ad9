from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from stmt_cli.stmt_rules.main import cli

AS_OF = ["--as-of", "2026-10-01"]


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _write_payload(path: Path, payload: dict) -> Path:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def _woori_payload(*, with_withdrawal: bool = True) -> dict:
    headers = ["No.", "거래일시", "적요", "기재내용", "맡기신금액", "거래후잔액"]
    if with_withdrawal:
        headers.insert(4, "찾으신금액")
    return {
        "bank_id": "woori",
        "headers": headers,
        "rows": [
            {"No.": "1", "거래일시": "2024.05.01 09:00", "기재내용": "급여", "맡기신금액": "2,500,000", "거래후잔액": "2,500,000"},
            {"No.": "2", "거래일시": "2024.05.02 12:10", "기재내용": "식당", "찾으신금액": "12,000", "거래후잔액": "2,488,000"},
        ],
    }


def test_list_json(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["list", "--format", "json", *AS_OF])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    statuses = {item["bank_id"]: item["validation_status"] for item in payload["rules"]}
    assert statuses["woori"] == "valid"
    assert statuses["shinhan"] == "stale"


def test_list_respects_configured_freshness(runner: CliRunner, tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("validation:\n  freshness_days: 30\n", encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(config_path), "list", "--format", "json", *AS_OF])

    assert result.exit_code == 0, result.output
    statuses = {item["bank_id"]: item["validation_status"] for item in json.loads(result.stdout)["rules"]}
    assert statuses["woori"] == "stale"
    assert statuses["generic"] == "valid"


def test_show_rule(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["show", "kakaobank", *AS_OF])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["bank_name"] == "카카오뱅크"
    assert payload["validation_status"] == "incomplete"
    assert [issue["code"] for issue in payload["validation_issues"]] == ["missing_required_field"]
    assert [column["name"] for column in payload["header"]["columns"]][:2] == ["date", "amount"]


def test_show_unknown_rule(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["show", "nope"])

    assert result.exit_code == 1
    assert "Bank rule not found: nope" in result.output


def test_invalid_as_of_is_rejected(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["list", "--as-of", "yesterday"])

    assert result.exit_code == 2
    assert "expected YYYY-MM-DD" in result.output


def test_normalize_json_to_files(runner: CliRunner, tmp_path: Path) -> None:
    input_path = _write_payload(tmp_path / "woori.json", _woori_payload())
    output_path = tmp_path / "out" / "report.json"
    diagnostics_path = tmp_path / "out" / "diagnostics.json"

    result = runner.invoke(
        cli,
        [
            "normalize",
            str(input_path),
            "--format",
            "json",
            "--output",
            str(output_path),
            "--diagnostics",
            str(diagnostics_path),
            "--highlight-threshold",
            "1000000",
            *AS_OF,
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["bank_id"] == "woori"
    assert payload["resolution"] == "declared"
    assert payload["highlighted_rows"] == [0]
    assert payload["rows"][0]["time"] == "09:00"
    assert payload["consistency_findings"] == []
    assert json.loads(diagnostics_path.read_text(encoding="utf-8")) == payload
    assert "Rule: 우리은행 (woori v3, declared)" in result.stderr


def test_normalize_csv_to_stdout_detects_bank(runner: CliRunner, tmp_path: Path) -> None:
    input_path = tmp_path / "toss.csv"
    input_path.write_text(
        "거래일자,구분,거래금액,거래 후 잔액,거래내용\n"
        "2024-08-01 10:00,입금,50000,50000,이체\n"
        "2024-08-02 11:00,출금,-20000,30000,편의점\n",
        encoding="utf-8",
    )

    result = runner.invoke(cli, ["normalize", str(input_path), *AS_OF])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0].startswith("date,time,transaction_type,description")
    assert lines[1] == "2024-08-01,10:00,입금,이체,,50000,0,50000,,,,"
    assert lines[2] == "2024-08-02,11:00,출금,편의점,,0,20000,30000,,,,"


def test_normalize_strict_fails_on_missing_columns(runner: CliRunner, tmp_path: Path) -> None:
    input_path = _write_payload(tmp_path / "woori.json", _woori_payload(with_withdrawal=False))

    lenient = runner.invoke(cli, ["normalize", str(input_path), "--format", "json", *AS_OF])
    strict = runner.invoke(cli, ["normalize", str(input_path), "--strict", *AS_OF])

    assert lenient.exit_code == 0, lenient.output
    assert "Unmatched required columns: withdrawal" in lenient.stderr
    assert strict.exit_code == 1
    assert "Required columns not matched for rule 'woori': withdrawal" in strict.output


def test_normalize_strict_from_environment(
    runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    input_path = _write_payload(tmp_path / "woori.json", _woori_payload(with_withdrawal=False))
    monkeypatch.setenv("STMTRULES_STRICT", "true")

    result = runner.invoke(cli, ["normalize", str(input_path), *AS_OF])

    assert result.exit_code == 1


def test_normalize_markdown(runner: CliRunner, tmp_path: Path) -> None:
    input_path = _write_payload(tmp_path / "woori.json", _woori_payload())

    result = runner.invoke(cli, ["normalize", str(input_path), "--format", "markdown", *AS_OF])

    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("# Statement diagnostics: 우리은행 (`woori` v3)")


def test_normalize_rejects_bad_payload(runner: CliRunner, tmp_path: Path) -> None:
    input_path = tmp_path / "broken.json"
    input_path.write_text("{oops", encoding="utf-8")

    result = runner.invoke(cli, ["normalize", str(input_path)])

    assert result.exit_code == 1
    assert "Invalid JSON" in result.output
