from __future__ import annotations

from stmt_cli.shared.logging import get_logger


def test_logger_info_routes_to_stderr(capfd) -> None:
    logger = get_logger()

    logger.info("structured log to stderr")

    captured = capfd.readouterr()
    assert "structured log to stderr" in captured.err
    assert "structured log to stderr" not in captured.out


def test_debug_only_when_verbose(capfd) -> None:
    get_logger().debug("hidden detail")
    get_logger(verbose=True).debug("visible detail")

    captured = capfd.readouterr()
    assert "hidden detail" not in captured.err
    assert "visible detail" in captured.err


def test_findings_are_truncated_unless_verbose(capfd) -> None:
    logger = get_logger()
    logger.max_findings = 2

    count = logger.findings("Balance discontinuities", [f"row {index}" for index in range(5)])

    captured = capfd.readouterr()
    assert count == 5
    assert "Balance discontinuities (5)" in captured.err
    assert "row 1" in captured.err
    assert "row 2" not in captured.err
    assert "3 more" in captured.err


def test_findings_without_items_prints_nothing(capfd) -> None:
    assert get_logger().findings("Rule issues", []) == 0
    assert capfd.readouterr().err == ""
