"""Tests for the TAP reporter."""

from rich.console import Console

from aura_test.models.result import ResultModel
from aura_test.reporters.tap import TapReporter
from aura_test.testing.factories import (
    START_TIME,
    RunSummaryFactory,
    TestCaseResultFactory,
)


def model_with(*statuses: str) -> ResultModel:
    """Create a model with one test per status."""
    tests = tuple(
        TestCaseResultFactory.build(
            name=f"c.spec.test{index}",
            status=status,
            message="Expected true to be false." if status == "fail" else None,
        )
        for index, status in enumerate(statuses, start=1)
    )
    return ResultModel(
        run_id="run-1",
        start_time=START_TIME,
        origin="force.lightning",
        tests=tests,
        summary=RunSummaryFactory.build(failing=statuses.count("fail")),
    )


def test_plan_line_sized_to_test_count(console: Console) -> None:
    """Prints a plan line for the number of tests on start."""
    TapReporter(console=console).on_start(model_with("pass", "fail"))

    assert console.export_text() == "1..2\n"


def test_no_plan_line_without_tests(console: Console) -> None:
    """Skips the plan line when no tests ran."""
    TapReporter(console=console).on_start(model_with())

    assert console.export_text() == ""


def test_result_lines_in_order(console: Console) -> None:
    """Prints one result line per test, marking failures not ok."""
    model = model_with("pass", "fail", "skip")
    reporter = TapReporter(console=console)

    reporter.on_start(model)
    reporter.on_finished(model)

    assert console.export_text().splitlines() == [
        "1..3",
        "ok 1 - c.spec.test1",
        "not ok 2 - c.spec.test2",
        "# Expected true to be false.",
        "ok 3 - c.spec.test3 # SKIP",
    ]


def test_failure_diagnostics_include_stack(console: Console) -> None:
    """Adds message and stack trace lines as TAP diagnostics."""
    test = TestCaseResultFactory.build(
        name="c.spec.fails",
        status="fail",
        message="boom",
        stack_trace="Error: boom\n    at spec.js:3",
    )

    line = TapReporter(console=console).format_result(7, test)

    assert line.splitlines() == [
        "not ok 7 - c.spec.fails",
        "# boom",
        "# Error: boom",
        "#     at spec.js:3",
    ]


def test_escapes_directive_marks_in_names(console: Console) -> None:
    """Keeps a name with ``#`` or line breaks on one plain result line."""
    test = TestCaseResultFactory.build(
        name="c.spec handles #hash\nacross lines", status="skip"
    )

    line = TapReporter(console=console).format_result(1, test)

    assert line == "ok 1 - c.spec handles \\#hash across lines # SKIP"
