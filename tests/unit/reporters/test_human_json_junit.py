"""Tests for the human, JSON and JUnit reporters."""

import xml.etree.ElementTree as ET

from rich.console import Console

from aura_test.models.result import ResultModel
from aura_test.reporters.base import TableColumn
from aura_test.reporters.human import HumanReporter
from aura_test.reporters.json_reporter import JsonReporter
from aura_test.reporters.junit import JUnitReporter
from aura_test.testing.factories import (
    START_TIME,
    RunSummaryFactory,
    TestCaseResultFactory,
)


def build_model(*, failing: bool = False) -> ResultModel:
    """Create a model with a passing and optionally a failing test."""
    tests = [TestCaseResultFactory.build(name="c.spec.passes")]
    if failing:
        tests.append(
            TestCaseResultFactory.build(
                name="c.spec.fails", status="fail", message="Expected 1 to be 2."
            )
        )
    return ResultModel(
        run_id="run-1",
        start_time=START_TIME,
        origin="force.lightning",
        tests=tuple(tests),
        summary=RunSummaryFactory.build(failing=int(failing)),
        config={"orgId": "00D000000000001", "username": "me@org"},
    )


class TestHumanReporter:
    """Tests for HumanReporter."""

    def test_prints_results_and_summary(self, console: Console) -> None:
        """Prints a row per test and the run summary."""
        model = build_model(failing=True)
        reporter = HumanReporter(console=console)

        reporter.on_start(model)
        reporter.on_finished(model)

        output = console.export_text()
        assert "=== Test Results" in output
        assert "c.spec.passes" in output
        assert "c.spec.fails" in output
        assert "Expected 1 to be 2." in output
        assert "=== Test Summary" in output
        assert "Fail Rate" in output
        assert "00D000000000001" in output

    def test_reports_empty_run(self, console: Console) -> None:
        """Says so when no tests ran."""
        model = ResultModel(
            run_id="run-1",
            start_time=START_TIME,
            origin="force.lightning",
            tests=(),
            summary=RunSummaryFactory.build(),
        )

        HumanReporter(console=console).on_start(model)

        assert console.export_text() == "No tests found.\n"

    def test_log_prints_text_verbatim(self, console: Console) -> None:
        """Does not interpret markup in status lines."""
        HumanReporter(console=console).log("Invoking [bold]tests[/bold]...")

        assert console.export_text() == "Invoking [bold]tests[/bold]...\n"

    def test_log_table(self, console: Console) -> None:
        """Renders rows under the given column labels."""
        HumanReporter(console=console).log_table(
            "Test Reports",
            [{"format": "JUnit", "file": "out/lightning-test-result-junit.xml"}],
            [TableColumn(key="format", label="Format"), TableColumn("file", "File")],
        )

        output = console.export_text()
        assert "Test Reports" in output
        assert "Format" in output
        assert "out/lightning-test-result-junit.xml" in output


class TestJsonReporter:
    """Tests for JsonReporter."""

    def test_keeps_json_result_without_printing(self, console: Console) -> None:
        """Stores the model's JSON form and prints nothing."""
        model = build_model(failing=True)
        reporter = JsonReporter(console=console)

        reporter.on_start(model)
        reporter.on_finished(model)

        assert reporter.result == model.to_json()
        assert console.export_text() == ""


class TestJUnitReporter:
    """Tests for JUnitReporter."""

    def test_prints_junit_document(self, console: Console) -> None:
        """Prints the model's JUnit XML on finish."""
        model = build_model(failing=True)
        reporter = JUnitReporter(console=console)

        reporter.on_start(model)
        reporter.on_finished(model)

        output = console.export_text()
        assert output.strip() == model.generate_junit().strip()
        suite = ET.fromstring(output).find("testsuite")
        assert suite is not None
        assert suite.get("failures") == "1"
