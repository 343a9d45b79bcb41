"""Human-readable console reporter."""

from dataclasses import dataclass

from aura_test.models.result import STATUS_TO_OUTCOME, ResultModel
from aura_test.reporters.base import Reporter, TableColumn

RESULT_COLUMNS = (
    TableColumn(key="name", label="Test Name"),
    TableColumn(key="outcome", label="Outcome"),
    TableColumn(key="message", label="Message"),
    TableColumn(key="runtime", label="Runtime (ms)"),
)

SUMMARY_COLUMNS = (
    TableColumn(key="name", label="Name"),
    TableColumn(key="value", label="Value"),
)

SUMMARY_LABELS = {
    "outcome": "Outcome",
    "testsRan": "Tests Ran",
    "passing": "Passing",
    "failing": "Failing",
    "skipped": "Skipped",
    "passRate": "Pass Rate",
    "failRate": "Fail Rate",
    "testStartTime": "Test Start Time",
    "testExecutionTime": "Test Execution Time",
    "testTotalTime": "Test Total Time",
    "testRunId": "Test Run Id",
    "orgId": "Org Id",
    "username": "Username",
}


@dataclass(kw_only=True)
class HumanReporter(Reporter):
    """Print a results table, then a summary table."""

    def on_start(self, model: ResultModel) -> None:
        """Print the per-test results."""
        if not model.tests:
            self.log("No tests found.")
            return

        rows = [
            {
                "name": test.name,
                "outcome": STATUS_TO_OUTCOME[test.status],
                "message": test.message,
                "runtime": None if test.duration is None else f"{test.duration:g}",
            }
            for test in model.tests
        ]
        self.log_table("=== Test Results", rows, RESULT_COLUMNS)

    def on_finished(self, model: ResultModel) -> None:
        """Print the run summary."""
        summary = model.to_json()["summary"]
        rows = [
            {"name": label, "value": summary[key]}
            for key, label in SUMMARY_LABELS.items()
            if summary.get(key) not in (None, "")
        ]
        self.log_table("=== Test Summary", rows, SUMMARY_COLUMNS)
