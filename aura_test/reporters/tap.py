"""TAP (Test Anything Protocol) reporter."""

from dataclasses import dataclass

from aura_test.models.result import ResultModel, TestCaseResult
from aura_test.reporters.base import Reporter


@dataclass(kw_only=True)
class TapReporter(Reporter):
    """Print one TAP line per test after a plan line."""

    def on_start(self, model: ResultModel) -> None:
        """Print the plan line, skipped when no tests ran."""
        if model.tests:
            self.write(f"1..{len(model.tests)}")

    def on_finished(self, model: ResultModel) -> None:
        """Print a result line for each test in run order."""
        for number, test in enumerate(model.tests, start=1):
            self.write(self.format_result(number, test))

    def format_result(self, number: int, test: TestCaseResult) -> str:
        """Format a TAP result line followed by diagnostics for failures."""
        description = tap_description(test.name)
        match test.status:
            case "pass":
                return f"ok {number} - {description}"
            case "skip":
                return f"ok {number} - {description} # SKIP"
            case "fail":
                lines = [f"not ok {number} - {description}"]
                for detail in (test.message, test.stack_trace):
                    if detail:
                        lines.extend(f"# {line}" for line in detail.splitlines())
                return "\n".join(lines)


def tap_description(name: str) -> str:
    """Escape a test name for use as a TAP description.

    ``#`` would start a directive and a line break would end the result line.
    """
    flat = " ".join(name.splitlines())
    return flat.replace("\\", "\\\\").replace("#", "\\#")
