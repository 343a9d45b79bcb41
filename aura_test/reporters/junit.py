"""JUnit XML reporter."""

from dataclasses import dataclass

from aura_test.models.result import ResultModel
from aura_test.reporters.base import Reporter


@dataclass(kw_only=True)
class JUnitReporter(Reporter):
    """Print the run as a JUnit XML document."""

    def on_start(self, model: ResultModel) -> None:
        """Nothing to print before the document."""

    def on_finished(self, model: ResultModel) -> None:
        """Print the JUnit document."""
        self.write(model.generate_junit().rstrip("\n"))
