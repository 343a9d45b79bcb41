"""JSON reporter producing the command's machine-readable result."""

from dataclasses import dataclass, field
from typing import Any

from aura_test.models.result import ResultModel
from aura_test.reporters.base import Reporter


@dataclass(kw_only=True)
class JsonReporter(Reporter):
    """Keep the JSON form of the run for the command to return.

    Nothing is printed here; the command prints the result as its JSON output.
    """

    result: dict[str, Any] | None = field(default=None, init=False)

    def on_start(self, model: ResultModel) -> None:
        """Reset any previous result."""
        self.result = None

    def on_finished(self, model: ResultModel) -> None:
        """Store the JSON form of the run."""
        self.result = model.to_json()
