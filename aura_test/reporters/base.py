"""Abstract base class for result reporters."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from rich.console import Console
from rich.table import Table

from aura_test.models.result import ResultModel


@dataclass(frozen=True)
class TableColumn:
    """Column of a reporter table, reading ``key`` from each row."""

    key: str
    label: str


@dataclass(kw_only=True)
class Reporter(ABC):
    """Consumer of run lifecycle events for one output format.

    A reporter is created once per run. ``on_start`` is called once after the
    results were extracted and ``on_finished`` once after it. Reporters only
    read the result model.
    """

    console: Console = field(repr=False)

    def log(self, message: str) -> None:
        """Print a free-form status line."""
        self.write(message)

    def write(self, text: str) -> None:
        """Print text verbatim, without markup or highlighting."""
        self.console.print(
            text, markup=False, highlight=False, emoji=False, soft_wrap=True
        )

    def log_table(
        self,
        title: str,
        rows: Sequence[Mapping[str, object]],
        columns: Sequence[TableColumn],
    ) -> None:
        """Print rows as a table with the given columns."""
        table = Table(title=title, title_justify="left")
        for column in columns:
            table.add_column(column.label)
        for row in rows:
            table.add_row(*(_cell(row.get(column.key)) for column in columns))
        self.console.print(table)

    @abstractmethod
    def on_start(self, model: ResultModel) -> None:
        """Handle the start of result reporting."""

    @abstractmethod
    def on_finished(self, model: ResultModel) -> None:
        """Handle the end of result reporting."""


def _cell(value: object) -> str:
    return "" if value is None else str(value)
