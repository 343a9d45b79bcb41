"""Result reporters for every supported output format."""

from aura_test.reporters.base import Reporter, TableColumn
from aura_test.reporters.human import HumanReporter
from aura_test.reporters.json_reporter import JsonReporter
from aura_test.reporters.junit import JUnitReporter
from aura_test.reporters.loading import REPORTERS, load_reporter
from aura_test.reporters.tap import TapReporter

__all__ = [
    "REPORTERS",
    "HumanReporter",
    "JUnitReporter",
    "JsonReporter",
    "Reporter",
    "TableColumn",
    "TapReporter",
    "load_reporter",
]
