"""Lookup of reporter classes by result format key."""

from collections.abc import Mapping

from aura_test.errors import ReporterNotFoundError
from aura_test.reporters.base import Reporter
from aura_test.reporters.human import HumanReporter
from aura_test.reporters.json_reporter import JsonReporter
from aura_test.reporters.junit import JUnitReporter
from aura_test.reporters.tap import TapReporter

DEFAULT_REPORTER = "human"

REPORTERS: Mapping[str, type[Reporter]] = {
    "human": HumanReporter,
    "tap": TapReporter,
    "json": JsonReporter,
    "junit": JUnitReporter,
}


def load_reporter(key: str) -> type[Reporter]:
    """Return the reporter class registered for a result format.

    Args:
        key: The result format (exact, case-sensitive match)

    Returns:
        The reporter class

    Raises:
        ReporterNotFoundError: If no reporter is registered for the key

    """
    try:
        return REPORTERS[key]
    except KeyError:
        raise ReporterNotFoundError(
            f"Invalid result format '{key}'. Available formats: {list(REPORTERS)}"
        ) from None
