"""Models for test run results and their JSON and JUnit renderings."""

import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from aura_test.models.page import PageTest

TestStatus = Literal["pass", "fail", "skip"]

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

ANSI_ESCAPE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
XML_ILLEGAL = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")

OUTCOME_TO_STATUS: Mapping[str, TestStatus] = {
    "pass": "pass",
    "passed": "pass",
    "fail": "fail",
    "failed": "fail",
    "skip": "skip",
    "skipped": "skip",
    "pending": "skip",
}

STATUS_TO_OUTCOME: Mapping[TestStatus, str] = {
    "pass": "Pass",
    "fail": "Fail",
    "skip": "Skip",
}


@dataclass(frozen=True, kw_only=True)
class TestCaseResult:
    """Outcome of one test executed by the in-page framework."""

    __test__ = False

    name: str
    namespace: str
    status: TestStatus
    message: str | None = None
    stack_trace: str | None = None
    duration: float | None = None

    @classmethod
    def from_page(cls, test: PageTest) -> "TestCaseResult":
        """Build a result from a raw page test, treating unknown outcomes as failures."""
        return cls(
            name=test.full_name,
            namespace=test.namespace_prefix or "",
            status=OUTCOME_TO_STATUS.get(test.outcome.lower(), "fail"),
            message=test.message,
            stack_trace=test.stack_trace,
            duration=test.run_time,
        )


@dataclass(frozen=True, kw_only=True)
class RunSummary:
    """Aggregate timing and failure count of a run.

    Times are in milliseconds.
    """

    start_time: datetime
    test_time: float = 0
    test_execution_time: float = 0
    failing: int = 0
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class ResultModel:
    """Format-agnostic results of one test run."""

    run_id: str
    start_time: datetime
    origin: str
    tests: Sequence[TestCaseResult]
    summary: RunSummary
    config: Mapping[str, str] = field(default_factory=dict)

    @property
    def passing(self) -> int:
        """Number of passed tests."""
        return sum(1 for test in self.tests if test.status == "pass")

    @property
    def skipped(self) -> int:
        """Number of skipped tests."""
        return sum(1 for test in self.tests if test.status == "skip")

    def classname(self, test: TestCaseResult) -> str:
        """Grouping label used as the JUnit classname."""
        return test.namespace or self.origin

    def to_json(self) -> dict[str, Any]:
        """Return the whole run as plain, order-preserving data."""
        tests_ran = len(self.tests)
        summary: dict[str, Any] = {
            "outcome": "Failed" if self.summary.failing else "Passed",
            "testsRan": tests_ran,
            "passing": self.passing,
            "failing": self.summary.failing,
            "skipped": self.skipped,
            "passRate": _rate(self.passing, tests_ran),
            "failRate": _rate(self.summary.failing, tests_ran),
            "testStartTime": self.start_time.isoformat(),
            "testExecutionTime": self.summary.test_execution_time,
            "testTotalTime": self.summary.test_time,
            "testRunId": self.run_id,
            "origin": self.origin,
        }
        summary.update(self.summary.metadata)
        summary.update(self.config)

        return {
            "summary": summary,
            "tests": [
                {
                    "fullName": test.name,
                    "namespace": test.namespace,
                    "outcome": STATUS_TO_OUTCOME[test.status],
                    "runTime": test.duration,
                    "message": test.message,
                    "stackTrace": test.stack_trace,
                }
                for test in self.tests
            ],
        }

    def generate_junit(self) -> str:
        """Render the run as a JUnit XML document."""
        root = ET.Element("testsuites")
        suite = ET.SubElement(
            root,
            "testsuite",
            {
                "name": xml_text(self.origin),
                "timestamp": self.start_time.isoformat(),
                "tests": str(len(self.tests)),
                "failures": str(self.summary.failing),
                "errors": "0",
                "skipped": str(self.skipped),
                "time": _seconds(self.summary.test_execution_time),
            },
        )

        properties = ET.SubElement(suite, "properties")
        for name, value in (
            ("testRunId", self.run_id),
            *self.summary.metadata.items(),
            *self.config.items(),
        ):
            ET.SubElement(
                properties, "property", {"name": name, "value": xml_text(value)}
            )

        for test in self.tests:
            case = ET.SubElement(
                suite,
                "testcase",
                {
                    "name": xml_text(test.name),
                    "classname": xml_text(self.classname(test)),
                    "time": _seconds(test.duration),
                },
            )
            if test.status == "fail":
                message = xml_text(test.message or "Test failed")
                failure = ET.SubElement(case, "failure", {"message": message})
                failure.text = xml_text(test.stack_trace or test.message)
            elif test.status == "skip":
                ET.SubElement(case, "skipped")

        ET.indent(root, space="    ")
        return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"


def xml_text(value: object) -> str:
    """Text safe for XML 1.0, without terminal escape sequences."""
    text = "" if value is None else str(value)
    return XML_ILLEGAL.sub("", ANSI_ESCAPE.sub("", text))


def _seconds(milliseconds: float | None) -> str:
    return f"{(milliseconds or 0) / 1000:.3f}"


def _rate(count: int, total: int) -> str:
    if not total:
        return "0%"
    return f"{round(count / total * 100)}%"
