"""Pydantic models for the results payload rendered into the test app page."""

from collections.abc import Sequence

from pydantic import Field

from aura_test.models.base import Model


class PageTest(Model):
    """A single test as reported by the in-page test framework."""

    __test__ = False

    full_name: str = Field(..., alias="FullName")
    namespace_prefix: str | None = Field(default=None, alias="NamespacePrefix")
    outcome: str = Field(..., alias="Outcome")
    run_time: float | None = Field(default=None, alias="RunTime")
    message: str | None = Field(default=None, alias="Message")
    stack_trace: str | None = Field(default=None, alias="StackTrace")


class PageResults(Model):
    """Results document read from the page's results container."""

    tests: Sequence[PageTest] = Field(default_factory=list)
