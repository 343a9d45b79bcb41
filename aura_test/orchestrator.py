"""Test orchestrator running one Lightning test app and reporting its results."""

import asyncio
import json
import logging
import re
import socket
import uuid
from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, TypeAlias

from pydantic import ValidationError
from rich.console import Console
from selenium.common.exceptions import WebDriverException
from yarl import URL

from aura_test.artifacts import prepare_output_directory, write_artifacts
from aura_test.automation.server import (
    SERVER_HOST,
    WEBDRIVER_PATH,
    AutomationServerHandle,
    AutomationServerManager,
)
from aura_test.browser.session import BrowserSession
from aura_test.config_loader import load_config_file
from aura_test.errors import (
    AuraTestError,
    ExtractionError,
    FrontDoorUrlError,
    ResultRetrievalFailedError,
    ResultsNotFoundError,
    ScratchOrgRequiredError,
    SessionError,
    SfdxError,
    TestRunError,
)
from aura_test.models.config import RunConfiguration, ServerConfig
from aura_test.models.page import PageResults
from aura_test.models.result import ResultModel, RunSummary, TestCaseResult
from aura_test.reporters.base import Reporter, TableColumn
from aura_test.reporters.loading import DEFAULT_REPORTER, load_reporter
from aura_test.sfdx import OrgInfo, describe_org, get_front_door_url

log = logging.getLogger(__name__)

ORIGIN = "force.lightning"
DEFAULT_APP_NAME = "jasmineTests"
APP_EXTENSION = ".app"
RESULTS_SELECTOR = "#run_results_full"
DURATION_SELECTOR = ".jasmine-duration"
BROWSER_CAPABILITIES: Mapping[str, Any] = {"browserName": "chrome"}
POLL_INTERVAL = 0.5
DURATION_PATTERN = re.compile(r"[0-9.]+")

ARTIFACT_COLUMNS = (
    TableColumn(key="format", label="Format"),
    TableColumn(key="file", label="File"),
)

SessionFactory: TypeAlias = Callable[..., AbstractAsyncContextManager[BrowserSession]]


class RunState(StrEnum):
    """States of a single test run."""

    CREATED = "created"
    INITIALIZED = "initialized"
    SERVER_STARTING = "server_starting"
    SESSION_OPEN = "session_open"
    POLLING = "polling"
    EXTRACTED = "extracted"
    REPORTED = "reported"
    DONE = "done"
    ERRORED = "errored"


def app_path(appname: str | None) -> str:
    """Relative path of a Lightning test app, e.g. ``/c/jasmineTests.app``."""
    path = f"/c/{DEFAULT_APP_NAME if appname is None else appname}"
    if APP_EXTENSION not in path:
        path += APP_EXTENSION
    return path


def parse_duration_ms(text: str | None) -> float | None:
    """Convert a duration text such as ``finished in 1.2s`` to milliseconds.

    The first number in the text is taken as seconds. Returns None when the
    text holds no usable number.
    """
    if not text:
        return None
    match = DURATION_PATTERN.search(text)
    if match is None:
        return None
    try:
        return float(match.group()) * 1000
    except ValueError:
        return None


def parse_page_results(text: str) -> PageResults | None:
    """Parse the results container content.

    Returns None when the page published an empty (``null``) document.

    Raises:
        ExtractionError: If the content is not a valid results document

    """
    try:
        data = json.loads(text)
    except ValueError as err:
        raise ExtractionError(f"Malformed test results on page: {err}") from err

    if data is None:
        return None

    try:
        return PageResults.model_validate(data)
    except ValidationError as err:
        raise ExtractionError(f"Unexpected test results format: {err}") from err


@dataclass(kw_only=True)
class TestOrchestrator:
    """Runs a Lightning test app in a browser and reports its results.

    Call ``initialize`` once, then ``run_tests`` once. The automation server
    started by ``initialize`` is terminated when ``run_tests`` ends, whatever
    the outcome.
    """

    __test__ = False

    config: RunConfiguration
    console: Console = field(repr=False)
    server_manager: AutomationServerManager = field(
        default_factory=AutomationServerManager
    )
    session_factory: SessionFactory = BrowserSession.open
    poll_interval: float = POLL_INTERVAL

    state: RunState = field(default=RunState.CREATED, init=False)
    reporter: Reporter | None = field(default=None, init=False, repr=False)
    server_config: ServerConfig = field(default_factory=ServerConfig, init=False)
    server_handle: AutomationServerHandle | None = field(default=None, init=False)
    org: OrgInfo | None = field(default=None, init=False)
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()), init=False)
    start_time: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), init=False
    )

    @property
    def json_output(self) -> bool:
        """Whether process output must be machine-readable."""
        return self.config.json_output

    async def initialize(self) -> None:
        """Select the reporter, start the automation server, prepare output.

        Raises:
            ConfigurationError: If the config file or result format is invalid
            SfdxError: If the target org cannot be described
            ScratchOrgRequiredError: If the target org is not a scratch org
            ServerLifecycleError: If the automation server cannot be started
            ArtifactError: If the output directory cannot be created

        """
        try:
            if self.config.configfile is not None:
                self.server_config = await load_config_file(self.config.configfile)

            resultformat = self.config.resultformat or DEFAULT_REPORTER
            reporter_cls = load_reporter(resultformat)

            update: dict[str, Any] = {"resultformat": resultformat}
            if resultformat == "json":
                update["json_output"] = True
            self.config = self.config.model_copy(update=update)
            if self.config.json_output:
                self.console.quiet = True

            self.reporter = reporter_cls(console=self.console)
            await self.check_scratch_org()
            self.state = RunState.INITIALIZED

            self.state = RunState.SERVER_STARTING
            self.server_handle = await self.server_manager.start(self.server_config)

            if self.config.outputdir is not None:
                prepare_output_directory(self.config.outputdir)
        except BaseException:
            self.state = RunState.ERRORED
            self.server_manager.kill(self.server_handle)
            raise

    async def check_scratch_org(self) -> None:
        """Describe the target org and refuse anything but a scratch org."""
        self.org = await describe_org(self.config.targetusername)
        if not self.org.is_scratch:
            raise ScratchOrgRequiredError(
                f"Org {self.org.username or self.org.org_id} is not a scratch org. "
                "Lightning tests only run against scratch orgs."
            )

    async def run_tests(self) -> dict[str, Any]:
        """Run the test app and report its results.

        Returns:
            The JSON form of the results

        Raises:
            TestRunError: If the browser, the org or the page fail
            ResultRetrievalFailedError: If the page yielded no results
            ArtifactError: If result files cannot be written

        """
        reporter = self.reporter
        if reporter is None:
            raise RuntimeError("initialize() must be called before run_tests()")

        target = self.config.targetusername
        reporter.log(
            f"Invoking Lightning tests using {target}..."
            if target
            else "Invoking Lightning tests..."
        )

        try:
            try:
                tests, summary = await self.run_and_extract()
            except AuraTestError:
                raise
            except Exception as err:
                raise TestRunError(str(err)) from err
            finally:
                self.server_manager.kill(self.server_handle)

            if tests is None:
                raise ResultRetrievalFailedError(
                    "Unable to retrieve test results from the page"
                )

            model = await self.build_result_model(tests, summary)
            result = await self.report(reporter, model)
        except BaseException:
            self.state = RunState.ERRORED
            raise

        self.state = RunState.DONE
        return result

    async def run_and_extract(
        self,
    ) -> tuple[tuple[TestCaseResult, ...] | None, RunSummary]:
        """Open the browser, load the test app and read its results."""
        server_url = URL.build(
            scheme="http",
            host=SERVER_HOST,
            port=self.server_config.port,
            path=WEBDRIVER_PATH,
        )

        async with AsyncExitStack() as stack:
            try:
                browser = await stack.enter_async_context(
                    self.session_factory(
                        server_url,
                        BROWSER_CAPABILITIES,
                        keep_open=self.config.leavebrowseropen,
                    )
                )
            except WebDriverException as err:
                raise SessionError(
                    f"Unable to open browser session: {err.msg}"
                ) from err
            self.state = RunState.SESSION_OPEN

            url = await self.resolve_app_url()
            try:
                await browser.navigate(url)
            except WebDriverException as err:
                raise SessionError(f"Unable to load the test app: {err.msg}") from err

            self.state = RunState.POLLING
            text = await self.wait_for_results(browser, self.config.timeout)
            page_results = parse_page_results(text)
            duration = await self.extract_duration(browser)

        self.state = RunState.EXTRACTED
        tests = (
            tuple(TestCaseResult.from_page(test) for test in page_results.tests)
            if page_results is not None
            else None
        )
        summary = RunSummary(
            start_time=self.start_time,
            test_time=duration or 0,
            test_execution_time=duration or 0,
            failing=sum(1 for test in tests or () if test.status == "fail"),
            metadata={"hostname": socket.gethostname()},
        )
        return tests, summary

    async def resolve_app_url(self) -> str:
        """Return the authenticated URL of the configured test app."""
        path = app_path(self.config.appname)
        try:
            return await get_front_door_url(path, self.config.targetusername)
        except SfdxError as err:
            raise FrontDoorUrlError(str(err)) from err

    async def wait_for_results(self, browser: BrowserSession, timeout_ms: int) -> str:
        """Poll the results container until it has text content.

        Browser errors while polling are retried, since the page may re-render
        the container. The timeout bounds the whole loop, including a browser
        command that never returns.

        Raises:
            ResultsNotFoundError: If no content appears within the timeout.
                The last browser error, if any, is its cause.

        """
        last_error: WebDriverException | None = None

        try:
            async with asyncio.timeout(timeout_ms / 1000):
                while True:
                    try:
                        element = await browser.find_element(RESULTS_SELECTOR)
                        text = (
                            await browser.element_property(element, "textContent")
                            if element is not None
                            else None
                        )
                    except WebDriverException as err:
                        log.debug("Polling for results failed: %s", err.msg)
                        last_error = err
                    else:
                        if text:
                            return str(text)
                        log.debug(
                            "Results not on page yet (element found: %s)",
                            element is not None,
                        )

                    await asyncio.sleep(self.poll_interval)
        except TimeoutError as err:
            raise ResultsNotFoundError(
                "Results not found on page or operation timed out."
            ) from (last_error or err)

    async def extract_duration(self, browser: BrowserSession) -> float | None:
        """Read the duration shown on the page in milliseconds, if available."""
        try:
            element = await browser.find_element(DURATION_SELECTOR)
            if element is None:
                return None
            text = await browser.element_text(element)
        except WebDriverException as err:
            log.debug("Unable to read test duration: %s", err.msg)
            return None
        return parse_duration_ms(text)

    async def build_result_model(
        self, tests: tuple[TestCaseResult, ...], summary: RunSummary
    ) -> ResultModel:
        """Build the result model, adding the org identity."""
        org = self.org or OrgInfo(org_id="", username=self.config.targetusername or "")

        return ResultModel(
            run_id=self.run_id,
            start_time=self.start_time,
            origin=ORIGIN,
            tests=tests,
            summary=summary,
            config={
                "orgId": org.org_id,
                "instanceUrl": org.instance_url,
                "username": org.username,
            },
        )

    async def report(self, reporter: Reporter, model: ResultModel) -> dict[str, Any]:
        """Write result files or emit the results through the reporter."""
        reporter.log("Preparing test results...")

        if self.config.outputdir is not None:
            reporter.log(f"Writing test results to files to {self.config.outputdir}...")
            files = await write_artifacts(model, self.config.outputdir)
            reporter.log_table(
                "Test Reports",
                [{"format": f.format, "file": str(f.file)} for f in files],
                ARTIFACT_COLUMNS,
            )
        else:
            reporter.on_start(model)
            reporter.on_finished(model)
            reporter.log("Test run complete")

        self.state = RunState.REPORTED
        return model.to_json()
