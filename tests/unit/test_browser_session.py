"""Tests for the browser session adapter."""

from collections.abc import Iterator
from unittest.mock import Mock, patch

import pytest
from selenium.common.exceptions import (
    NoSuchElementException,
    SessionNotCreatedException,
    StaleElementReferenceException,
    WebDriverException,
)
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement
from yarl import URL

from aura_test.browser.session import BrowserSession, build_options

SERVER_URL = URL("http://localhost:4444/wd/hub")
CAPABILITIES = {"browserName": "chrome"}


@pytest.fixture
def driver() -> Mock:
    """Create mock remote driver."""
    driver = Mock()
    driver.session_id = "session-1"
    return driver


@pytest.fixture
def remote(driver: Mock) -> Iterator[Mock]:
    """Patch the Remote WebDriver constructor."""
    with patch(
        "aura_test.browser.session.webdriver.Remote", return_value=driver
    ) as mock_remote:
        yield mock_remote


def test_build_options_carries_capabilities() -> None:
    """Copies requested capabilities onto the browser options."""
    options = build_options({"browserName": "chrome", "acceptInsecureCerts": True})

    capabilities = options.to_capabilities()
    assert capabilities["browserName"] == "chrome"
    assert capabilities["acceptInsecureCerts"] is True


class TestOpen:
    """Tests for BrowserSession.open."""

    async def test_creates_and_quits_session(self, remote: Mock, driver: Mock) -> None:
        """Connects to the server and quits the session on exit."""
        async with BrowserSession.open(SERVER_URL, CAPABILITIES) as session:
            assert session.driver is driver
            driver.quit.assert_not_called()

        assert remote.call_args.kwargs["command_executor"] == str(SERVER_URL)
        options = remote.call_args.kwargs["options"]
        assert options.to_capabilities()["browserName"] == "chrome"
        driver.quit.assert_called_once()

    async def test_keeps_session_open(self, remote: Mock, driver: Mock) -> None:
        """Leaves the session alive when asked to."""
        async with BrowserSession.open(SERVER_URL, CAPABILITIES, keep_open=True):
            pass

        driver.quit.assert_not_called()

    async def test_quits_session_when_body_raises(
        self, remote: Mock, driver: Mock
    ) -> None:
        """Quits the session when the caller fails."""
        with pytest.raises(ValueError, match="boom"):
            async with BrowserSession.open(SERVER_URL, CAPABILITIES):
                raise ValueError("boom")

        driver.quit.assert_called_once()

    async def test_raises_when_session_not_created(self, remote: Mock) -> None:
        """Propagates session creation failures."""
        remote.side_effect = SessionNotCreatedException("Chrome not found")

        with pytest.raises(WebDriverException, match="Chrome not found"):
            async with BrowserSession.open(SERVER_URL, CAPABILITIES):
                pass

    async def test_close_failure_is_logged(
        self, remote: Mock, driver: Mock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Does not raise when the session cannot be quit."""
        driver.quit.side_effect = WebDriverException("gone")

        async with BrowserSession.open(SERVER_URL, CAPABILITIES):
            pass

        assert "Failed to close browser session: gone" in caplog.text


class TestCommands:
    """Tests for session commands."""

    async def test_navigate(self, driver: Mock) -> None:
        """Loads the URL in the browser."""
        await BrowserSession(driver=driver).navigate("https://org.example.com/c/a.app")

        driver.get.assert_called_once_with("https://org.example.com/c/a.app")

    async def test_reads_element_content(self, driver: Mock) -> None:
        """Finds an element by CSS selector and reads its property and text."""
        element = Mock(spec=WebElement)
        element.get_property.return_value = '{"tests": []}'
        element.text = "finished in 0.1s"
        driver.find_element.return_value = element
        session = BrowserSession(driver=driver)

        found = await session.find_element("#run_results_full")

        assert found is element
        driver.find_element.assert_called_once_with(
            By.CSS_SELECTOR, "#run_results_full"
        )
        assert await session.element_property(element, "textContent") == (
            '{"tests": []}'
        )
        element.get_property.assert_called_once_with("textContent")
        assert await session.element_text(element) == "finished in 0.1s"

    async def test_missing_element_is_none(self, driver: Mock) -> None:
        """Returns None when no element matches."""
        driver.find_element.side_effect = NoSuchElementException("no such element")

        assert await BrowserSession(driver=driver).find_element("#missing") is None

    async def test_other_errors_propagate(self, driver: Mock) -> None:
        """Raises driver errors other than a missing element."""
        driver.find_element.side_effect = StaleElementReferenceException("stale")

        with pytest.raises(StaleElementReferenceException):
            await BrowserSession(driver=driver).find_element("#run_results_full")
