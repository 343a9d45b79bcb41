"""Browser session on the automation server, driven through Selenium."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from selenium import webdriver
from selenium.common.exceptions import NoSuchElementException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement
from yarl import URL

log = logging.getLogger(__name__)


def build_options(capabilities: Mapping[str, Any]) -> webdriver.ChromeOptions:
    """Browser options carrying the requested capabilities."""
    options = webdriver.ChromeOptions()
    for name, value in capabilities.items():
        options.set_capability(name, value)
    return options


@dataclass(frozen=True, kw_only=True)
class BrowserSession:
    """A live browser session.

    Selenium's client is blocking, so every command runs in a worker thread.
    """

    driver: webdriver.Remote = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        server_url: URL,
        capabilities: Mapping[str, Any],
        *,
        keep_open: bool = False,
    ) -> AsyncGenerator["BrowserSession", None]:
        """Create a session and quit it on exit unless ``keep_open`` is set.

        Raises:
            WebDriverException: If the server cannot create the session

        """
        driver = await asyncio.to_thread(
            webdriver.Remote,
            command_executor=str(server_url),
            options=build_options(capabilities),
        )
        log.info("Browser session %s opened", driver.session_id)
        session = cls(driver=driver)
        try:
            yield session
        finally:
            if not keep_open:
                await session.close()

    async def navigate(self, url: str) -> None:
        """Load a URL in the browser."""
        await asyncio.to_thread(self.driver.get, url)

    async def find_element(self, selector: str) -> WebElement | None:
        """Return the first element matching a CSS selector, if any."""
        try:
            return await asyncio.to_thread(
                self.driver.find_element, By.CSS_SELECTOR, selector
            )
        except NoSuchElementException:
            return None

    async def element_property(self, element: WebElement, name: str) -> Any:
        """Return a DOM property of an element."""
        return await asyncio.to_thread(element.get_property, name)

    async def element_text(self, element: WebElement) -> str:
        """Return the rendered text of an element."""
        return str(await asyncio.to_thread(getattr, element, "text"))

    async def close(self) -> None:
        """Quit the session, logging failures instead of raising them."""
        try:
            await asyncio.to_thread(self.driver.quit)
        except WebDriverException as err:
            log.warning("Failed to close browser session: %s", err.msg)
        else:
            log.info("Browser session closed")
