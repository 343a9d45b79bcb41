"""Install, start and stop the local Selenium automation server."""

import asyncio
import logging
import os
import shutil
import sys
import tempfile
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

import aiohttp
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.selenium_manager import SeleniumManager

from aura_test.errors import MissingRuntimeError, ServerLifecycleError
from aura_test.models.config import ServerConfig

log = logging.getLogger(__name__)

SERVER_DOWNLOAD_URL = (
    "https://github.com/SeleniumHQ/selenium/releases/download/"
    "selenium-{version}/selenium-server-{version}.jar"
)
SERVER_HOST = "localhost"
WEBDRIVER_PATH = "/wd/hub"
READY_POLL_INTERVAL = 0.5
BROWSER = "chrome"


class ServerState(StrEnum):
    """Lifecycle states of an automation server handle."""

    UNINSTALLED = "uninstalled"
    INSTALLING = "installing"
    INSTALLED = "installed"
    STARTING = "starting"
    RUNNING = "running"
    TERMINATED = "terminated"


def resolve_install_base_path(platform: str = sys.platform) -> Path:
    """Return the default directory for the server jar and drivers.

    The working directory is not writable for installed CLIs on Windows, so a
    temp directory is used there. Other platforms keep a project-local
    directory to avoid reinstalling whenever the temp directory is cleaned.
    """
    if platform == "win32":
        return Path(tempfile.gettempdir()) / "selenium"
    return Path.cwd() / ".selenium"


def server_jar_path(base_path: Path, version: str) -> Path:
    """Location of the server jar for a version under the install directory."""
    return base_path / f"selenium-server-{version}.jar"


@dataclass(kw_only=True)
class AutomationServerHandle:
    """Reference to a started (or never started) automation server process."""

    base_path: Path
    state: ServerState = ServerState.UNINSTALLED
    driver_path: Path | None = None
    process: asyncio.subprocess.Process | None = field(default=None, repr=False)

    def kill(self) -> None:
        """Terminate the server process if there is one. Never raises."""
        if self.state == ServerState.TERMINATED:
            return
        if self.process is not None and self.process.returncode is None:
            with suppress(ProcessLookupError):
                self.process.terminate()
            log.info("Automation server terminated (pid=%s)", self.process.pid)
        self.state = ServerState.TERMINATED


@dataclass(frozen=True, kw_only=True)
class AutomationServerManager:
    """Owns installation and lifecycle of the automation server."""

    base_path_resolver: Callable[[], Path] = resolve_install_base_path
    java: str = "java"

    async def start(self, config: ServerConfig) -> AutomationServerHandle:
        """Install the server if needed, start it and wait until it is ready.

        Raises:
            MissingRuntimeError: If no Java runtime is available
            ServerLifecycleError: If installing or starting the server fails

        """
        base_path = config.base_path or self.base_path_resolver()
        handle = AutomationServerHandle(base_path=base_path)
        java = self.find_java()

        jar = server_jar_path(base_path, config.version)
        handle.state = ServerState.INSTALLING
        if not jar.exists():
            await self.install(config, jar)
        handle.driver_path = await self.install_driver(config, base_path)
        handle.state = ServerState.INSTALLED

        handle.state = ServerState.STARTING
        handle.process = await self.spawn(java, jar, handle.driver_path, config)
        try:
            await self.wait_until_ready(handle.process, config)
        except BaseException:
            handle.kill()
            raise

        handle.state = ServerState.RUNNING
        log.info(
            "Automation server running on %s:%d (pid=%s)",
            SERVER_HOST,
            config.port,
            handle.process.pid,
        )
        return handle

    def kill(self, handle: AutomationServerHandle | None) -> None:
        """Terminate the server behind a handle, ignoring missing processes."""
        if handle is not None:
            handle.kill()

    def find_java(self) -> str:
        """Return the Java executable path or fail with an actionable error."""
        java = shutil.which(self.java)
        if java is None:
            raise MissingRuntimeError(
                "Java was not found on PATH. "
                "Install a Java runtime to run the Selenium automation server."
            )
        return java

    async def install(self, config: ServerConfig, jar: Path) -> None:
        """Download the server jar into the install directory."""
        url = config.download_url or SERVER_DOWNLOAD_URL.format(version=config.version)
        log.info("Installing automation server %s into %s", config.version, jar.parent)
        log.debug("Downloading %s", url)

        try:
            async with aiohttp.ClientSession() as session, session.get(url) as response:
                if response.status != 200:
                    raise ServerLifecycleError(
                        f"Failed to download automation server: {response.status} {url}"
                    )
                content = await response.read()
        except aiohttp.ClientError as err:
            raise ServerLifecycleError(
                f"Failed to download automation server from {url}: {err}"
            ) from err

        try:
            await asyncio.to_thread(_write_atomically, jar, content)
        except OSError as err:
            raise ServerLifecycleError(
                f"Failed to install automation server into {jar.parent}: {err}"
            ) from err
        log.debug("Automation server installed (%d bytes)", len(content))

    async def install_driver(self, config: ServerConfig, base_path: Path) -> Path:
        """Resolve the browser driver into the install directory.

        Selenium Manager downloads the driver on first use and reuses the
        cached copy afterwards.

        Returns:
            Path of the driver executable

        Raises:
            MissingRuntimeError: If Selenium Manager is not available
            ServerLifecycleError: If the driver cannot be installed

        """
        args = ["--browser", BROWSER, "--cache-path", str(base_path / "drivers")]
        if config.driver_version:
            args += ["--driver-version", config.driver_version]
        log.info("Installing %s driver into %s", BROWSER, base_path / "drivers")

        try:
            paths = await asyncio.to_thread(SeleniumManager().binary_paths, args)
        except FileNotFoundError as err:
            raise MissingRuntimeError(
                f"Selenium Manager is not available to install drivers: {err}"
            ) from err
        except WebDriverException as err:
            raise ServerLifecycleError(
                f"Failed to install browser driver: {err.msg}"
            ) from err

        driver = paths.get("driver_path")
        if not driver:
            raise ServerLifecycleError(
                f"Failed to install browser driver: no {BROWSER} driver was resolved"
            )
        log.debug("Browser driver installed at %s", driver)
        return Path(driver)

    async def spawn(
        self, java: str, jar: Path, driver: Path | None, config: ServerConfig
    ) -> asyncio.subprocess.Process:
        """Start the server process."""
        env = {**os.environ, "SE_CACHE_PATH": str(jar.parent / "drivers")}
        if config.driver_version:
            env["SE_DRIVER_VERSION"] = config.driver_version
        driver_args = []
        if driver is not None:
            env["PATH"] = os.pathsep.join([str(driver.parent), env.get("PATH", "")])
            driver_args.append(f"-Dwebdriver.chrome.driver={driver}")

        args = [
            *config.java_args,
            *driver_args,
            "-jar",
            str(jar),
            "standalone",
            "--port",
            str(config.port),
            "--sub-path",
            WEBDRIVER_PATH,
        ]
        log.debug("Starting automation server: %s %s", java, " ".join(args))
        try:
            return await asyncio.create_subprocess_exec(
                java,
                *args,
                env=env,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as err:
            raise ServerLifecycleError(
                f"Failed to start automation server: {err}"
            ) from err

    async def wait_until_ready(
        self,
        process: asyncio.subprocess.Process,
        config: ServerConfig,
        poll_interval: float = READY_POLL_INTERVAL,
    ) -> None:
        """Poll the server status endpoint until it reports ready.

        Raises:
            ServerLifecycleError: If the process exits or the server is not
                ready within the configured start timeout

        """
        url = f"http://{SERVER_HOST}:{config.port}{WEBDRIVER_PATH}/status"
        deadline = asyncio.get_event_loop().time() + config.start_timeout

        async with aiohttp.ClientSession() as session:
            while True:
                if process.returncode is not None:
                    raise ServerLifecycleError(
                        f"Automation server exited with code {process.returncode}"
                    )

                if await _is_ready(session, url):
                    return

                if asyncio.get_event_loop().time() >= deadline:
                    raise ServerLifecycleError(
                        "Automation server did not become ready within "
                        f"{config.start_timeout} seconds"
                    )

                await asyncio.sleep(poll_interval)


async def _is_ready(session: aiohttp.ClientSession, url: str) -> bool:
    try:
        async with session.get(url) as response:
            if response.status != 200:
                return False
            data = await response.json()
    except (aiohttp.ClientError, ValueError):
        return False
    return bool(data.get("value", {}).get("ready"))


def _write_atomically(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    partial = path.with_suffix(".part")
    partial.write_bytes(content)
    partial.replace(path)
