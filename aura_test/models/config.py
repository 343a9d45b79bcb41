"""Models for run options and automation server settings."""

from collections.abc import Sequence
from pathlib import Path

from pydantic import Field

from aura_test.models.base import Model

DEFAULT_TIMEOUT_MS = 60000
DEFAULT_SERVER_VERSION = "4.21.0"


class ServerConfig(Model):
    """Automation server options, usually read from the config file."""

    base_path: Path | None = Field(
        default=None,
        alias="basePath",
        description="Install directory (None means platform default)",
    )
    version: str = Field(
        default=DEFAULT_SERVER_VERSION, description="Selenium server version"
    )
    download_url: str | None = Field(
        default=None,
        alias="downloadUrl",
        description="Override for the server jar download URL",
    )
    port: int = Field(default=4444, description="Port the server listens on")
    java_args: Sequence[str] = Field(
        default_factory=list,
        alias="javaArgs",
        description="Extra JVM arguments",
    )
    driver_version: str | None = Field(
        default=None,
        alias="driverVersion",
        description="Browser driver version pin (None means match the browser)",
    )
    start_timeout: float = Field(
        default=30.0,
        alias="startTimeout",
        description="Seconds to wait for the server to report ready",
    )


class RunConfiguration(Model):
    """Inputs of a single test run."""

    resultformat: str | None = Field(
        default=None, description="Reporter key (human, tap, json, junit)"
    )
    configfile: Path | None = Field(
        default=None, description="Path to a YAML or JSON config file"
    )
    outputdir: Path | None = Field(
        default=None, description="Directory for JUnit and JSON result files"
    )
    targetusername: str | None = Field(
        default=None, description="Org username or alias"
    )
    json_output: bool = Field(
        default=False, alias="json", description="Machine-readable process output"
    )
    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        ge=0,
        description="Milliseconds to wait for results on the page",
    )
    appname: str | None = Field(default=None, description="Lightning test app name")
    leavebrowseropen: bool = Field(
        default=False, description="Keep the browser session at the end of the run"
    )
