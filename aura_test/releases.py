"""Lookup of Lightning Testing Service package ids from GitHub releases."""

import logging
import re
from collections.abc import Mapping
from typing import Any

import aiohttp

from aura_test.errors import (
    InvalidPackageTypeError,
    PackageIdExtractionError,
    ReleaseNotFoundError,
    ReleaseUnreachableError,
)

log = logging.getLogger(__name__)

RELEASES_API_URL = (
    "https://api.github.com/repos/forcedotcom/LightningTestingService/releases"
)

PACKAGE_TYPE_TO_NAME: Mapping[str, str] = {
    "jasmine": "jasmine",
    "mocha": "mocha",
    "full": "examples",
}


def release_path(version: str | None) -> str:
    """Path segment of a release, ``latest`` when no version is given."""
    if version and version != "latest":
        return f"tags/{version}"
    return "latest"


def package_name(package_type: str) -> str:
    """Name used for a package type in release notes."""
    name = PACKAGE_TYPE_TO_NAME.get(package_type.lower())
    if name is None:
        raise InvalidPackageTypeError(
            f"Invalid package type '{package_type}'. "
            f"Available types: {list(PACKAGE_TYPE_TO_NAME)}"
        )
    return name


def extract_package_id(release_notes: str, package_type: str) -> str | None:
    """Find the package id linked for a package type in release notes.

    Release notes link each package as ``[... name ...](...p0=<15 chars>...)``.
    Returns None when no such link is present.
    """
    name = package_name(package_type)
    match = re.search(
        rf"\[.*{name}.*\]\(.*p0=(\w{{15}}).*\)", release_notes, re.IGNORECASE
    )
    if match is None:
        return None
    return match.group(1)


async def fetch_release(
    session: aiohttp.ClientSession, version: str | None = None
) -> Mapping[str, Any]:
    """Fetch release metadata for a version (or the latest release)."""
    path = release_path(version)
    url = f"{RELEASES_API_URL}/{path}"
    log.debug("Fetching release %s", url)

    try:
        async with session.get(url, headers={"User-Agent": "aura-test"}) as response:
            if response.status == 404:
                raise ReleaseNotFoundError(f"Release '{path}' was not found")
            if response.status != 200:
                text = await response.text()
                log.debug(
                    "Unable to reach %s. status=%s, body=%s", url, response.status, text
                )
                raise ReleaseUnreachableError(
                    f"Unable to retrieve package ids from {url}"
                )
            content: dict[str, Any] = await response.json()
    except aiohttp.ClientError as err:
        raise ReleaseUnreachableError(f"Unable to reach {url}: {err}") from err

    if content.get("message") == "Not Found":
        raise ReleaseNotFoundError(f"Release '{path}' was not found")
    return content


async def resolve_package_id(
    session: aiohttp.ClientSession,
    version: str | None = None,
    package_type: str = "full",
) -> str:
    """Return the package id of a package type in a release.

    Raises:
        ReleaseNotFoundError: If the version does not exist
        ReleaseUnreachableError: If the release feed cannot be reached
        PackageIdExtractionError: If the release notes contain no id
        InvalidPackageTypeError: If the package type is unknown

    """
    package_name(package_type)
    release = await fetch_release(session, version)
    notes = release.get("body") or ""
    package_id = extract_package_id(notes, package_type)
    if package_id is None:
        log.debug("Unable to map %s to a package id using: %s", package_type, notes)
        raise PackageIdExtractionError(
            f"Unable to find a {package_type} package id in release "
            f"'{release_path(version)}'"
        )
    return package_id
