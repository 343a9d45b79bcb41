"""Org access through the sfdx command line."""

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from aura_test.errors import SfdxError

log = logging.getLogger(__name__)

SFDX = "sfdx"


@dataclass(frozen=True, kw_only=True)
class OrgInfo:
    """Identity of the org tests run against."""

    org_id: str
    username: str
    instance_url: str = ""
    is_scratch: bool = False


async def run_sfdx(args: Sequence[str]) -> Any:
    """Run an sfdx command with ``--json`` and return its ``result``.

    Raises:
        SfdxError: If sfdx is missing, prints something other than JSON, or
            reports a non-zero status

    """
    command = [SFDX, *args, "--json"]
    log.debug("Running %s", " ".join(command))
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as err:
        raise SfdxError(
            "The sfdx CLI was not found on PATH. Install it to access your org."
        ) from err
    stdout, stderr = await process.communicate()

    try:
        envelope = json.loads(stdout.decode())
    except ValueError as err:
        raise SfdxError(
            f"Unexpected output from sfdx {args[0]}: {stderr.decode().strip()}"
        ) from err

    if not isinstance(envelope, dict):
        raise SfdxError(f"Unexpected output from sfdx {args[0]}")

    status = envelope.get("status")
    if status != 0:
        raise SfdxError(
            envelope.get("message") or f"sfdx {args[0]} failed (status={status})"
        )
    return envelope.get("result")


def _target(username: str | None) -> list[str]:
    return ["--targetusername", username] if username else []


async def get_front_door_url(path: str, username: str | None = None) -> str:
    """Return an authenticated URL that opens ``path`` in the org."""
    try:
        result = await run_sfdx(
            ["force:org:open", "--urlonly", *_target(username), "--path", path]
        )
    except SfdxError as err:
        raise SfdxError(f"Error retrieving front door url: {err}") from err

    url = result.get("url") if isinstance(result, dict) else None
    if not url:
        raise SfdxError("Error retrieving front door url: no url returned")
    return str(url)


async def describe_org(username: str | None = None) -> OrgInfo:
    """Return the identity of the target org.

    Only scratch orgs carry a dev hub and an expiration date.

    Raises:
        SfdxError: If sfdx fails or returns no org description

    """
    result = await run_sfdx(["force:org:display", *_target(username)])
    if not isinstance(result, dict):
        raise SfdxError("Unexpected org description from sfdx force:org:display")

    return OrgInfo(
        org_id=_text(result.get("id")),
        username=_text(result.get("username")) or username or "",
        instance_url=_text(result.get("instanceUrl")),
        is_scratch=bool(result.get("devHubId") or result.get("expirationDate")),
    )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


async def install_package(
    package_id: str,
    wait: int,
    username: str | None = None,
) -> Any:
    """Install a package version in the org and return sfdx's result."""
    log.info("Installing package %s (wait=%d)", package_id, wait)
    return await run_sfdx(
        [
            "force:package:install",
            "--wait",
            str(wait),
            "--package",
            package_id,
            "--securitytype",
            "AllUsers",
            "--noprompt",
            *_target(username),
        ]
    )
