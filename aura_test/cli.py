"""CLI entry point for running and installing Lightning tests."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import aiohttp
from rich.console import Console

from aura_test.errors import AuraTestError
from aura_test.models.config import DEFAULT_TIMEOUT_MS, RunConfiguration
from aura_test.orchestrator import TestOrchestrator
from aura_test.releases import PACKAGE_TYPE_TO_NAME, resolve_package_id
from aura_test.reporters.loading import REPORTERS
from aura_test.sfdx import install_package

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_TESTS_FAILED = 100

DEFAULT_INSTALL_WAIT = 2

log = logging.getLogger("aura_test")


def exit_code_for(result: Mapping[str, Any]) -> int:
    """Exit code of a finished run: 100 when any test failed."""
    summary = result.get("summary") or {}
    return EXIT_TESTS_FAILED if summary.get("failing") else EXIT_SUCCESS


def print_json(status: int, **payload: Any) -> None:
    """Print a JSON envelope on stdout."""
    print(json.dumps({"status": status, **payload}, indent=2))


def report_error(err: AuraTestError, *, json_output: bool) -> int:
    """Print an error for the user and return the error exit code."""
    if json_output:
        print_json(
            EXIT_ERROR, name=type(err).__name__, category=err.category, message=str(err)
        )
    else:
        print(f"ERROR: {err.category}: {err}", file=sys.stderr)
    return EXIT_ERROR


async def run(config: RunConfiguration, console: Console) -> int:
    """Run the Lightning tests and return the exit code."""
    orchestrator = TestOrchestrator(config=config, console=console)
    try:
        await orchestrator.initialize()
        result = await orchestrator.run_tests()
    except AuraTestError as err:
        json_output = orchestrator.json_output or config.resultformat == "json"
        return report_error(err, json_output=json_output)

    exit_code = exit_code_for(result)
    if orchestrator.json_output:
        print_json(exit_code, result=result)
    return exit_code


async def install(
    console: Console,
    *,
    version: str | None,
    package_type: str,
    wait: int,
    username: str | None,
    json_output: bool,
) -> int:
    """Install the Lightning Testing Service package and return the exit code."""
    try:
        async with aiohttp.ClientSession() as session:
            package_id = await resolve_package_id(session, version, package_type)
        if not json_output:
            console.print(
                f"Installing {package_type} package {package_id}...", markup=False
            )
        result = await install_package(package_id, wait, username)
    except AuraTestError as err:
        return report_error(err, json_output=json_output)

    if json_output:
        print_json(EXIT_SUCCESS, result=result)
    else:
        console.print(f"Package {package_id} installed.", markup=False)
    return EXIT_SUCCESS


def non_negative_int(value: str) -> int:
    """Argparse type for timeouts and wait times."""
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="aura-test", description="Run Lightning tests in a browser"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for diagnostics written to stderr",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    run_parser = commands.add_parser("run", help="Run a Lightning test app")
    run_parser.add_argument(
        "-r",
        "--resultformat",
        help=f"Result format ({', '.join(REPORTERS)}), defaults to human",
    )
    run_parser.add_argument(
        "-a", "--appname", help="Name of the test app, defaults to jasmineTests"
    )
    run_parser.add_argument(
        "-d",
        "--outputdir",
        type=Path,
        help="Directory to write JUnit and JSON result files to",
    )
    run_parser.add_argument(
        "-f", "--configfile", type=Path, help="Path to a YAML or JSON config file"
    )
    run_parser.add_argument(
        "-o",
        "--leavebrowseropen",
        action="store_true",
        help="Leave the browser session open at the end of the run",
    )
    run_parser.add_argument(
        "-t",
        "--timeout",
        type=non_negative_int,
        default=DEFAULT_TIMEOUT_MS,
        help="Milliseconds to wait for results on the page",
    )
    run_parser.add_argument(
        "-u", "--targetusername", help="Username or alias of the target org"
    )
    run_parser.add_argument("--json", action="store_true", help="Print JSON output")

    install_parser = commands.add_parser(
        "install", help="Install the Lightning Testing Service package"
    )
    install_parser.add_argument(
        "-r",
        "--releaseversion",
        help="Release version to install (e.g., v1.0), defaults to latest",
    )
    install_parser.add_argument(
        "-t",
        "--packagetype",
        default="full",
        choices=list(PACKAGE_TYPE_TO_NAME),
        help="Package to install, defaults to full",
    )
    install_parser.add_argument(
        "-w",
        "--wait",
        type=non_negative_int,
        default=DEFAULT_INSTALL_WAIT,
        help="Minutes to wait for the installation",
    )
    install_parser.add_argument(
        "-u", "--targetusername", help="Username or alias of the target org"
    )
    install_parser.add_argument("--json", action="store_true", help="Print JSON output")

    return parser


async def dispatch(args: argparse.Namespace) -> int:
    """Run the selected command."""
    console = Console()
    log.debug("Running command %s", args.command)

    if args.command == "install":
        return await install(
            console,
            version=args.releaseversion,
            package_type=args.packagetype,
            wait=args.wait,
            username=args.targetusername,
            json_output=args.json,
        )

    config = RunConfiguration(
        resultformat=args.resultformat,
        configfile=args.configfile,
        outputdir=args.outputdir,
        targetusername=args.targetusername,
        json_output=args.json,
        timeout=args.timeout,
        appname=args.appname,
        leavebrowseropen=args.leavebrowseropen,
    )
    return await run(config, console)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    sys.exit(asyncio.run(dispatch(args)))


if __name__ == "__main__":  # pragma: no cover
    main()
