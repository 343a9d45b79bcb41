"""Write JUnit and JSON result files to an output directory."""

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from aura_test.errors import ArtifactError
from aura_test.models.result import ResultModel

log = logging.getLogger(__name__)

TEST_RESULT_FILE_PREFIX = "lightning-test-result"


@dataclass(frozen=True, kw_only=True)
class ArtifactFile:
    """A written result file."""

    format: str
    file: Path


def prepare_output_directory(output_dir: Path) -> Path:
    """Create the output directory if it does not exist yet."""
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise ArtifactError(
            f"Unable to create output directory {output_dir}: {err}"
        ) from err
    return output_dir


async def write_artifacts(
    model: ResultModel, output_dir: Path
) -> Sequence[ArtifactFile]:
    """Write the JUnit XML and JSON renderings of a run.

    Returns:
        The written files, JUnit first

    Raises:
        ArtifactError: If a file cannot be written

    """
    artifacts = [
        (
            ArtifactFile(
                format="JUnit",
                file=output_dir / f"{TEST_RESULT_FILE_PREFIX}-junit.xml",
            ),
            model.generate_junit(),
        ),
        (
            ArtifactFile(
                format="JSON",
                file=output_dir / f"{TEST_RESULT_FILE_PREFIX}.json",
            ),
            json.dumps(model.to_json(), indent=4),
        ),
    ]

    for artifact, content in artifacts:
        try:
            await asyncio.to_thread(artifact.file.write_text, content, encoding="utf-8")
        except OSError as err:
            raise ArtifactError(f"Unable to write {artifact.file}: {err}") from err
        log.info("%s results written to %s", artifact.format, artifact.file)

    return [artifact for artifact, _ in artifacts]
