"""Tests for result file writing."""

import json
from pathlib import Path

import pytest

from aura_test.artifacts import prepare_output_directory, write_artifacts
from aura_test.errors import ArtifactError
from aura_test.models.result import ResultModel
from aura_test.testing.factories import (
    START_TIME,
    RunSummaryFactory,
    TestCaseResultFactory,
)


@pytest.fixture
def model() -> ResultModel:
    """Create a result model with one failing test."""
    return ResultModel(
        run_id="run-1",
        start_time=START_TIME,
        origin="force.lightning",
        tests=(
            TestCaseResultFactory.build(name="c.spec.passes"),
            TestCaseResultFactory.build(
                name="c.spec.fails", status="fail", message="boom"
            ),
        ),
        summary=RunSummaryFactory.build(failing=1),
    )


class TestPrepareOutputDirectory:
    """Tests for prepare_output_directory."""

    def test_creates_nested_directory(self, tmp_path: Path) -> None:
        """Creates missing parents."""
        output_dir = tmp_path / "a" / "b"

        assert prepare_output_directory(output_dir) == output_dir
        assert output_dir.is_dir()

    def test_accepts_existing_directory(self, tmp_path: Path) -> None:
        """Leaves an existing directory alone."""
        assert prepare_output_directory(tmp_path) == tmp_path

    def test_raises_when_path_is_a_file(self, tmp_path: Path) -> None:
        """Raises ArtifactError when the path cannot be a directory."""
        blocker = tmp_path / "results"
        blocker.write_text("")

        with pytest.raises(ArtifactError, match="Unable to create output directory"):
            prepare_output_directory(blocker / "nested")


class TestWriteArtifacts:
    """Tests for write_artifacts."""

    async def test_writes_junit_and_json(
        self, model: ResultModel, tmp_path: Path
    ) -> None:
        """Writes both renderings with fixed file names."""
        files = await write_artifacts(model, tmp_path)

        assert [(f.format, f.file.name) for f in files] == [
            ("JUnit", "lightning-test-result-junit.xml"),
            ("JSON", "lightning-test-result.json"),
        ]
        assert files[0].file.read_text() == model.generate_junit()
        assert json.loads(files[1].file.read_text()) == model.to_json()

    async def test_json_is_indented(self, model: ResultModel, tmp_path: Path) -> None:
        """Indents the JSON file by four spaces."""
        files = await write_artifacts(model, tmp_path)

        assert files[1].file.read_text().startswith('{\n    "summary": {')

    async def test_raises_when_directory_is_missing(
        self, model: ResultModel, tmp_path: Path
    ) -> None:
        """Raises ArtifactError when a file cannot be written."""
        with pytest.raises(ArtifactError, match="Unable to write"):
            await write_artifacts(model, tmp_path / "missing")
