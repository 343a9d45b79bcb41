"""Shared fixtures."""

import io

import pytest
from rich.console import Console


@pytest.fixture
def console() -> Console:
    """Console recording plain text, read back with ``export_text``."""
    return Console(file=io.StringIO(), width=200, color_system=None, record=True)
