"""Load automation server settings from a YAML or JSON config file."""

import asyncio
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from aura_test.errors import ConfigurationError
from aura_test.models.config import ServerConfig

log = logging.getLogger(__name__)


async def load_config_file(path: Path) -> ServerConfig:
    """Load and validate a config file.

    JSON documents are valid YAML, so both formats are accepted.

    Args:
        path: Path to the config file

    Returns:
        Validated automation server settings

    Raises:
        ConfigurationError: If the file is missing, unparsable, empty or does
            not match the expected schema

    """
    try:
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError as err:
        raise ConfigurationError(f"Config file not found: {path}") from err
    except OSError as err:
        raise ConfigurationError(f"Unable to read config file {path}: {err}") from err

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise ConfigurationError(f"Invalid YAML in {path}: {err}") from err

    if data is None:
        raise ConfigurationError(f"Empty config file: {path}")

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid config file schema in {path}: expected a mapping"
        )

    try:
        config = ServerConfig.model_validate(data)
    except ValidationError as err:
        raise ConfigurationError(
            f"Invalid config file schema in {path}: {err}"
        ) from err

    log.debug("Loaded config file %s", path)
    return config
