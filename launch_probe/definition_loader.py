"""Load launch definitions from launch.yaml files."""

import asyncio
from pathlib import Path

import yaml
from pydantic import ValidationError

from launch_probe.models.definition import LaunchDefinition


async def load_launch_definition(path: Path) -> LaunchDefinition:
    """Load and validate a launch definition.

    Args:
        path: Path to the launch.yaml file

    Returns:
        The validated launch definition

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty, not valid YAML, or fails validation

    """
    if not path.is_file():
        raise FileNotFoundError(f"Launch definition not found: {path}")

    content = await asyncio.to_thread(path.read_text)

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        raise ValueError(f"Empty launch definition: {path}")

    try:
        return LaunchDefinition.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid launch definition schema in {path}: {e}") from e
