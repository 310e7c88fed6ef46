"""Load tool settings from an optional YAML file."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from mobile_e2e.ci_tools.models.settings import ToolSettings


def load_settings(settings_file: Path | None) -> ToolSettings:
    """Load settings, falling back to defaults when no file is given.

    Args:
        settings_file: Path to a YAML settings file, or None

    Returns:
        Parsed settings

    Raises:
        FileNotFoundError: If the settings file doesn't exist
        ValueError: If YAML is invalid or doesn't match schema

    """
    if settings_file is None:
        return ToolSettings()

    if not settings_file.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_file}")

    try:
        with settings_file.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {settings_file}: {e}") from e

    if data is None:
        return ToolSettings()

    try:
        return ToolSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid settings schema in {settings_file}: {e}") from e
