from pathlib import Path

import yaml
from pydantic import ValidationError

from redirector.config.models import RedirectorConfig


def load_config(path: Path) -> RedirectorConfig:
    """
    Load and validate the configuration file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in config file: {e}") from e

    # An empty file means all defaults
    if data is None:
        data = {}

    try:
        return RedirectorConfig.model_validate(data)
    except ValidationError as e:
        # Re-raise with a clear message for the caller/logs
        raise ValueError(f"Config validation failed:\n{e}") from e


def load_config_or_default(path: Path) -> RedirectorConfig:
    """Like load_config, but a missing file yields the defaults."""
    if not path.exists():
        return RedirectorConfig()
    return load_config(path)
