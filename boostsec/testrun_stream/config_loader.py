"""Load recorder configuration from YAML files and the environment."""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from boostsec.testrun_stream.models.recorder_config import RecorderConfig

OUTPUT_DIR_ENV = "TESTRUN_STREAM_OUTPUT_DIR"


def load_recorder_config(config_file: Path | None = None) -> RecorderConfig:
    """Load recorder configuration.

    Args:
        config_file: Optional YAML file with RecorderConfig fields

    Returns:
        Parsed configuration, with the output directory taken from
        TESTRUN_STREAM_OUTPUT_DIR when that variable is set

    Raises:
        FileNotFoundError: If config_file doesn't exist
        ValueError: If YAML is invalid or doesn't match schema

    """
    data: dict[str, object] = {}
    if config_file is not None:
        data = _read_yaml_mapping(config_file)

    if OUTPUT_DIR_ENV in os.environ:
        data["output_dir"] = os.environ[OUTPUT_DIR_ENV]

    try:
        return RecorderConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid recorder configuration: {e}") from e


def _read_yaml_mapping(config_file: Path) -> dict[str, object]:
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file}")

    try:
        with config_file.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        raise ValueError(f"Empty config file: {config_file}")
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_file} must contain a mapping")

    return data
