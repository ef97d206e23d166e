"""Locate result stream files."""

from pathlib import Path

from boostsec.testrun_stream.models.recorder_config import DEFAULT_STREAM_NAME


def resolve_stream_path(destination: Path | str) -> Path:
    """Return the stream file for a destination.

    Args:
        destination: Stream file, or an existing directory to hold the
            default stream file

    Returns:
        Path of the stream file

    """
    path = Path(destination)
    if path.is_dir():
        return path / DEFAULT_STREAM_NAME
    return path
