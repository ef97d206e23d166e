"""Configuration model for the event stream recorder."""

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_STREAM_NAME = "testrun_results_stream.jsos"


class RecorderConfig(BaseModel):
    """Where and how a test run writes its result stream."""

    output_dir: Path = Field(
        default=Path("."), description="Directory holding the result stream"
    )
    stream_name: str = Field(
        default=DEFAULT_STREAM_NAME, description="File name of the result stream"
    )
    utc_timestamps: bool = Field(
        default=True, description="Record UTC timestamps instead of local time"
    )
    fsync: bool = Field(
        default=False, description="fsync the stream after every record"
    )

    @property
    def stream_path(self) -> Path:
        """Full path of the result stream."""
        return self.output_dir / self.stream_name
