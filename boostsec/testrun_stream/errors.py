"""Exceptions raised by the test run event recorder."""


class RecorderError(Exception):
    """Base class for event recorder errors."""


class IoError(RecorderError, OSError):
    """Stream could not be opened, written, or flushed."""


class SerializationError(RecorderError, ValueError):
    """A record could not be represented in the event schema."""


class UnknownInstanceError(RecorderError, LookupError):
    """Finish requested for an instance that is not currently open."""

    def __init__(self, instance_id: str) -> None:
        """Initialize with the offending instance identifier."""
        super().__init__(f"Unknown or already finished test instance: {instance_id}")
        self.instance_id = instance_id
