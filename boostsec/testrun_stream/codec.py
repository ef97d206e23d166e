"""Encode and decode JSOS records (JSON objects delimited by 0x1E)."""

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from boostsec.testrun_stream.errors import SerializationError
from boostsec.testrun_stream.models.test_event import TestEvent

# JSON escapes every control character inside strings, so this byte can only
# appear between records.
RECORD_SEPARATOR = b"\x1e"


def event_to_json(event: TestEvent) -> str:
    """Serialize an event as compact JSON, omitting absent detail.

    Raises:
        SerializationError: If the event cannot be represented as JSON

    """
    exclude = {"detail"} if event.detail is None else None
    try:
        return event.model_dump_json(exclude=exclude)
    except PydanticSerializationError as e:
        raise SerializationError(f"Cannot serialize event {event.name}: {e}") from e


def encode_event(event: TestEvent) -> bytes:
    """Serialize an event as one separator-terminated record.

    Args:
        event: Event to serialize

    Returns:
        UTF-8 JSON followed by a single record separator byte

    Raises:
        SerializationError: If the event cannot be represented as JSON

    """
    return event_to_json(event).encode("utf-8") + RECORD_SEPARATOR


def decode_event(fragment: bytes) -> TestEvent:
    """Parse one record fragment, without its trailing separator.

    Raises:
        SerializationError: If the fragment is not a valid event record

    """
    try:
        return TestEvent.model_validate_json(fragment)
    except ValidationError as e:
        raise SerializationError(f"Invalid event record: {e}") from e
